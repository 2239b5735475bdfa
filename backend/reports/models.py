"""
Reports app models.

``Report`` is the canonical record of a citizen-submitted issue and the
single source of truth for its lifecycle ``status`` and ``review_state``.
``ReportProgressUpdate`` is the append-only audit trail: every lifecycle
transition writes exactly one row, in the same transaction as the state
change.  ``ReportComment`` and ``ReportUpvote`` hold the discussion
thread and the community support count; neither touches the lifecycle.

Review outcome is a single ``review_state`` value rather than separate
"needs review / approved / rejected" flags, so contradictory
combinations cannot be stored; the database enforces that
``awaiting_review`` and ``approved`` only appear on completed reports.
"""

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.constants import (
    MAX_PROGRESS,
    MIN_PROGRESS,
    REPORT_COMMENT_MAX_LENGTH,
    REPORT_DESCRIPTION_MAX_LENGTH,
    REPORT_TITLE_MAX_LENGTH,
)
from core.models import TimeStampedModel


class ReportCategory(models.TextChoices):
    POTHOLE = "pothole", "Pothole"
    DRAINAGE = "drainage", "Drainage"
    LIGHTING = "lighting", "Street Lighting"
    GARBAGE = "garbage", "Garbage"
    SIGNAGE = "signage", "Signage"
    OTHER = "other", "Other"


class ReportPriority(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"


class ReportStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    ASSIGNED = "assigned", "Assigned"
    IN_PROGRESS = "in_progress", "In Progress"
    COMPLETED = "completed", "Completed"
    REJECTED = "rejected", "Rejected"


class ReviewState(models.TextChoices):
    NOT_APPLICABLE = "not_applicable", "Not Applicable"
    AWAITING_REVIEW = "awaiting_review", "Awaiting Review"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class Report(TimeStampedModel):
    """
    A citizen-submitted issue moving through the lifecycle
    ``pending → assigned → in_progress → completed`` with an admin
    review of every completion.

    Mutations go exclusively through ``reports.services`` so that each
    one is compare-and-set guarded and audited.
    """

    # ── Submission ───────────────────────────────────────────────────
    reporter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="reports",
        verbose_name="Reporter",
    )
    title = models.CharField(
        max_length=REPORT_TITLE_MAX_LENGTH,
        verbose_name="Title",
    )
    description = models.TextField(
        max_length=REPORT_DESCRIPTION_MAX_LENGTH,
        verbose_name="Description",
    )
    category = models.CharField(
        max_length=20,
        choices=ReportCategory.choices,
        db_index=True,
        verbose_name="Category",
    )
    priority = models.CharField(
        max_length=10,
        choices=ReportPriority.choices,
        default=ReportPriority.MEDIUM,
        db_index=True,
        verbose_name="Priority",
    )
    location_address = models.CharField(
        max_length=255,
        verbose_name="Address",
    )
    location_latitude = models.DecimalField(
        max_digits=9,
        decimal_places=6,
        null=True,
        blank=True,
        verbose_name="Latitude",
    )
    location_longitude = models.DecimalField(
        max_digits=9,
        decimal_places=6,
        null=True,
        blank=True,
        verbose_name="Longitude",
    )
    location_landmark = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Landmark",
    )

    # ── Lifecycle ────────────────────────────────────────────────────
    status = models.CharField(
        max_length=20,
        choices=ReportStatus.choices,
        default=ReportStatus.PENDING,
        db_index=True,
        verbose_name="Status",
    )
    progress = models.PositiveSmallIntegerField(
        default=MIN_PROGRESS,
        verbose_name="Progress (%)",
    )
    review_state = models.CharField(
        max_length=20,
        choices=ReviewState.choices,
        default=ReviewState.NOT_APPLICABLE,
        db_index=True,
        verbose_name="Review State",
    )
    completion_cycle = models.PositiveIntegerField(
        default=0,
        verbose_name="Completion Cycle",
        help_text="How many times this report has entered 'completed'.",
    )

    # ── Assignment ───────────────────────────────────────────────────
    assigned_staff = models.ForeignKey(
        "staff.StaffProfile",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="assigned_reports",
        verbose_name="Assigned Staff",
    )
    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reports_assigned",
        verbose_name="Assigned By",
    )
    due_date = models.DateField(
        null=True,
        blank=True,
        verbose_name="Due Date",
    )
    assignment_notes = models.TextField(
        blank=True,
        default="",
        verbose_name="Assignment Notes",
    )

    # ── Completion & review ──────────────────────────────────────────
    completion_notes = models.TextField(
        blank=True,
        default="",
        verbose_name="Completion Notes",
    )
    admin_notes = models.TextField(
        blank=True,
        default="",
        verbose_name="Admin Notes",
    )
    rejection_reason = models.TextField(
        blank=True,
        default="",
        verbose_name="Rejection Reason",
    )
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reports_reviewed",
        verbose_name="Reviewed By",
    )

    # ── Timestamps ───────────────────────────────────────────────────
    assigned_at = models.DateTimeField(null=True, blank=True, verbose_name="Assigned At")
    completed_at = models.DateTimeField(null=True, blank=True, verbose_name="Completed At")
    reviewed_at = models.DateTimeField(null=True, blank=True, verbose_name="Reviewed At")
    rejected_at = models.DateTimeField(null=True, blank=True, verbose_name="Rejected At")

    class Meta:
        verbose_name = "Report"
        verbose_name_plural = "Reports"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["status", "review_state"], name="report_status_review_idx"),
            models.Index(fields=["assigned_staff", "status"], name="report_staff_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(progress__gte=MIN_PROGRESS) & Q(progress__lte=MAX_PROGRESS),
                name="report_progress_within_bounds",
            ),
            models.CheckConstraint(
                condition=(
                    ~Q(review_state__in=[ReviewState.AWAITING_REVIEW, ReviewState.APPROVED])
                    | Q(status=ReportStatus.COMPLETED)
                ),
                name="report_review_state_requires_completed",
            ),
            models.CheckConstraint(
                condition=(
                    Q(location_latitude__isnull=True, location_longitude__isnull=True)
                    | Q(location_latitude__isnull=False, location_longitude__isnull=False)
                ),
                name="report_coordinates_both_or_neither",
            ),
        ]

    def __str__(self):
        return f"Report #{self.pk}: {self.title} [{self.get_status_display()}]"

    @property
    def is_terminal(self) -> bool:
        """Approved completions accept no further lifecycle transitions."""
        return self.review_state == ReviewState.APPROVED

    @property
    def is_overdue(self) -> bool:
        if self.due_date is None or self.status == ReportStatus.COMPLETED:
            return False
        return self.due_date < timezone.localdate()


class ReportProgressUpdate(TimeStampedModel):
    """
    Immutable audit entry written by every lifecycle transition.

    ``percentage`` is the report's progress after the transition and
    ``status`` its status after the transition; ``from_status`` keeps
    the status it left.  Rows are never updated or reordered.
    """

    report = models.ForeignKey(
        Report,
        on_delete=models.CASCADE,
        related_name="progress_updates",
        verbose_name="Report",
    )
    from_status = models.CharField(
        max_length=20,
        choices=ReportStatus.choices,
        verbose_name="Previous Status",
    )
    status = models.CharField(
        max_length=20,
        choices=ReportStatus.choices,
        verbose_name="New Status",
    )
    percentage = models.PositiveSmallIntegerField(
        verbose_name="Progress (%)",
    )
    description = models.TextField(
        blank=True,
        default="",
        verbose_name="Description",
    )
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="report_progress_updates",
        verbose_name="Actor",
    )

    class Meta:
        verbose_name = "Report Progress Update"
        verbose_name_plural = "Report Progress Updates"
        ordering = ["created_at", "id"]

    def __str__(self):
        return (
            f"Report #{self.report_id}: "
            f"{self.from_status} → {self.status} ({self.percentage}%)"
        )


class ReportComment(TimeStampedModel):
    """A message in a report's discussion thread."""

    report = models.ForeignKey(
        Report,
        on_delete=models.CASCADE,
        related_name="comments",
        verbose_name="Report",
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="report_comments",
        verbose_name="Author",
    )
    text = models.TextField(
        max_length=REPORT_COMMENT_MAX_LENGTH,
        verbose_name="Text",
    )

    class Meta:
        verbose_name = "Report Comment"
        verbose_name_plural = "Report Comments"
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"Comment #{self.pk} on report #{self.report_id}"


class ReportUpvote(TimeStampedModel):
    """One user's support for a report; at most one per user and report."""

    report = models.ForeignKey(
        Report,
        on_delete=models.CASCADE,
        related_name="upvotes",
        verbose_name="Report",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="report_upvotes",
        verbose_name="User",
    )

    class Meta:
        verbose_name = "Report Upvote"
        verbose_name_plural = "Report Upvotes"
        constraints = [
            models.UniqueConstraint(
                fields=["report", "user"],
                name="report_upvote_once_per_user",
            ),
        ]

    def __str__(self):
        return f"Upvote on report #{self.report_id} by user #{self.user_id}"
