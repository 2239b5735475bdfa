"""
Gallery app models.

A ``GallerySubmission`` is a before/after image pair a staff member
submits for a completed report.  It has its own small state machine
(``pending → approved | rejected``), independent of the report's
lifecycle once the report is completed.  Images are referenced by an
opaque storage key or URL; upload handling is not part of this app.
"""

from django.conf import settings
from django.db import models
from django.db.models import Q

from core.models import TimeStampedModel


class GallerySubmissionStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class GallerySubmission(TimeStampedModel):
    """
    Before/after pair awaiting (or past) admin review.

    ``approved`` and ``rejected`` are terminal for ``status``; the
    ``featured`` flag may still be toggled on approved submissions.
    """

    report = models.ForeignKey(
        "reports.Report",
        on_delete=models.CASCADE,
        related_name="gallery_submissions",
        verbose_name="Report",
    )
    before_image_ref = models.CharField(
        max_length=500,
        verbose_name="Before Image",
    )
    after_image_ref = models.CharField(
        max_length=500,
        verbose_name="After Image",
    )
    caption = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Caption",
    )
    uploaded_by = models.ForeignKey(
        "staff.StaffProfile",
        on_delete=models.CASCADE,
        related_name="gallery_submissions",
        verbose_name="Uploaded By",
    )
    status = models.CharField(
        max_length=20,
        choices=GallerySubmissionStatus.choices,
        default=GallerySubmissionStatus.PENDING,
        db_index=True,
        verbose_name="Status",
    )
    featured = models.BooleanField(
        default=False,
        verbose_name="Featured",
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
        related_name="gallery_reviews",
        verbose_name="Reviewed By",
    )
    approved_at = models.DateTimeField(null=True, blank=True, verbose_name="Approved At")
    rejected_at = models.DateTimeField(null=True, blank=True, verbose_name="Rejected At")

    class Meta:
        verbose_name = "Gallery Submission"
        verbose_name_plural = "Gallery Submissions"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["status", "featured"], name="gallery_status_featured_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(featured=False) | Q(status=GallerySubmissionStatus.APPROVED),
                name="gallery_featured_requires_approved",
            ),
        ]

    def __str__(self):
        return f"Gallery #{self.pk} for report #{self.report_id} [{self.get_status_display()}]"
