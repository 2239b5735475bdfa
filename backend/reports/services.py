"""
Reports app Service Layer.

This module is the **single source of truth** for all report business
logic.  Views must remain thin: validate input via serializers, call a
service method, and return the result wrapped in a DRF ``Response``.

Architecture
------------
- ``ReportCreationService``   — citizen submission, pending-only edits
                                and admin deletion.
- ``ReportLifecycleService``  — the lifecycle state machine: assign,
                                progress, complete, approve, reject,
                                force-status.
- ``AdminReviewService``      — input validation in front of the
                                approve / reject transitions.
- ``ReportEngagementService`` — discussion comments and upvotes.
- ``ReportQueryService``      — role-scoped, read-only queries built on
                                ``reports.filters``.

Lifecycle
---------
┌───────────────────────────┬──────────────────────┬─────────────────┐
│ From                      │ Action               │ To              │
├───────────────────────────┼──────────────────────┼─────────────────┤
│ pending                   │ A assign             │ assigned (25%)  │
│ assigned / in_progress    │ S progress p < 100   │ in_progress (p) │
│ assigned / in_progress    │ S progress 100       │ completed       │
│ completed, awaiting_review│ A approve            │ completed (term)│
│ completed, awaiting_review│ A reject             │ in_progress(75%)│
│ any non-terminal          │ A force-status       │ any             │
└───────────────────────────┴──────────────────────┴─────────────────┘

Concurrency
-----------
Every transition runs in ``transaction.atomic()``: the report row is
read with ``select_for_update``, the caller's ``expected_status`` is
compared with the stored status (mismatch → ``Conflict``; assign,
progress and completion refuse a request without one), legality is
checked (illegal → ``PreconditionFailed``), and the write goes through
``compare_and_set`` guarded on the state that was read.  The audit row
is created in the same transaction, so state and audit commit together
or not at all.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from accounts.models import UserRole
from core.constants import (
    ASSIGNMENT_PROGRESS,
    COMPLETION_PROGRESS,
    MAX_PROGRESS,
    MIN_PROGRESS,
    REJECTION_RESET_PROGRESS,
)
from core.domain.access import apply_role_filter, get_user_role_name, require_role
from core.domain.exceptions import (
    Conflict,
    InvalidStaff,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    PreconditionFailed,
    ValidationError,
)
from core.domain.notifications import NotificationService
from core.domain.transactions import compare_and_set, lock_for_update
from staff.models import StaffProfile

from .filters import ReportFilterSpec, count_by_view, filter_reports
from .models import (
    Report,
    ReportComment,
    ReportProgressUpdate,
    ReportStatus,
    ReportUpvote,
    ReviewState,
)

User = get_user_model()

logger = logging.getLogger(__name__)

# Statuses from which staff may record progress or completion.
_WORK_STATUSES: frozenset[str] = frozenset({ReportStatus.ASSIGNED, ReportStatus.IN_PROGRESS})

REPORT_SCOPE = {
    UserRole.ADMIN: lambda qs, u: qs,
    UserRole.STAFF: lambda qs, u: qs.filter(assigned_staff__user=u),
    UserRole.CITIZEN: lambda qs, u: qs.filter(reporter=u),
}


def clamp_progress(value: int) -> int:
    """Clamp a staff-supplied percentage into ``[0, 100]``."""
    return max(MIN_PROGRESS, min(MAX_PROGRESS, int(value)))


def _admins() -> QuerySet:
    return User.objects.filter(
        Q(role=UserRole.ADMIN) | Q(is_superuser=True),
        is_active=True,
    )


# Submission fields a reporter may still change while the report is pending.
EDITABLE_REPORT_FIELDS: tuple[str, ...] = (
    "title",
    "description",
    "category",
    "priority",
    "location_address",
    "location_latitude",
    "location_longitude",
    "location_landmark",
)


def _join_notes(headline: str, notes: str) -> str:
    notes = (notes or "").strip()
    return f"{headline}: {notes}" if notes else headline


# ═══════════════════════════════════════════════════════════════════
#  Report Creation Service
# ═══════════════════════════════════════════════════════════════════


class ReportCreationService:
    """
    Citizen submission, pre-assignment edits and administrative deletion
    of reports.
    """

    @staticmethod
    def create_report(validated_data: dict[str, Any], reporter: Any) -> Report:
        """
        Create a new ``pending`` report on behalf of ``reporter``.

        Citizens and admins may file reports; staff members record work
        on reports, they do not file them.

        Raises
        ------
        PermissionDenied
            If ``reporter`` is a staff member.
        """
        require_role(
            reporter, UserRole.CITIZEN, UserRole.ADMIN,
            message="Staff members cannot file reports.",
        )
        report = Report.objects.create(
            reporter=reporter,
            status=ReportStatus.PENDING,
            progress=MIN_PROGRESS,
            review_state=ReviewState.NOT_APPLICABLE,
            **validated_data,
        )
        logger.info(
            "Report #%d (%s, %s) filed by %s",
            report.pk, report.category, report.priority, reporter,
        )
        return report

    @staticmethod
    @transaction.atomic
    def update_report(report_id: int, validated_data: dict[str, Any], actor: Any) -> Report:
        """
        Edit the submission fields of a report that nobody has picked up yet.

        Parameters
        ----------
        report_id : int
            PK of the report to edit.
        validated_data : dict
            Any subset of ``EDITABLE_REPORT_FIELDS``; other keys are
            ignored.
        actor : User
            The report's reporter or an admin.

        Returns
        -------
        Report
            The refreshed report.  Lifecycle fields are untouched and no
            audit row is written.

        Raises
        ------
        NotFound
            Unknown report.
        PermissionDenied
            ``actor`` is neither the reporter nor an admin.
        PreconditionFailed
            The report has left ``pending``.
        ValidationError
            The edit leaves only one of latitude / longitude set.
        """
        report = lock_for_update(Report, report_id)
        if report.reporter_id != actor.pk and get_user_role_name(actor) != UserRole.ADMIN:
            raise PermissionDenied("Only the reporter or an admin can edit this report.")
        if report.status != ReportStatus.PENDING:
            raise PreconditionFailed(
                f"Report #{report.pk} can only be edited while pending; it is '{report.status}'."
            )

        changes = {f: validated_data[f] for f in EDITABLE_REPORT_FIELDS if f in validated_data}
        if not changes:
            return report

        lat = changes.get("location_latitude", report.location_latitude)
        lng = changes.get("location_longitude", report.location_longitude)
        if (lat is None) != (lng is None):
            raise ValidationError("Latitude and longitude must be provided together.")

        report = compare_and_set(
            Report,
            report.pk,
            expected={"status": ReportStatus.PENDING},
            changes=changes,
        )
        logger.info(
            "Report #%d edited by %s (%s)",
            report.pk, actor, ", ".join(sorted(changes)),
        )
        return report

    @staticmethod
    @transaction.atomic
    def delete_report(report_id: int, actor: Any) -> None:
        """
        Hard-delete a report together with its audit trail and gallery
        submissions.  Admin only.
        """
        require_role(actor, UserRole.ADMIN, message="Only admins can delete reports.")
        report = lock_for_update(Report, report_id)
        report.delete()
        logger.info("Report #%d deleted by %s", report_id, actor)


# ═══════════════════════════════════════════════════════════════════
#  Report Lifecycle Service
# ═══════════════════════════════════════════════════════════════════


class ReportLifecycleService:
    """
    The report state machine.

    Each public method is one transition and appends exactly one
    ``ReportProgressUpdate``.
    """

    # ── Shared steps ────────────────────────────────────────────────

    @staticmethod
    def _check_expected(report: Report, expected_status: str | None) -> None:
        if not expected_status:
            raise ValidationError(
                "expected_status is required: send the status you last saw for this report."
            )
        if report.status != expected_status:
            raise Conflict(
                f"Report #{report.pk} is '{report.status}', not '{expected_status}'; "
                f"it was changed by another request. Re-fetch and retry."
            )

    @staticmethod
    def _require_worker(report: Report, actor: Any) -> None:
        """Only the assigned staff member or an admin may record work."""
        if get_user_role_name(actor) == UserRole.ADMIN:
            return
        staff = report.assigned_staff
        if staff is None or staff.user_id != actor.pk:
            raise PermissionDenied(
                "Only the assigned staff member or an admin can update this report."
            )

    @staticmethod
    def _commit(
        locked: Report,
        *,
        changes: dict[str, Any],
        actor: Any,
        description: str,
    ) -> Report:
        """
        Write ``changes`` guarded on the state that was read, then append
        the audit entry.  Must run inside ``transaction.atomic()``.
        """
        from_status = locked.status
        report = compare_and_set(
            Report,
            locked.pk,
            expected={
                "status": locked.status,
                "review_state": locked.review_state,
                "progress": locked.progress,
            },
            changes=changes,
        )
        ReportProgressUpdate.objects.create(
            report=report,
            from_status=from_status,
            status=report.status,
            percentage=report.progress,
            description=description,
            actor=actor,
        )
        logger.info(
            "Report #%d %s → %s (%d%%, review=%s) by %s",
            report.pk, from_status, report.status, report.progress,
            report.review_state, actor,
        )
        return report

    @staticmethod
    def _completion_changes(locked: Report, notes: str) -> dict[str, Any]:
        return {
            "status": ReportStatus.COMPLETED,
            "progress": COMPLETION_PROGRESS,
            "review_state": ReviewState.AWAITING_REVIEW,
            "completion_notes": notes,
            "completed_at": timezone.now(),
            "completion_cycle": locked.completion_cycle + 1,
        }

    @staticmethod
    def _notify_completion(report: Report, actor: Any) -> None:
        NotificationService.create(
            actor=actor,
            recipients=_admins(),
            event_type="completion_submitted",
            payload={"report_id": report.pk, "title": report.title},
            related_object=report,
        )

    # ── Transitions ─────────────────────────────────────────────────

    @staticmethod
    @transaction.atomic
    def assign(
        report_id: int,
        *,
        staff_id: int,
        actor: Any,
        expected_status: str,
        due_date: date | None = None,
        notes: str = "",
    ) -> Report:
        """
        Assign a pending report to a staff member.

        Parameters
        ----------
        report_id : int
            PK of the report.
        staff_id : int
            PK of the ``StaffProfile`` chosen by the admin (typically from
            ``AssignmentMatcherService`` output; the matcher never assigns).
        actor : User
            Must be an admin.
        due_date : date, optional
        notes : str
            Stored as ``assignment_notes``.
        expected_status : str
            The status the caller last saw.  Mismatch → ``Conflict``;
            missing → ``ValidationError``.

        Returns
        -------
        Report
            ``status=assigned``, ``progress=25``,
            ``review_state=not_applicable``.

        Raises
        ------
        NotFound, PermissionDenied, Conflict, InvalidTransition, InvalidStaff
        ValidationError
            ``expected_status`` is missing.
        """
        require_role(actor, UserRole.ADMIN, message="Only admins can assign reports.")
        report = lock_for_update(Report, report_id)
        ReportLifecycleService._check_expected(report, expected_status)

        if report.status != ReportStatus.PENDING:
            raise InvalidTransition(
                current=report.status,
                target=ReportStatus.ASSIGNED,
                reason="Only pending reports can be assigned.",
            )

        try:
            staff = StaffProfile.objects.select_related("user").get(pk=staff_id)
        except StaffProfile.DoesNotExist:
            raise InvalidStaff(f"Staff member with id {staff_id} does not exist.")
        if not staff.is_active or not staff.user.is_active:
            raise InvalidStaff(f"Staff member #{staff_id} is inactive and cannot receive assignments.")

        report = ReportLifecycleService._commit(
            report,
            changes={
                "status": ReportStatus.ASSIGNED,
                "progress": ASSIGNMENT_PROGRESS,
                "review_state": ReviewState.NOT_APPLICABLE,
                "assigned_staff": staff,
                "assigned_by": actor,
                "assigned_at": timezone.now(),
                "due_date": due_date,
                "assignment_notes": notes,
            },
            actor=actor,
            description=_join_notes(f"Assigned to {staff.display_name}", notes),
        )

        payload = {"report_id": report.pk, "title": report.title, "status": report.get_status_display()}
        NotificationService.create(
            actor=actor,
            recipients=staff.user,
            event_type="report_assigned",
            payload=payload,
            related_object=report,
        )
        NotificationService.create(
            actor=actor,
            recipients=report.reporter,
            event_type="report_status_changed",
            payload=payload,
            related_object=report,
        )
        return report

    @staticmethod
    @transaction.atomic
    def update_progress(
        report_id: int,
        *,
        percentage: int,
        description: str,
        actor: Any,
        expected_status: str,
    ) -> Report:
        """
        Record work progress on an assigned or in-progress report.

        The percentage is clamped to ``[0, 100]``.  A value lower than
        the stored progress is rejected; a value of 100 completes the
        report and opens a review (``awaiting_review``).

        Raises
        ------
        NotFound, PermissionDenied
        Conflict
            ``expected_status`` no longer matches.
        InvalidTransition
            The report is not ``assigned`` / ``in_progress``.
        ValidationError
            The percentage would lower the stored progress, or
            ``expected_status`` is missing.
        """
        report = lock_for_update(Report, report_id)
        ReportLifecycleService._require_worker(report, actor)
        ReportLifecycleService._check_expected(report, expected_status)

        if report.status not in _WORK_STATUSES:
            raise InvalidTransition(
                current=report.status,
                target=ReportStatus.IN_PROGRESS,
                reason="Progress can only be recorded on assigned or in-progress reports.",
            )

        value = clamp_progress(percentage)
        if value < report.progress:
            raise ValidationError(
                f"Progress cannot go backwards: report #{report.pk} is at "
                f"{report.progress}%, got {value}%."
            )

        if value >= COMPLETION_PROGRESS:
            report = ReportLifecycleService._commit(
                report,
                changes=ReportLifecycleService._completion_changes(report, description),
                actor=actor,
                description=description or "Work completed",
            )
            ReportLifecycleService._notify_completion(report, actor)
        else:
            report = ReportLifecycleService._commit(
                report,
                changes={"status": ReportStatus.IN_PROGRESS, "progress": value},
                actor=actor,
                description=description,
            )

        NotificationService.create(
            actor=actor,
            recipients=report.reporter,
            event_type="report_progress",
            payload={"report_id": report.pk, "title": report.title, "progress": report.progress},
            related_object=report,
        )
        return report

    @staticmethod
    def complete(
        report_id: int,
        *,
        notes: str,
        actor: Any,
        expected_status: str,
    ) -> Report:
        """``update_progress`` with the percentage forced to 100."""
        return ReportLifecycleService.update_progress(
            report_id,
            percentage=COMPLETION_PROGRESS,
            description=notes,
            actor=actor,
            expected_status=expected_status,
        )

    @staticmethod
    @transaction.atomic
    def approve(report_id: int, *, actor: Any, notes: str = "") -> Report:
        """
        Approve a completion that is awaiting review.  Terminal.

        Raises
        ------
        PreconditionFailed
            The report is not awaiting review (including replays of an
            approval that already happened).
        """
        require_role(actor, UserRole.ADMIN, message="Only admins can review completions.")
        report = lock_for_update(Report, report_id)

        if report.status != ReportStatus.COMPLETED or report.review_state != ReviewState.AWAITING_REVIEW:
            raise PreconditionFailed(
                f"Report #{report.pk} is not awaiting review "
                f"(status '{report.status}', review '{report.review_state}')."
            )

        report = ReportLifecycleService._commit(
            report,
            changes={
                "review_state": ReviewState.APPROVED,
                "reviewed_at": timezone.now(),
                "reviewed_by": actor,
                "admin_notes": notes,
            },
            actor=actor,
            description=_join_notes("Admin approved completion", notes),
        )

        recipients = [report.reporter]
        if report.assigned_staff is not None:
            recipients.append(report.assigned_staff.user)
        NotificationService.create(
            actor=actor,
            recipients=recipients,
            event_type="completion_approved",
            payload={"report_id": report.pk, "title": report.title},
            related_object=report,
        )
        return report

    @staticmethod
    @transaction.atomic
    def reject(report_id: int, *, actor: Any, reason: str) -> Report:
        """
        Send a completion awaiting review back to work: ``in_progress``
        at 75%, review state cleared, reason recorded.

        Raises
        ------
        ValidationError
            Blank reason (checked before the report is touched).
        PreconditionFailed
            The report is not awaiting review.
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A rejection reason is required.")

        require_role(actor, UserRole.ADMIN, message="Only admins can review completions.")
        report = lock_for_update(Report, report_id)

        if report.status != ReportStatus.COMPLETED or report.review_state != ReviewState.AWAITING_REVIEW:
            raise PreconditionFailed(
                f"Report #{report.pk} is not awaiting review "
                f"(status '{report.status}', review '{report.review_state}')."
            )

        report = ReportLifecycleService._commit(
            report,
            changes={
                "status": ReportStatus.IN_PROGRESS,
                "progress": REJECTION_RESET_PROGRESS,
                "review_state": ReviewState.NOT_APPLICABLE,
                "rejection_reason": reason,
                "rejected_at": timezone.now(),
                "reviewed_by": actor,
            },
            actor=actor,
            description=f"Admin rejected completion: {reason}",
        )

        if report.assigned_staff is not None:
            NotificationService.create(
                actor=actor,
                recipients=report.assigned_staff.user,
                event_type="completion_rejected",
                payload={"report_id": report.pk, "title": report.title, "reason": reason},
                related_object=report,
            )
        return report

    @staticmethod
    @transaction.atomic
    def force_status(
        report_id: int,
        *,
        new_status: str,
        actor: Any,
        notes: str = "",
        expected_status: str | None = None,
    ) -> Report:
        """
        Administrative override to any status from a non-terminal report.

        Side effects keep the review invariant intact:

        - ``pending``     → assignment cleared, progress 0.
        - ``assigned``    → progress 25; a staff member must already be set.
        - ``in_progress`` → progress kept within ``[25, 99]``; staff required.
        - ``completed``   → progress 100, new review cycle (``awaiting_review``).
        - ``rejected``    → report closed without work; ``notes`` kept as reason.

        Raises
        ------
        PermissionDenied, NotFound, Conflict
        InvalidTransition
            The report is approved (terminal), or the target needs an
            assigned staff member and none is set.
        ValidationError
            ``new_status`` is unknown or equals the current status.
        """
        require_role(actor, UserRole.ADMIN, message="Only admins can force a report status.")
        if new_status not in ReportStatus.values:
            raise ValidationError(f"Unknown report status '{new_status}'.")

        report = lock_for_update(Report, report_id)
        if expected_status is not None:
            ReportLifecycleService._check_expected(report, expected_status)

        if report.is_terminal:
            raise InvalidTransition(
                current=report.status,
                target=new_status,
                reason="Approved reports are final.",
            )
        if new_status == report.status:
            raise ValidationError(f"Report #{report.pk} is already '{new_status}'.")

        now = timezone.now()
        changes: dict[str, Any] = {
            "status": new_status,
            "review_state": ReviewState.NOT_APPLICABLE,
        }
        if new_status == ReportStatus.PENDING:
            changes.update(
                progress=MIN_PROGRESS,
                assigned_staff=None,
                assigned_by=None,
                assigned_at=None,
                due_date=None,
            )
        elif new_status in _WORK_STATUSES:
            if report.assigned_staff_id is None:
                raise InvalidTransition(
                    current=report.status,
                    target=new_status,
                    reason="Assign a staff member first.",
                )
            if new_status == ReportStatus.ASSIGNED:
                changes["progress"] = ASSIGNMENT_PROGRESS
            else:
                changes["progress"] = max(
                    ASSIGNMENT_PROGRESS, min(report.progress, COMPLETION_PROGRESS - 1),
                )
        elif new_status == ReportStatus.COMPLETED:
            changes.update(
                ReportLifecycleService._completion_changes(
                    report, notes or report.completion_notes,
                )
            )
        elif new_status == ReportStatus.REJECTED:
            changes.update(rejection_reason=notes, rejected_at=now)

        report = ReportLifecycleService._commit(
            report,
            changes=changes,
            actor=actor,
            description=_join_notes(f"Status forced to '{new_status}' by admin", notes),
        )
        logger.warning(
            "Report #%d status forced to '%s' by %s", report.pk, new_status, actor,
        )

        if new_status == ReportStatus.COMPLETED:
            ReportLifecycleService._notify_completion(report, actor)
        NotificationService.create(
            actor=actor,
            recipients=report.reporter,
            event_type="report_status_changed",
            payload={"report_id": report.pk, "title": report.title, "status": report.get_status_display()},
            related_object=report,
        )
        return report


# ═══════════════════════════════════════════════════════════════════
#  Admin Review Service
# ═══════════════════════════════════════════════════════════════════


class AdminReviewService:
    """
    Front door for the admin review of completed work.

    Validates the request before any state is touched and delegates the
    transition to ``ReportLifecycleService``.  Replaying a decision that
    already happened fails with ``PreconditionFailed`` rather than
    recording a second review.
    """

    @staticmethod
    def approve_completion(report_id: int, actor: Any, admin_notes: str = "") -> Report:
        return ReportLifecycleService.approve(
            report_id, actor=actor, notes=(admin_notes or "").strip(),
        )

    @staticmethod
    def reject_completion(report_id: int, actor: Any, rejection_reason: str) -> Report:
        if not (rejection_reason or "").strip():
            raise ValidationError("A rejection reason is required.")
        return ReportLifecycleService.reject(
            report_id, actor=actor, reason=rejection_reason,
        )


# ═══════════════════════════════════════════════════════════════════
#  Report Engagement Service
# ═══════════════════════════════════════════════════════════════════


class ReportEngagementService:
    """
    Discussion comments and community upvotes.  Neither changes the
    report's lifecycle fields or writes audit rows.

    Comments are part of the case file, so they follow report
    visibility: whoever can retrieve the report can read and post.
    Upvotes only need the report id, so any authenticated user can
    support any report.
    """

    @staticmethod
    def list_comments(requesting_user: Any, report_id: int) -> QuerySet[ReportComment]:
        report = ReportQueryService.get_report_detail(requesting_user, report_id)
        return report.comments.select_related("author").order_by("created_at", "id")

    @staticmethod
    @transaction.atomic
    def add_comment(report_id: int, text: str, actor: Any) -> ReportComment:
        """
        Append a comment and tell the other participants about it.

        Raises
        ------
        NotFound
            Unknown report, or not visible to ``actor``.
        ValidationError
            ``text`` is blank after stripping.
        """
        report = ReportQueryService.get_report_detail(actor, report_id)
        text = (text or "").strip()
        if not text:
            raise ValidationError("Comment text cannot be blank.")

        comment = ReportComment.objects.create(report=report, author=actor, text=text)
        logger.info("Comment #%d on report #%d by %s", comment.pk, report.pk, actor)

        participants = [report.reporter]
        if report.assigned_staff_id is not None:
            participants.append(report.assigned_staff.user)
        recipients = [u for u in participants if u.pk != actor.pk]
        if recipients:
            NotificationService.create(
                actor=actor,
                recipients=recipients,
                event_type="report_commented",
                payload={"report_id": report.pk, "title": report.title},
                related_object=comment,
            )
        return comment

    @staticmethod
    @transaction.atomic
    def delete_comment(report_id: int, comment_id: int, actor: Any) -> None:
        """Remove a comment.  The author or an admin only."""
        try:
            comment = ReportComment.objects.select_for_update().get(pk=comment_id, report_id=report_id)
        except ReportComment.DoesNotExist:
            raise NotFound(f"Comment with id {comment_id} not found on report #{report_id}.")
        if comment.author_id != actor.pk and get_user_role_name(actor) != UserRole.ADMIN:
            raise PermissionDenied("Only the author or an admin can delete this comment.")
        comment.delete()
        logger.info("Comment #%d on report #%d deleted by %s", comment_id, report_id, actor)

    @staticmethod
    @transaction.atomic
    def toggle_upvote(report_id: int, actor: Any) -> dict[str, Any]:
        """
        Add the caller's upvote, or withdraw it if already present.

        Returns
        -------
        dict
            ``{"upvoted": bool, "upvote_count": int}`` after the toggle.

        Raises
        ------
        NotFound
            Unknown report.
        """
        report = lock_for_update(Report, report_id)
        existing = ReportUpvote.objects.filter(report=report, user=actor)
        if existing.exists():
            existing.delete()
            upvoted = False
        else:
            ReportUpvote.objects.create(report=report, user=actor)
            upvoted = True

        count = report.upvotes.count()
        logger.info(
            "Report #%d upvote %s by %s (now %d)",
            report.pk, "added" if upvoted else "withdrawn", actor, count,
        )
        return {"upvoted": upvoted, "upvote_count": count}


# ═══════════════════════════════════════════════════════════════════
#  Report Query Service
# ═══════════════════════════════════════════════════════════════════


class ReportQueryService:
    """
    Read-only, role-scoped report queries.
    """

    @staticmethod
    def _scoped(requesting_user: Any) -> QuerySet[Report]:
        qs = Report.objects.select_related(
            "reporter", "assigned_staff__user", "assigned_by", "reviewed_by",
        )
        return apply_role_filter(qs, requesting_user, scope_config=REPORT_SCOPE)

    @staticmethod
    def get_filtered_queryset(
        requesting_user: Any,
        filters: dict[str, Any],
    ) -> QuerySet[Report]:
        """
        Build a role-scoped, filtered, stably ordered report queryset.

        Parameters
        ----------
        requesting_user : User
            Citizens see their own reports, staff see reports assigned to
            them, admins see everything.
        filters : dict
            Cleaned data from ``ReportFilterSerializer``:
            - ``view``           : named view (``pending_assignment``,
                                   ``in_progress``, ``needs_review``,
                                   ``completed_approved``, ``all``)
            - ``search``         : str
            - ``category``       : str
            - ``priority``       : str
            - ``ordering``       : str (default ``-created_at``)
            - ``assigned_to_me`` : bool
            - ``staff``          : int (assigned staff profile id)
        """
        qs = ReportQueryService._scoped(requesting_user)
        if filters.get("assigned_to_me"):
            qs = qs.filter(assigned_staff__user=requesting_user)
        if filters.get("staff") is not None:
            qs = qs.filter(assigned_staff_id=filters["staff"])

        spec = ReportFilterSpec(
            view=filters.get("view") or "all",
            search=filters.get("search") or "",
            category=filters.get("category") or None,
            priority=filters.get("priority") or None,
            ordering=filters.get("ordering") or "-created_at",
        )
        return filter_reports(qs, spec)

    @staticmethod
    def get_report_detail(requesting_user: Any, report_id: int) -> Report:
        try:
            return ReportQueryService._scoped(requesting_user).get(pk=report_id)
        except Report.DoesNotExist:
            raise NotFound(f"Report with id {report_id} not found.")

    @staticmethod
    def get_progress_history(requesting_user: Any, report_id: int) -> QuerySet[ReportProgressUpdate]:
        """The report's audit trail, oldest first."""
        report = ReportQueryService.get_report_detail(requesting_user, report_id)
        return (
            report.progress_updates
            .select_related("actor")
            .order_by("created_at", "id")
        )

    @staticmethod
    def get_view_counts(requesting_user: Any) -> dict[str, int]:
        """How many visible reports fall in each named view."""
        return count_by_view(ReportQueryService._scoped(requesting_user))
