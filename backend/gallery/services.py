"""
Gallery app Service Layer.

Architecture
------------
- ``GallerySubmissionService`` — the before/after submission state
                                 machine: submit, approve, reject,
                                 feature toggle and deletion.
- ``GalleryQueryService``      — review queues, per-report listings,
                                 the public gallery and statistics.

State machine
-------------
::

    (staff submit on completed report) → pending
    pending  ── admin approve ──→ approved   (featured may be toggled)
    pending  ── admin reject  ──→ rejected

``approved`` and ``rejected`` are terminal; approve/reject are committed
with a compare-and-set on ``status`` so two admins racing on the same
submission cannot both succeed.
"""

from __future__ import annotations

import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Q, QuerySet
from django.utils import timezone

from accounts.models import UserRole
from core.domain.access import get_user_role_name, require_role
from core.domain.exceptions import (
    Conflict,
    InvalidReportStatus,
    NotFound,
    PermissionDenied,
    PreconditionFailed,
)
from core.domain.notifications import NotificationService
from core.domain.transactions import compare_and_set, lock_for_update
from reports.models import Report, ReportStatus
from staff.models import StaffProfile

from .models import GallerySubmission, GallerySubmissionStatus

User = get_user_model()

logger = logging.getLogger(__name__)

# Submissions that block a second use of the same before image.
_LIVE_STATUSES = (GallerySubmissionStatus.PENDING, GallerySubmissionStatus.APPROVED)


def _staff_profile_of(user: Any) -> StaffProfile:
    try:
        return StaffProfile.objects.get(user=user)
    except StaffProfile.DoesNotExist:
        raise PermissionDenied("Only staff members can submit gallery images.")


def _is_admin(user: Any) -> bool:
    return get_user_role_name(user) == UserRole.ADMIN


def _base_queryset() -> QuerySet[GallerySubmission]:
    return GallerySubmission.objects.select_related(
        "report", "uploaded_by__user", "reviewed_by",
    )


# ═══════════════════════════════════════════════════════════════════
#  Gallery Submission Service
# ═══════════════════════════════════════════════════════════════════


class GallerySubmissionService:
    """
    Writes to ``GallerySubmission``.  Every method runs in one
    transaction and never touches the report's lifecycle fields.
    """

    @staticmethod
    @transaction.atomic
    def submit(report_id: int, validated_data: dict[str, Any], actor: Any) -> GallerySubmission:
        """
        Submit a before/after pair for a completed report.

        Parameters
        ----------
        report_id : int
            PK of the report the images document.
        validated_data : dict
            ``before_image_ref``, ``after_image_ref`` and ``caption``.
        actor : User
            Must be the report's assigned staff member.

        Returns
        -------
        GallerySubmission
            A new ``pending`` submission.

        Raises
        ------
        NotFound
            Unknown report.
        PermissionDenied
            Caller is not the report's assigned staff member.
        InvalidReportStatus
            The report is not ``completed`` (any review state).
        Conflict
            The before image is already used by a pending or approved
            submission of the same report.
        """
        report = lock_for_update(Report, report_id)
        profile = _staff_profile_of(actor)

        if report.status != ReportStatus.COMPLETED:
            raise InvalidReportStatus(
                f"Gallery images can only be submitted for completed reports; "
                f"report #{report.pk} is '{report.status}'."
            )
        if report.assigned_staff_id != profile.pk:
            raise PermissionDenied("Only the staff member assigned to this report can submit its images.")

        before = validated_data["before_image_ref"]
        duplicate = GallerySubmission.objects.filter(
            report=report,
            before_image_ref=before,
            status__in=_LIVE_STATUSES,
        ).exists()
        if duplicate:
            raise Conflict("This before image has already been submitted for this report.")

        submission = GallerySubmission.objects.create(
            report=report,
            uploaded_by=profile,
            before_image_ref=before,
            after_image_ref=validated_data["after_image_ref"],
            caption=validated_data.get("caption", ""),
            status=GallerySubmissionStatus.PENDING,
        )
        logger.info(
            "Gallery submission #%d for report #%d by %s",
            submission.pk, report.pk, actor,
        )

        NotificationService.create(
            actor=actor,
            recipients=User.objects.filter(
                Q(role=UserRole.ADMIN) | Q(is_superuser=True), is_active=True,
            ),
            event_type="gallery_submitted",
            payload={"report_id": report.pk, "title": report.title},
            related_object=submission,
        )
        return submission

    @staticmethod
    @transaction.atomic
    def approve(
        submission_id: int,
        actor: Any,
        admin_notes: str = "",
        featured: bool = False,
    ) -> GallerySubmission:
        """
        Approve a pending submission, optionally featuring it.

        Raises
        ------
        PermissionDenied, NotFound
        PreconditionFailed
            The submission is not ``pending``.
        """
        require_role(actor, UserRole.ADMIN, message="Only admins can review gallery submissions.")
        locked = lock_for_update(GallerySubmission, submission_id)
        if locked.status != GallerySubmissionStatus.PENDING:
            raise PreconditionFailed(
                f"Gallery submission #{locked.pk} is already '{locked.status}'."
            )

        submission = compare_and_set(
            GallerySubmission,
            locked.pk,
            expected={"status": GallerySubmissionStatus.PENDING},
            changes={
                "status": GallerySubmissionStatus.APPROVED,
                "featured": bool(featured),
                "admin_notes": admin_notes,
                "reviewed_by": actor,
                "approved_at": timezone.now(),
            },
        )
        logger.info(
            "Gallery submission #%d approved (featured=%s) by %s",
            submission.pk, submission.featured, actor,
        )

        NotificationService.create(
            actor=actor,
            recipients=submission.uploaded_by.user,
            event_type="gallery_approved",
            payload={"report_id": submission.report_id},
            related_object=submission,
        )
        return submission

    @staticmethod
    @transaction.atomic
    def reject(
        submission_id: int,
        actor: Any,
        reason: str = "",
        admin_notes: str = "",
    ) -> GallerySubmission:
        """
        Reject a pending submission.  The reason is optional.

        Raises
        ------
        PermissionDenied, NotFound
        PreconditionFailed
            The submission is not ``pending``.
        """
        require_role(actor, UserRole.ADMIN, message="Only admins can review gallery submissions.")
        locked = lock_for_update(GallerySubmission, submission_id)
        if locked.status != GallerySubmissionStatus.PENDING:
            raise PreconditionFailed(
                f"Gallery submission #{locked.pk} is already '{locked.status}'."
            )

        reason = (reason or "").strip()
        submission = compare_and_set(
            GallerySubmission,
            locked.pk,
            expected={"status": GallerySubmissionStatus.PENDING},
            changes={
                "status": GallerySubmissionStatus.REJECTED,
                "featured": False,
                "rejection_reason": reason,
                "admin_notes": admin_notes,
                "reviewed_by": actor,
                "rejected_at": timezone.now(),
            },
        )
        logger.info("Gallery submission #%d rejected by %s", submission.pk, actor)

        NotificationService.create(
            actor=actor,
            recipients=submission.uploaded_by.user,
            event_type="gallery_rejected",
            payload={"report_id": submission.report_id, "reason": reason or "no reason given"},
            related_object=submission,
        )
        return submission

    @staticmethod
    @transaction.atomic
    def set_featured(submission_id: int, featured: bool, actor: Any) -> GallerySubmission:
        """
        Feature or unfeature an approved submission.  ``status`` is not
        changed.

        Raises
        ------
        PreconditionFailed
            The submission is not ``approved``.
        """
        require_role(actor, UserRole.ADMIN, message="Only admins can feature gallery submissions.")
        locked = lock_for_update(GallerySubmission, submission_id)
        if locked.status != GallerySubmissionStatus.APPROVED:
            raise PreconditionFailed("Only approved submissions can be featured.")

        submission = compare_and_set(
            GallerySubmission,
            locked.pk,
            expected={"status": GallerySubmissionStatus.APPROVED},
            changes={"featured": bool(featured)},
        )
        logger.info(
            "Gallery submission #%d featured=%s by %s",
            submission.pk, submission.featured, actor,
        )
        return submission

    @staticmethod
    @transaction.atomic
    def delete(submission_id: int, actor: Any) -> None:
        """Hard delete in any status.  Admins or the uploading staff member."""
        submission = lock_for_update(GallerySubmission, submission_id)
        if not _is_admin(actor) and submission.uploaded_by.user_id != actor.pk:
            raise PermissionDenied("Only admins or the uploader can delete this submission.")
        submission.delete()
        logger.info("Gallery submission #%d deleted by %s", submission_id, actor)


# ═══════════════════════════════════════════════════════════════════
#  Gallery Query Service
# ═══════════════════════════════════════════════════════════════════


class GalleryQueryService:
    """
    Read-only gallery queries.

    Visibility: admins see every submission, staff see their own plus
    approved ones, everyone else sees approved submissions only.
    """

    @staticmethod
    def _visible(requesting_user: Any) -> QuerySet[GallerySubmission]:
        qs = _base_queryset()
        if _is_admin(requesting_user):
            return qs
        approved = Q(status=GallerySubmissionStatus.APPROVED)
        if get_user_role_name(requesting_user) == UserRole.STAFF:
            return qs.filter(approved | Q(uploaded_by__user=requesting_user))
        return qs.filter(approved)

    @staticmethod
    def get_submission(requesting_user: Any, submission_id: int) -> GallerySubmission:
        try:
            return GalleryQueryService._visible(requesting_user).get(pk=submission_id)
        except GallerySubmission.DoesNotExist:
            raise NotFound(f"Gallery submission with id {submission_id} not found.")

    @staticmethod
    def list_for_report(requesting_user: Any, report_id: int) -> QuerySet[GallerySubmission]:
        if not Report.objects.filter(pk=report_id).exists():
            raise NotFound(f"Report with id {report_id} not found.")
        return GalleryQueryService._visible(requesting_user).filter(report_id=report_id)

    @staticmethod
    def pending_queue(requesting_user: Any) -> QuerySet[GallerySubmission]:
        """Admin review queue, oldest first."""
        require_role(requesting_user, UserRole.ADMIN)
        return (
            _base_queryset()
            .filter(status=GallerySubmissionStatus.PENDING)
            .order_by("created_at", "id")
        )

    @staticmethod
    def my_uploads(requesting_user: Any) -> QuerySet[GallerySubmission]:
        profile = _staff_profile_of(requesting_user)
        return _base_queryset().filter(uploaded_by=profile)

    @staticmethod
    def public_gallery() -> QuerySet[GallerySubmission]:
        """Approved submissions, featured first, newest first."""
        return (
            _base_queryset()
            .filter(status=GallerySubmissionStatus.APPROVED)
            .order_by("-featured", "-approved_at", "-id")
        )

    @staticmethod
    def stats(requesting_user: Any) -> dict[str, int]:
        require_role(requesting_user, UserRole.ADMIN)
        return GallerySubmission.objects.aggregate(
            total=Count("id"),
            pending=Count("id", filter=Q(status=GallerySubmissionStatus.PENDING)),
            approved=Count("id", filter=Q(status=GallerySubmissionStatus.APPROVED)),
            rejected=Count("id", filter=Q(status=GallerySubmissionStatus.REJECTED)),
            featured=Count("id", filter=Q(featured=True)),
        )

    @staticmethod
    def eligible_reports(requesting_user: Any) -> QuerySet[Report]:
        """Completed reports assigned to the caller, newest completion first."""
        profile = _staff_profile_of(requesting_user)
        return (
            Report.objects
            .filter(assigned_staff=profile, status=ReportStatus.COMPLETED)
            .order_by("-completed_at", "-id")
        )
