"""
Feedback app Service Layer.

Architecture
------------
- ``FeedbackService``      — the reporter's rating of a resolved report:
                             submit, edit and delete.
- ``FeedbackQueryService`` — per-report listings, the caller's own
                             feedback and aggregate rating statistics.

Rules
-----
* Only the citizen who filed a report may rate it, once.
* Feedback opens when the report is ``completed`` **and** its completion
  has been ``approved``; a completion still awaiting review (or sent
  back) is not yet a resolution.
* ``sentiment`` always follows the overall rating.
* Private feedback (``is_public=False``) is visible to its author and
  admins only.
"""

from __future__ import annotations

import logging
from typing import Any

from django.db import transaction
from django.db.models import Avg, Count, Q, QuerySet

from accounts.models import UserRole
from core.constants import MAX_RATING, MIN_RATING
from core.domain.access import get_user_role_name
from core.domain.exceptions import (
    Conflict,
    InvalidReportStatus,
    NotFound,
    PermissionDenied,
)
from core.domain.notifications import NotificationService
from core.domain.transactions import lock_for_update
from reports.models import Report, ReportStatus, ReviewState

from .models import ASPECT_FIELDS, FeedbackSentiment, ReportFeedback, sentiment_for

logger = logging.getLogger(__name__)

# Fields the author may set on submit and change afterwards.
_WRITABLE_FIELDS: tuple[str, ...] = ("rating", *ASPECT_FIELDS, "comment", "is_public")


def _is_admin(user: Any) -> bool:
    return get_user_role_name(user) == UserRole.ADMIN


def _base_queryset() -> QuerySet[ReportFeedback]:
    return ReportFeedback.objects.select_related("report", "author")


# ═══════════════════════════════════════════════════════════════════
#  Feedback Service
# ═══════════════════════════════════════════════════════════════════


class FeedbackService:

    @staticmethod
    @transaction.atomic
    def submit(report_id: int, validated_data: dict[str, Any], actor: Any) -> ReportFeedback:
        """
        Record the reporter's rating of a resolved report.

        Parameters
        ----------
        report_id : int
            PK of the rated report.
        validated_data : dict
            ``rating`` plus any of the aspect ratings, ``comment`` and
            ``is_public``.
        actor : User
            Must be the report's reporter.

        Returns
        -------
        ReportFeedback

        Raises
        ------
        NotFound
            Unknown report.
        PermissionDenied
            ``actor`` did not file the report.
        InvalidReportStatus
            The report is not ``completed`` with an ``approved`` review.
        Conflict
            ``actor`` has already rated this report.
        """
        report = lock_for_update(Report, report_id)
        if report.reporter_id != actor.pk:
            raise PermissionDenied("Only the citizen who filed this report can rate its resolution.")
        if report.status != ReportStatus.COMPLETED or report.review_state != ReviewState.APPROVED:
            raise InvalidReportStatus(
                f"Feedback opens once the completion of report #{report.pk} is approved; "
                f"it is '{report.status}' / '{report.review_state}'."
            )
        if ReportFeedback.objects.filter(report=report, author=actor).exists():
            raise Conflict("You have already left feedback for this report.")

        values = {f: validated_data[f] for f in _WRITABLE_FIELDS if f in validated_data}
        feedback = ReportFeedback.objects.create(
            report=report,
            author=actor,
            sentiment=sentiment_for(values["rating"]),
            **values,
        )
        logger.info(
            "Feedback #%d on report #%d: %d/5 (%s) by %s",
            feedback.pk, report.pk, feedback.rating, feedback.sentiment, actor,
        )

        if report.assigned_staff_id is not None:
            NotificationService.create(
                actor=actor,
                recipients=report.assigned_staff.user,
                event_type="feedback_received",
                payload={"report_id": report.pk, "title": report.title, "rating": feedback.rating},
                related_object=feedback,
            )
        return feedback

    @staticmethod
    @transaction.atomic
    def update(feedback_id: int, validated_data: dict[str, Any], actor: Any) -> ReportFeedback:
        """Change the author's own feedback; ``sentiment`` follows ``rating``."""
        feedback = lock_for_update(ReportFeedback, feedback_id)
        if feedback.author_id != actor.pk:
            raise PermissionDenied("Only the author can edit this feedback.")

        changed = [f for f in _WRITABLE_FIELDS if f in validated_data]
        if not changed:
            return feedback
        for field in changed:
            setattr(feedback, field, validated_data[field])
        feedback.sentiment = sentiment_for(feedback.rating)
        feedback.save(update_fields=[*changed, "sentiment", "updated_at"])

        logger.info("Feedback #%d edited by %s (%s)", feedback.pk, actor, ", ".join(changed))
        return feedback

    @staticmethod
    @transaction.atomic
    def delete(feedback_id: int, actor: Any) -> None:
        """Hard delete.  The author or an admin."""
        feedback = lock_for_update(ReportFeedback, feedback_id)
        if feedback.author_id != actor.pk and not _is_admin(actor):
            raise PermissionDenied("Only the author or an admin can delete this feedback.")
        feedback.delete()
        logger.info("Feedback #%d deleted by %s", feedback_id, actor)


# ═══════════════════════════════════════════════════════════════════
#  Feedback Query Service
# ═══════════════════════════════════════════════════════════════════


class FeedbackQueryService:

    @staticmethod
    def _visible(requesting_user: Any) -> QuerySet[ReportFeedback]:
        qs = _base_queryset()
        if _is_admin(requesting_user):
            return qs
        if requesting_user is None or not requesting_user.is_authenticated:
            return qs.filter(is_public=True)
        return qs.filter(Q(is_public=True) | Q(author=requesting_user))

    @staticmethod
    def list_for_report(requesting_user: Any, report_id: int) -> QuerySet[ReportFeedback]:
        if not Report.objects.filter(pk=report_id).exists():
            raise NotFound(f"Report with id {report_id} not found.")
        return FeedbackQueryService._visible(requesting_user).filter(report_id=report_id)

    @staticmethod
    def get_feedback(requesting_user: Any, feedback_id: int) -> ReportFeedback:
        try:
            return FeedbackQueryService._visible(requesting_user).get(pk=feedback_id)
        except ReportFeedback.DoesNotExist:
            raise NotFound(f"Feedback with id {feedback_id} not found.")

    @staticmethod
    def mine(requesting_user: Any) -> QuerySet[ReportFeedback]:
        return _base_queryset().filter(author=requesting_user)

    @staticmethod
    def stats() -> dict[str, Any]:
        """
        Aggregate over public feedback.

        Returns
        -------
        dict
            ``total``, ``average_rating`` (``None`` without feedback),
            ``by_rating`` (star → count, every star present),
            ``by_sentiment`` and ``aspect_averages``.
        """
        qs = ReportFeedback.objects.filter(is_public=True)
        averages = qs.aggregate(
            average_rating=Avg("rating"),
            **{f"avg_{field}": Avg(field) for field in ASPECT_FIELDS},
        )
        per_star = dict(qs.values_list("rating").annotate(n=Count("id")).order_by())
        per_sentiment = dict(qs.values_list("sentiment").annotate(n=Count("id")).order_by())

        def _rounded(value):
            return None if value is None else round(value, 2)

        return {
            "total": sum(per_star.values()),
            "average_rating": _rounded(averages["average_rating"]),
            "by_rating": {str(star): per_star.get(star, 0) for star in range(MIN_RATING, MAX_RATING + 1)},
            "by_sentiment": {s.value: per_sentiment.get(s.value, 0) for s in FeedbackSentiment},
            "aspect_averages": {
                field: _rounded(averages[f"avg_{field}"]) for field in ASPECT_FIELDS
            },
        }
