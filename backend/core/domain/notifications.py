"""
core.domain.notifications — Synchronous notification creation helper.

Centralises notification creation so every workflow service uses one
consistent entry-point rather than directly constructing
``Notification`` objects.  Delivery (push, e-mail, SMS) is handled by
an external service that reads these rows; this module only records
them.

Design decisions
----------------
* **Synchronous** — rows are written in the calling thread, inside the
  caller's transaction, so a rolled-back transition leaves no orphan
  notification behind.
* **Supports multiple recipients** — pass a single ``User`` or an
  iterable of ``User`` instances.
* **Generic relation** — ``related_object`` is optional; if provided
  its ``ContentType`` and PK are stored via the ``Notification`` model's
  ``GenericForeignKey``.
* **Templated messages** — ``payload`` keys are interpolated into the
  message template; unknown placeholders render as ``?``.

Usage::

    from core.domain.notifications import NotificationService

    NotificationService.create(
        actor=admin,
        recipients=report.assigned_staff.user,
        event_type="report_assigned",
        payload={"report_id": report.pk, "title": report.title},
        related_object=report,
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable

from django.contrib.contenttypes.models import ContentType
from django.db import models

if TYPE_CHECKING:
    from accounts.models import User
    from core.models import Notification

logger = logging.getLogger(__name__)

# ── Event-type → human-readable templates ───────────────────────────
_EVENT_TEMPLATES: dict[str, tuple[str, str]] = {
    # event_type: (title, message_template)
    "report_assigned":       ("New Assignment",             "Report #{report_id} \"{title}\" has been assigned to you."),
    "report_status_changed": ("Report Status Updated",      "Report #{report_id} \"{title}\" is now {status}."),
    "report_progress":       ("Progress Update",            "Work on report #{report_id} is {progress}% complete."),
    "completion_submitted":  ("Completion Awaiting Review", "Report #{report_id} \"{title}\" was marked completed and needs review."),
    "completion_approved":   ("Completion Approved",        "The completed work on report #{report_id} was approved."),
    "completion_rejected":   ("Completion Rejected",        "The completion of report #{report_id} was rejected: {reason}"),
    "gallery_submitted":     ("Gallery Submission",         "A before/after pair for report #{report_id} awaits approval."),
    "gallery_approved":      ("Gallery Image Approved",     "Your before/after pair for report #{report_id} was approved."),
    "gallery_rejected":      ("Gallery Image Rejected",     "Your before/after pair for report #{report_id} was rejected: {reason}"),
    "report_commented":      ("New Comment",                "Someone commented on report #{report_id} \"{title}\"."),
    "feedback_received":     ("Citizen Feedback",           "Report #{report_id} \"{title}\" received a {rating}-star rating."),
}


class _SafeDict(dict):
    def __missing__(self, key: str) -> str:
        return "?"


class NotificationService:
    """
    Stateless helper for creating ``Notification`` records.

    All methods are classmethods — no instance state is needed.
    """

    @classmethod
    def render(cls, event_type: str, payload: dict[str, Any] | None = None) -> tuple[str, str]:
        """Return ``(title, message)`` for an event, falling back to the raw event name."""
        title, template = _EVENT_TEMPLATES.get(
            event_type,
            (event_type.replace("_", " ").title(), f"Event: {event_type}"),
        )
        return title, template.format_map(_SafeDict(payload or {}))

    @classmethod
    def create(
        cls,
        *,
        actor: User,
        recipients: User | Iterable[User] | None,
        event_type: str,
        payload: dict[str, Any] | None = None,
        related_object: models.Model | None = None,
    ) -> list[Notification]:
        """
        Create one ``Notification`` per recipient.

        Args:
            actor:          The user who performed the action (logged only).
            recipients:     A single ``User``, an iterable of users, or
                            ``None``.  The actor never notifies themself.
            event_type:     Key into ``_EVENT_TEMPLATES``.  If unknown
                            the raw event_type is used as title.
            payload:        Values interpolated into the message template.
            related_object: Optional model instance linked via
                            ``GenericForeignKey``.

        Returns:
            List of created ``Notification`` instances.
        """
        from core.models import Notification

        if recipients is None:
            recipients = []
        elif isinstance(recipients, models.Model):
            recipients = [recipients]
        else:
            recipients = list(recipients)

        # De-duplicate while preserving order; skip the actor.
        seen: set[int] = set()
        targets = []
        for recipient in recipients:
            if recipient.pk in seen or recipient.pk == getattr(actor, "pk", None):
                continue
            seen.add(recipient.pk)
            targets.append(recipient)

        if not targets:
            logger.debug(
                "No notification recipients for event_type=%s by actor=%s",
                event_type,
                actor,
            )
            return []

        title, message = cls.render(event_type, payload)

        content_type = None
        object_id = None
        if related_object is not None:
            content_type = ContentType.objects.get_for_model(related_object)
            object_id = related_object.pk

        notifications = Notification.objects.bulk_create([
            Notification(
                recipient=recipient,
                event_type=event_type,
                title=title,
                message=message,
                content_type=content_type,
                object_id=object_id,
            )
            for recipient in targets
        ])

        logger.info(
            "Created %d notification(s) [%s] by actor=%s",
            len(notifications),
            event_type,
            actor,
        )
        return notifications
