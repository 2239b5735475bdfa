"""
Core app services — **Service Layer**.

Cross-app read helpers served by the core app: the public constants
catalogue and the per-user notification inbox.

Models from other apps are imported lazily inside methods so the core
app never creates an import cycle with the apps that depend on it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.db.models import QuerySet
from django.utils import timezone

from core.constants import (
    ASSIGNMENT_PROGRESS,
    COMPLETION_PROGRESS,
    REJECTION_RESET_PROGRESS,
)
from core.domain.exceptions import NotFound

if TYPE_CHECKING:
    from accounts.models import User
    from core.models import Notification


# ════════════════════════════════════════════════════════════════════
#  System Constants
# ════════════════════════════════════════════════════════════════════

class SystemConstantsService:
    """
    Gathers all workflow choice enumerations into a single dict for
    clients that build dropdowns, filters, and labels.

    Stateless — it does not depend on the requesting user.
    """

    @staticmethod
    def get_constants() -> dict[str, Any]:
        """Return all system constants as a dict."""
        from accounts.models import UserRole
        from gallery.models import GallerySubmissionStatus
        from reports.filters import REPORT_VIEWS
        from reports.models import (
            ReportCategory,
            ReportPriority,
            ReportStatus,
            ReviewState,
        )

        to_list = SystemConstantsService._choices_to_list

        return {
            "report_categories": to_list(ReportCategory),
            "report_statuses": to_list(ReportStatus),
            "report_priorities": to_list(ReportPriority),
            "review_states": to_list(ReviewState),
            "gallery_statuses": to_list(GallerySubmissionStatus),
            "user_roles": to_list(UserRole),
            "report_views": [
                {"value": name, "label": name.replace("_", " ").title()}
                for name in REPORT_VIEWS
            ],
            "progress_checkpoints": {
                "assigned": ASSIGNMENT_PROGRESS,
                "rejected": REJECTION_RESET_PROGRESS,
                "completed": COMPLETION_PROGRESS,
            },
            "category_variations": {
                category: list(synonyms)
                for category, synonyms in settings.REPORT_CATEGORY_VARIATIONS.items()
            },
        }

    @staticmethod
    def _choices_to_list(
        choices_class: type,
    ) -> list[dict[str, str]]:
        """
        Convert a Django ``TextChoices`` class to a list of
        ``{"value": ..., "label": ...}`` dicts.
        """
        return [
            {"value": str(value), "label": str(label)}
            for value, label in choices_class.choices
        ]


# ═══════════════════════════════════════════════════════════════════
#  Notification Inbox
# ═══════════════════════════════════════════════════════════════════

class NotificationInboxService:
    """
    Lists and marks notifications as read for a given user.

    Creation goes through ``core.domain.notifications.NotificationService``.
    """

    def __init__(self, user: User) -> None:
        self.user = user

    def list_notifications(
        self,
        *,
        unread_only: bool = False,
        event_type: str | None = None,
    ) -> QuerySet[Notification]:
        """Return the user's notifications, most recent first."""
        from core.models import Notification

        qs = (
            Notification.objects
            .filter(recipient=self.user)
            .select_related("content_type")
        )
        if unread_only:
            qs = qs.filter(is_read=False)
        if event_type:
            qs = qs.filter(event_type=event_type)
        return qs.order_by("-created_at", "-id")

    def mark_as_read(self, notification_id: int) -> Notification:
        """Mark a single notification as read."""
        from core.models import Notification

        try:
            notification = Notification.objects.get(
                pk=notification_id,
                recipient=self.user,
            )
        except Notification.DoesNotExist:
            raise NotFound(f"Notification with id {notification_id} not found.")

        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read", "updated_at"])
        return notification

    def mark_all_as_read(self) -> int:
        """Mark every unread notification of the user as read; return how many changed."""
        from core.models import Notification

        return (
            Notification.objects
            .filter(recipient=self.user, is_read=False)
            .update(is_read=True, updated_at=timezone.now())
        )
