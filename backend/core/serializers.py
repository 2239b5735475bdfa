"""
Core app serializers.

**Response-only** serializers for the constants catalogue and the
notification inbox.  They work with plain dicts produced by the service
layer (constants) or with ``Notification`` instances.
"""

from __future__ import annotations

from rest_framework import serializers


# ════════════════════════════════════════════════════════════════════
#  System Constants / Enums
# ════════════════════════════════════════════════════════════════════

class ChoiceItemSerializer(serializers.Serializer):
    """
    A single key-label pair representing one choice/enum option.

    Example::

        {"value": "in_progress", "label": "In Progress"}
    """

    value = serializers.CharField(
        help_text="Machine-readable value to send in API requests.",
    )
    label = serializers.CharField(
        help_text="Human-readable display label for the UI.",
    )


class ProgressCheckpointsSerializer(serializers.Serializer):
    assigned = serializers.IntegerField(help_text="Progress set when a report is assigned.")
    rejected = serializers.IntegerField(help_text="Progress a rejected completion is reset to.")
    completed = serializers.IntegerField(help_text="Progress that marks a report completed.")


class SystemConstantsSerializer(serializers.Serializer):
    """
    Top-level response serializer for ``GET /api/core/constants/``.

    Response shape::

        {
            "report_categories": [{"value": "pothole", "label": "Pothole"}, ...],
            "report_statuses": [...],
            "report_priorities": [...],
            "review_states": [...],
            "gallery_statuses": [...],
            "user_roles": [...],
            "report_views": [{"value": "needs_review", "label": "Needs Review"}, ...],
            "progress_checkpoints": {"assigned": 25, "rejected": 75, "completed": 100},
            "category_variations": {"pothole": ["road_repair", "road_maintenance"], ...}
        }
    """

    report_categories = ChoiceItemSerializer(many=True)
    report_statuses = ChoiceItemSerializer(many=True)
    report_priorities = ChoiceItemSerializer(many=True)
    review_states = ChoiceItemSerializer(many=True)
    gallery_statuses = ChoiceItemSerializer(many=True)
    user_roles = ChoiceItemSerializer(many=True)
    report_views = ChoiceItemSerializer(
        many=True,
        help_text="Named report filters accepted by ?view= on /api/reports/.",
    )
    progress_checkpoints = ProgressCheckpointsSerializer()
    category_variations = serializers.DictField(
        child=serializers.ListField(child=serializers.CharField()),
        help_text="Report category → staff specializations accepted as variation matches.",
    )


# ════════════════════════════════════════════════════════════════════
#  Notifications
# ════════════════════════════════════════════════════════════════════

class NotificationSerializer(serializers.Serializer):
    """
    Read-only serializer for ``Notification`` instances.
    """

    id = serializers.IntegerField(read_only=True, help_text="Notification PK.")
    event_type = serializers.CharField(read_only=True)
    title = serializers.CharField(read_only=True)
    message = serializers.CharField(read_only=True)
    is_read = serializers.BooleanField(read_only=True)
    created_at = serializers.DateTimeField(read_only=True)
    content_type = serializers.StringRelatedField(
        read_only=True,
        help_text="Related content type (if any).",
    )
    object_id = serializers.IntegerField(
        read_only=True,
        allow_null=True,
        help_text="PK of the related object (if any).",
    )
