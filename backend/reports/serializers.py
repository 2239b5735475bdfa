"""
Reports app serializers.

Request and Response serializers for the Reports API.  Serializers
handle field definitions, read/write constraints, and field-level
validation only.  Lifecycle rules belong in ``services.py``.

Structure
---------
1. Filter / query-param serializers
2. Report read serializers (list, detail, audit trail, comments, counters)
3. Report write serializers (create, edit, comment)
4. Lifecycle action serializers (assign, progress, complete, review, force)
"""

from __future__ import annotations

from typing import Any

from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from core.constants import (
    REPORT_COMMENT_MAX_LENGTH,
    REPORT_DESCRIPTION_MAX_LENGTH,
    REPORT_TITLE_MAX_LENGTH,
)

from .filters import DEFAULT_ORDERING, ORDERING_CHOICES, REPORT_VIEWS
from .models import (
    Report,
    ReportCategory,
    ReportComment,
    ReportPriority,
    ReportProgressUpdate,
    ReportStatus,
)


# ═══════════════════════════════════════════════════════════════════
#  1. Filter / Query-Parameter Serializers
# ═══════════════════════════════════════════════════════════════════


class ReportFilterSerializer(serializers.Serializer):
    """
    Validates query-parameter filters for ``GET /api/reports/``.

    Query Parameters
    ----------------
    ``view``           : str   — named result set, default ``all``
    ``search``         : str   — title/description/location/reporter text
    ``category``       : str   — one of ``ReportCategory`` values
    ``priority``       : str   — one of ``ReportPriority`` values
    ``ordering``       : str   — e.g. ``-created_at``, ``priority``
    ``assigned_to_me`` : bool  — only reports assigned to the caller
    ``staff``          : int   — PK of the assigned staff profile
    """

    view = serializers.ChoiceField(
        choices=[(name, name) for name in REPORT_VIEWS],
        required=False,
        default="all",
    )
    search = serializers.CharField(required=False, allow_blank=True, max_length=200)
    category = serializers.ChoiceField(choices=ReportCategory.choices, required=False)
    priority = serializers.ChoiceField(choices=ReportPriority.choices, required=False)
    ordering = serializers.ChoiceField(
        choices=[(o, o) for o in ORDERING_CHOICES],
        required=False,
        default=DEFAULT_ORDERING,
    )
    assigned_to_me = serializers.BooleanField(required=False, default=False)
    staff = serializers.IntegerField(required=False, min_value=1)


# ═══════════════════════════════════════════════════════════════════
#  2. Read Serializers
# ═══════════════════════════════════════════════════════════════════


class AssignedStaffSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField(source="display_name")
    specialization_category = serializers.CharField()


class ReportListSerializer(serializers.ModelSerializer):
    """Compact representation for list endpoints."""

    status_display = serializers.CharField(source="get_status_display", read_only=True)
    category_display = serializers.CharField(source="get_category_display", read_only=True)
    reporter = UserSummarySerializer(read_only=True)
    assigned_staff = AssignedStaffSerializer(read_only=True, allow_null=True)
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta:
        model = Report
        fields = [
            "id",
            "title",
            "category",
            "category_display",
            "priority",
            "status",
            "status_display",
            "review_state",
            "progress",
            "location_address",
            "reporter",
            "assigned_staff",
            "due_date",
            "is_overdue",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ReportDetailSerializer(serializers.ModelSerializer):
    """Full representation of a single report."""

    status_display = serializers.CharField(source="get_status_display", read_only=True)
    category_display = serializers.CharField(source="get_category_display", read_only=True)
    review_state_display = serializers.CharField(source="get_review_state_display", read_only=True)
    reporter = UserSummarySerializer(read_only=True)
    assigned_staff = AssignedStaffSerializer(read_only=True, allow_null=True)
    assigned_by = UserSummarySerializer(read_only=True, allow_null=True)
    reviewed_by = UserSummarySerializer(read_only=True, allow_null=True)
    is_overdue = serializers.BooleanField(read_only=True)
    upvote_count = serializers.IntegerField(source="upvotes.count", read_only=True)

    class Meta:
        model = Report
        fields = [
            "id",
            "title",
            "description",
            "category",
            "category_display",
            "priority",
            "location_address",
            "location_latitude",
            "location_longitude",
            "location_landmark",
            "status",
            "status_display",
            "progress",
            "review_state",
            "review_state_display",
            "completion_cycle",
            "reporter",
            "assigned_staff",
            "assigned_by",
            "assigned_at",
            "due_date",
            "is_overdue",
            "assignment_notes",
            "completion_notes",
            "completed_at",
            "admin_notes",
            "rejection_reason",
            "rejected_at",
            "reviewed_by",
            "reviewed_at",
            "upvote_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ReportProgressUpdateSerializer(serializers.ModelSerializer):
    actor = UserSummarySerializer(read_only=True, allow_null=True)

    class Meta:
        model = ReportProgressUpdate
        fields = [
            "id",
            "from_status",
            "status",
            "percentage",
            "description",
            "actor",
            "created_at",
        ]
        read_only_fields = fields


class ReportCommentSerializer(serializers.ModelSerializer):
    author = UserSummarySerializer(read_only=True)

    class Meta:
        model = ReportComment
        fields = ["id", "report", "author", "text", "created_at"]
        read_only_fields = fields


class ReportUpvoteSerializer(serializers.Serializer):
    """Result of an upvote toggle."""

    upvoted = serializers.BooleanField()
    upvote_count = serializers.IntegerField()


class ReportViewCountsSerializer(serializers.Serializer):
    """Per-view report counters for dashboards."""

    all = serializers.IntegerField()
    pending_assignment = serializers.IntegerField()
    in_progress = serializers.IntegerField()
    needs_review = serializers.IntegerField()
    completed_approved = serializers.IntegerField()


# ═══════════════════════════════════════════════════════════════════
#  3. Write Serializers
# ═══════════════════════════════════════════════════════════════════


def _check_coordinate_ranges(attrs: dict[str, Any]) -> dict[str, Any]:
    lat = attrs.get("location_latitude")
    lng = attrs.get("location_longitude")
    if lat is not None and not -90 <= lat <= 90:
        raise serializers.ValidationError({"location_latitude": "Must be between -90 and 90."})
    if lng is not None and not -180 <= lng <= 180:
        raise serializers.ValidationError({"location_longitude": "Must be between -180 and 180."})
    return attrs


class ReportCreateSerializer(serializers.ModelSerializer):
    """
    Input for ``POST /api/reports/``.

    Lifecycle fields are never accepted from the client; every new report
    starts ``pending`` at 0%.
    """

    title = serializers.CharField(max_length=REPORT_TITLE_MAX_LENGTH)
    description = serializers.CharField(max_length=REPORT_DESCRIPTION_MAX_LENGTH)

    class Meta:
        model = Report
        fields = [
            "title",
            "description",
            "category",
            "priority",
            "location_address",
            "location_latitude",
            "location_longitude",
            "location_landmark",
        ]

    def validate_title(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Title cannot be blank.")
        return value

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        lat = attrs.get("location_latitude")
        lng = attrs.get("location_longitude")
        if (lat is None) != (lng is None):
            raise serializers.ValidationError(
                "Latitude and longitude must be provided together."
            )
        return _check_coordinate_ranges(attrs)


class ReportUpdateSerializer(ReportCreateSerializer):
    """
    Input for ``PATCH /api/reports/{id}/``, always bound with
    ``partial=True``.

    Only ranges are checked here; whether latitude and longitude end up
    set together depends on the stored values, which the service checks.
    """

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        return _check_coordinate_ranges(attrs)


class ReportCommentCreateSerializer(serializers.Serializer):
    text = serializers.CharField(max_length=REPORT_COMMENT_MAX_LENGTH)


# ═══════════════════════════════════════════════════════════════════
#  4. Lifecycle Action Serializers
# ═══════════════════════════════════════════════════════════════════


class _ExpectedStatusMixin(serializers.Serializer):
    expected_status = serializers.ChoiceField(
        choices=ReportStatus.choices,
        help_text="The status the client last saw; a mismatch returns 409.",
    )


class ReportAssignSerializer(_ExpectedStatusMixin):
    staff_id = serializers.IntegerField(min_value=1)
    due_date = serializers.DateField(required=False, allow_null=True, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ReportProgressSerializer(_ExpectedStatusMixin):
    # Out-of-range values are clamped by the service, not rejected here.
    percentage = serializers.IntegerField()
    description = serializers.CharField(required=False, allow_blank=True, default="")


class ReportCompleteSerializer(_ExpectedStatusMixin):
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ApproveCompletionSerializer(serializers.Serializer):
    admin_notes = serializers.CharField(required=False, allow_blank=True, default="")


class RejectCompletionSerializer(serializers.Serializer):
    rejection_reason = serializers.CharField(
        allow_blank=False,
        trim_whitespace=True,
        help_text="Why the completed work is not accepted. Required.",
    )


class ForceStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ReportStatus.choices)
    expected_status = serializers.ChoiceField(
        choices=ReportStatus.choices,
        required=False,
        allow_null=True,
        default=None,
        help_text="Optional for the override; a mismatch still returns 409.",
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")


