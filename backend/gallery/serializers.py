"""
Gallery app serializers.
"""

from __future__ import annotations

from typing import Any

from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from reports.models import Report

from .models import GallerySubmission


class GallerySubmissionSerializer(serializers.ModelSerializer):
    """Read model for every gallery endpoint."""

    report_title = serializers.CharField(source="report.title", read_only=True)
    uploaded_by_name = serializers.CharField(source="uploaded_by.display_name", read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)
    reviewed_by = UserSummarySerializer(read_only=True, allow_null=True)

    class Meta:
        model = GallerySubmission
        fields = [
            "id",
            "report",
            "report_title",
            "before_image_ref",
            "after_image_ref",
            "caption",
            "uploaded_by",
            "uploaded_by_name",
            "status",
            "status_display",
            "featured",
            "admin_notes",
            "rejection_reason",
            "reviewed_by",
            "approved_at",
            "rejected_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class GallerySubmissionCreateSerializer(serializers.Serializer):
    before_image_ref = serializers.CharField(max_length=500)
    after_image_ref = serializers.CharField(max_length=500)
    caption = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        if attrs["before_image_ref"].strip() == attrs["after_image_ref"].strip():
            raise serializers.ValidationError("Before and after images must differ.")
        return attrs


class GalleryApproveSerializer(serializers.Serializer):
    admin_notes = serializers.CharField(required=False, allow_blank=True, default="")
    featured = serializers.BooleanField(required=False, default=False)


class GalleryRejectSerializer(serializers.Serializer):
    rejection_reason = serializers.CharField(required=False, allow_blank=True, default="")
    admin_notes = serializers.CharField(required=False, allow_blank=True, default="")


class GalleryFeatureSerializer(serializers.Serializer):
    featured = serializers.BooleanField()


class GalleryStatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    pending = serializers.IntegerField()
    approved = serializers.IntegerField()
    rejected = serializers.IntegerField()
    featured = serializers.IntegerField()


class EligibleReportSerializer(serializers.ModelSerializer):
    """A completed report the caller may document with a gallery pair."""

    class Meta:
        model = Report
        fields = ["id", "title", "category", "location_address", "review_state", "completed_at"]
        read_only_fields = fields
