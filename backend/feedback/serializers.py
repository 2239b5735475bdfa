"""
Feedback app serializers.
"""

from __future__ import annotations

from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from core.constants import FEEDBACK_COMMENT_MAX_LENGTH, MAX_RATING, MIN_RATING

from .models import ReportFeedback


def _stars(**kwargs) -> serializers.IntegerField:
    return serializers.IntegerField(min_value=MIN_RATING, max_value=MAX_RATING, **kwargs)


class ReportFeedbackSerializer(serializers.ModelSerializer):
    """Read model for every feedback endpoint."""

    author = UserSummarySerializer(read_only=True)
    report_title = serializers.CharField(source="report.title", read_only=True)
    sentiment_display = serializers.CharField(source="get_sentiment_display", read_only=True)

    class Meta:
        model = ReportFeedback
        fields = [
            "id",
            "report",
            "report_title",
            "author",
            "rating",
            "quality_of_work",
            "timeliness",
            "communication",
            "professionalism",
            "comment",
            "is_public",
            "sentiment",
            "sentiment_display",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ReportFeedbackWriteSerializer(serializers.Serializer):
    """
    Input for submitting feedback, and with ``partial=True`` for editing
    it.  Aspect ratings are optional; ``null`` clears one.
    """

    rating = _stars()
    quality_of_work = _stars(required=False, allow_null=True)
    timeliness = _stars(required=False, allow_null=True)
    communication = _stars(required=False, allow_null=True)
    professionalism = _stars(required=False, allow_null=True)
    comment = serializers.CharField(
        max_length=FEEDBACK_COMMENT_MAX_LENGTH,
        required=False,
        allow_blank=True,
    )
    is_public = serializers.BooleanField(required=False)


class FeedbackStatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    average_rating = serializers.FloatField(allow_null=True)
    by_rating = serializers.DictField(child=serializers.IntegerField())
    by_sentiment = serializers.DictField(child=serializers.IntegerField())
    aspect_averages = serializers.DictField(child=serializers.FloatField(allow_null=True))
