"""
Feedback app models.

A ``ReportFeedback`` is the reporter's rating of how their issue was
resolved: an overall 1–5 star rating, optional 1–5 ratings for four
aspects of the work, and a short comment.  It can only exist for a
report whose completion an admin has approved, and a reporter rates a
report at most once.  ``sentiment`` is derived from the overall rating
whenever the rating is written.
"""

from django.conf import settings
from django.db import models
from django.db.models import Q

from core.constants import FEEDBACK_COMMENT_MAX_LENGTH, MAX_RATING, MIN_RATING
from core.models import TimeStampedModel


class FeedbackSentiment(models.TextChoices):
    POSITIVE = "positive", "Positive"
    NEUTRAL = "neutral", "Neutral"
    NEGATIVE = "negative", "Negative"


# Aspect ratings, in display order.
ASPECT_FIELDS: tuple[str, ...] = (
    "quality_of_work",
    "timeliness",
    "communication",
    "professionalism",
)


def sentiment_for(rating: int) -> str:
    """4–5 stars read as positive, 2–3 as neutral, 1 as negative."""
    if rating >= 4:
        return FeedbackSentiment.POSITIVE
    if rating >= 2:
        return FeedbackSentiment.NEUTRAL
    return FeedbackSentiment.NEGATIVE


def _rating_in_bounds(field: str, *, nullable: bool = False) -> Q:
    within = Q(**{f"{field}__gte": MIN_RATING}) & Q(**{f"{field}__lte": MAX_RATING})
    return Q(**{f"{field}__isnull": True}) | within if nullable else within


class ReportFeedback(TimeStampedModel):
    report = models.ForeignKey(
        "reports.Report",
        on_delete=models.CASCADE,
        related_name="feedback",
        verbose_name="Report",
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="report_feedback",
        verbose_name="Author",
    )
    rating = models.PositiveSmallIntegerField(
        db_index=True,
        verbose_name="Rating",
    )
    quality_of_work = models.PositiveSmallIntegerField(null=True, blank=True, verbose_name="Quality of Work")
    timeliness = models.PositiveSmallIntegerField(null=True, blank=True, verbose_name="Timeliness")
    communication = models.PositiveSmallIntegerField(null=True, blank=True, verbose_name="Communication")
    professionalism = models.PositiveSmallIntegerField(null=True, blank=True, verbose_name="Professionalism")
    comment = models.TextField(
        max_length=FEEDBACK_COMMENT_MAX_LENGTH,
        blank=True,
        default="",
        verbose_name="Comment",
    )
    is_public = models.BooleanField(
        default=True,
        verbose_name="Public",
    )
    sentiment = models.CharField(
        max_length=10,
        choices=FeedbackSentiment.choices,
        db_index=True,
        verbose_name="Sentiment",
    )

    class Meta:
        verbose_name = "Report Feedback"
        verbose_name_plural = "Report Feedback"
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["report", "author"],
                name="feedback_once_per_report_author",
            ),
            models.CheckConstraint(
                condition=_rating_in_bounds("rating"),
                name="feedback_rating_within_bounds",
            ),
            *(
                models.CheckConstraint(
                    condition=_rating_in_bounds(field, nullable=True),
                    name=f"feedback_{field}_within_bounds",
                )
                for field in ASPECT_FIELDS
            ),
        ]

    def __str__(self):
        return f"Feedback #{self.pk} on report #{self.report_id}: {self.rating}/5"
