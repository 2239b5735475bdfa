"""
Tests for citizen feedback on resolved reports.

Service-level tests cover who may rate, when, and how often; endpoint
tests check the nested route, input ranges and the public statistics.
"""

from __future__ import annotations

import pytest
from django.db import IntegrityError, transaction
from django.urls import reverse
from rest_framework import status

from core.domain.exceptions import (
    Conflict,
    InvalidReportStatus,
    NotFound,
    PermissionDenied,
)
from core.models import Notification
from feedback.models import FeedbackSentiment, ReportFeedback, sentiment_for
from feedback.services import FeedbackQueryService, FeedbackService
from reports.models import ReportStatus, ReviewState

pytestmark = pytest.mark.django_db

RATING = {"rating": 5, "timeliness": 4, "comment": "Fixed within a week."}


@pytest.fixture()
def crew(make_staff):
    return make_staff("Fay Fixer", "pothole")


@pytest.fixture()
def resolved_report(make_report, crew):
    return make_report(
        status=ReportStatus.COMPLETED, progress=100,
        review_state=ReviewState.APPROVED, assigned_staff=crew,
    )


@pytest.fixture()
def feedback(resolved_report, citizen):
    return FeedbackService.submit(resolved_report.pk, RATING, citizen)


class TestSentiment:

    @pytest.mark.parametrize("rating,expected", [
        (5, FeedbackSentiment.POSITIVE),
        (4, FeedbackSentiment.POSITIVE),
        (3, FeedbackSentiment.NEUTRAL),
        (2, FeedbackSentiment.NEUTRAL),
        (1, FeedbackSentiment.NEGATIVE),
    ])
    def test_follows_rating(self, rating, expected):
        assert sentiment_for(rating) == expected


class TestSubmit:

    def test_reporter_rates_approved_report(self, feedback, citizen, crew):
        assert feedback.rating == 5
        assert feedback.timeliness == 4
        assert feedback.quality_of_work is None
        assert feedback.sentiment == FeedbackSentiment.POSITIVE
        assert feedback.is_public is True
        assert Notification.objects.filter(recipient=crew.user, event_type="feedback_received").exists()

    @pytest.mark.parametrize("state,review", [
        (ReportStatus.PENDING, ReviewState.NOT_APPLICABLE),
        (ReportStatus.IN_PROGRESS, ReviewState.REJECTED),
        (ReportStatus.COMPLETED, ReviewState.AWAITING_REVIEW),
    ])
    def test_unresolved_reports_rejected(self, make_report, crew, citizen, state, review):
        report = make_report(
            status=state,
            progress={ReportStatus.PENDING: 0, ReportStatus.IN_PROGRESS: 75}.get(state, 100),
            review_state=review,
            assigned_staff=None if state == ReportStatus.PENDING else crew,
        )
        with pytest.raises(InvalidReportStatus):
            FeedbackService.submit(report.pk, RATING, citizen)
        assert not ReportFeedback.objects.exists()

    def test_only_reporter_may_rate(self, resolved_report, create_user, crew, admin_user):
        for outsider in (create_user(username="passerby"), crew.user, admin_user):
            with pytest.raises(PermissionDenied):
                FeedbackService.submit(resolved_report.pk, RATING, outsider)

    def test_second_rating_is_conflict(self, feedback, resolved_report, citizen):
        with pytest.raises(Conflict):
            FeedbackService.submit(resolved_report.pk, {"rating": 1}, citizen)

    def test_unknown_report(self, citizen):
        with pytest.raises(NotFound):
            FeedbackService.submit(999_999, RATING, citizen)

    def test_rating_bounds_enforced_in_database(self, resolved_report, citizen):
        with pytest.raises(IntegrityError), transaction.atomic():
            ReportFeedback.objects.create(
                report=resolved_report, author=citizen, rating=6, sentiment=FeedbackSentiment.POSITIVE,
            )


class TestEditAndDelete:

    def test_lowering_rating_updates_sentiment(self, feedback, citizen):
        edited = FeedbackService.update(feedback.pk, {"rating": 2, "timeliness": None}, citizen)
        assert edited.rating == 2
        assert edited.timeliness is None
        assert edited.sentiment == FeedbackSentiment.NEUTRAL
        assert edited.comment == "Fixed within a week."

    def test_only_author_may_edit(self, feedback, admin_user):
        with pytest.raises(PermissionDenied):
            FeedbackService.update(feedback.pk, {"rating": 1}, admin_user)

    def test_author_or_admin_may_delete(self, feedback, crew, admin_user):
        with pytest.raises(PermissionDenied):
            FeedbackService.delete(feedback.pk, crew.user)
        FeedbackService.delete(feedback.pk, admin_user)
        assert not ReportFeedback.objects.exists()


class TestQueries:

    def test_private_feedback_hidden_from_others(self, feedback, citizen, create_user, admin_user, resolved_report):
        FeedbackService.update(feedback.pk, {"is_public": False}, citizen)
        stranger = create_user(username="stranger")

        assert list(FeedbackQueryService.list_for_report(stranger, resolved_report.pk)) == []
        assert list(FeedbackQueryService.list_for_report(citizen, resolved_report.pk)) == [feedback]
        assert list(FeedbackQueryService.list_for_report(admin_user, resolved_report.pk)) == [feedback]
        with pytest.raises(NotFound):
            FeedbackQueryService.get_feedback(stranger, feedback.pk)

    def test_stats_over_public_feedback(self, make_report, crew, create_user):
        ratings = [5, 4, 1]
        for i, rating in enumerate(ratings):
            reporter = create_user(username=f"rater{i}")
            report = make_report(
                reporter=reporter, status=ReportStatus.COMPLETED, progress=100,
                review_state=ReviewState.APPROVED, assigned_staff=crew,
            )
            FeedbackService.submit(report.pk, {"rating": rating, "quality_of_work": rating}, reporter)
        private_reporter = create_user(username="quiet")
        private_report = make_report(
            reporter=private_reporter, status=ReportStatus.COMPLETED, progress=100,
            review_state=ReviewState.APPROVED, assigned_staff=crew,
        )
        FeedbackService.submit(private_report.pk, {"rating": 3, "is_public": False}, private_reporter)

        stats = FeedbackQueryService.stats()

        assert stats["total"] == 3
        assert stats["average_rating"] == pytest.approx(3.33)
        assert stats["by_rating"] == {"1": 1, "2": 0, "3": 0, "4": 1, "5": 1}
        assert stats["by_sentiment"] == {"positive": 2, "neutral": 0, "negative": 1}
        assert stats["aspect_averages"]["quality_of_work"] == pytest.approx(3.33)
        assert stats["aspect_averages"]["timeliness"] is None

    def test_empty_stats(self):
        stats = FeedbackQueryService.stats()
        assert stats["total"] == 0
        assert stats["average_rating"] is None


class TestFeedbackAPI:

    def test_submit_and_list(self, resolved_report, citizen, crew, client_for):
        url = reverse("report-feedback-list", kwargs={"report_pk": resolved_report.pk})

        created = client_for(citizen).post(url, {"rating": 4, "communication": 5}, format="json")
        assert created.status_code == status.HTTP_201_CREATED, created.data
        assert created.data["sentiment"] == "positive"

        listed = client_for(crew.user).get(url)
        assert listed.status_code == status.HTTP_200_OK
        assert [f["rating"] for f in listed.data] == [4]

    @pytest.mark.parametrize("payload", [{}, {"rating": 0}, {"rating": 6}, {"rating": 3, "timeliness": 9}])
    def test_rating_ranges_are_400(self, resolved_report, citizen, client_for, payload):
        url = reverse("report-feedback-list", kwargs={"report_pk": resolved_report.pk})
        response = client_for(citizen).post(url, payload, format="json")
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_report_awaiting_review_is_412(self, make_report, crew, citizen, client_for):
        report = make_report(
            status=ReportStatus.COMPLETED, progress=100,
            review_state=ReviewState.AWAITING_REVIEW, assigned_staff=crew,
        )
        response = client_for(citizen).post(
            reverse("report-feedback-list", kwargs={"report_pk": report.pk}), {"rating": 5}, format="json",
        )
        assert response.status_code == status.HTTP_412_PRECONDITION_FAILED
        assert response.data["code"] == "invalid_report_status"

    def test_duplicate_is_409(self, feedback, resolved_report, citizen, client_for):
        response = client_for(citizen).post(
            reverse("report-feedback-list", kwargs={"report_pk": resolved_report.pk}), {"rating": 5}, format="json",
        )
        assert response.status_code == status.HTTP_409_CONFLICT

    def test_edit_mine_and_delete(self, feedback, citizen, client_for):
        client = client_for(citizen)
        detail = reverse("feedback-detail", kwargs={"pk": feedback.pk})

        edited = client.patch(detail, {"rating": 1}, format="json")
        assert edited.status_code == status.HTTP_200_OK
        assert edited.data["sentiment"] == "negative"

        mine = client.get(reverse("feedback-mine"))
        assert [f["id"] for f in mine.data] == [feedback.pk]

        assert client.delete(detail).status_code == status.HTTP_204_NO_CONTENT

    def test_stats_need_no_authentication(self, feedback, api_client):
        response = api_client.get(reverse("feedback-stats"))
        assert response.status_code == status.HTTP_200_OK
        assert response.data["total"] == 1
        assert response.data["by_rating"]["5"] == 1
