"""
Tests for the before/after gallery submission workflow.

Service-level tests cover the state machine; a few endpoint tests check
routing (nested under reports) and error mapping.
"""

from __future__ import annotations

import pytest
from django.db import IntegrityError, transaction
from django.urls import reverse
from rest_framework import status

from core.domain.exceptions import (
    Conflict,
    InvalidReportStatus,
    PermissionDenied,
    PreconditionFailed,
)
from core.models import Notification
from gallery.models import GallerySubmission, GallerySubmissionStatus
from gallery.services import GalleryQueryService, GallerySubmissionService
from reports.models import ReportStatus, ReviewState

pytestmark = pytest.mark.django_db

PAIR = {"before_image_ref": "uploads/before-1.jpg", "after_image_ref": "uploads/after-1.jpg", "caption": "final result"}


@pytest.fixture()
def crew(make_staff):
    return make_staff("Gus Gallery", "pothole")


@pytest.fixture()
def completed_report(make_report, crew):
    return make_report(
        status=ReportStatus.COMPLETED, progress=100,
        review_state=ReviewState.APPROVED, assigned_staff=crew,
    )


@pytest.fixture()
def submission(completed_report, crew):
    return GallerySubmissionService.submit(completed_report.pk, PAIR, crew.user)


class TestSubmit:

    def test_submit_and_approve_featured(self, submission, admin_user):
        assert submission.status == GallerySubmissionStatus.PENDING
        assert submission.featured is False

        approved = GallerySubmissionService.approve(submission.pk, admin_user, admin_notes="", featured=True)

        assert approved.status == GallerySubmissionStatus.APPROVED
        assert approved.featured is True
        assert approved.approved_at is not None
        assert approved.reviewed_by == admin_user

    def test_allowed_while_report_awaits_review(self, make_report, crew):
        report = make_report(
            status=ReportStatus.COMPLETED, progress=100,
            review_state=ReviewState.AWAITING_REVIEW, assigned_staff=crew,
        )
        created = GallerySubmissionService.submit(report.pk, PAIR, crew.user)
        assert created.status == GallerySubmissionStatus.PENDING

    @pytest.mark.parametrize("state", [ReportStatus.PENDING, ReportStatus.ASSIGNED, ReportStatus.IN_PROGRESS])
    def test_work_in_progress_reports_rejected(self, make_report, crew, state):
        report = make_report(status=state, progress=25 if state != ReportStatus.PENDING else 0,
                             assigned_staff=crew if state != ReportStatus.PENDING else None)
        with pytest.raises(InvalidReportStatus):
            GallerySubmissionService.submit(report.pk, PAIR, crew.user)

    def test_only_assigned_staff_may_submit(self, completed_report, make_staff):
        other = make_staff("Otis Other", "pothole")
        with pytest.raises(PermissionDenied):
            GallerySubmissionService.submit(completed_report.pk, PAIR, other.user)

    def test_citizen_cannot_submit(self, completed_report, citizen):
        with pytest.raises(PermissionDenied):
            GallerySubmissionService.submit(completed_report.pk, PAIR, citizen)

    def test_duplicate_before_image_is_conflict(self, submission, completed_report, crew):
        with pytest.raises(Conflict):
            GallerySubmissionService.submit(completed_report.pk, PAIR, crew.user)

    def test_before_image_reusable_after_rejection(self, submission, completed_report, crew, admin_user):
        GallerySubmissionService.reject(submission.pk, admin_user, reason="blurry")
        again = GallerySubmissionService.submit(completed_report.pk, PAIR, crew.user)
        assert again.pk != submission.pk

    def test_submission_notifies_admins(self, admin_user, submission):
        assert Notification.objects.filter(recipient=admin_user, title="Gallery Submission").exists()


class TestReview:

    def test_reject_without_reason(self, submission, admin_user, crew):
        rejected = GallerySubmissionService.reject(submission.pk, admin_user)
        assert rejected.status == GallerySubmissionStatus.REJECTED
        assert rejected.rejection_reason == ""
        assert Notification.objects.filter(recipient=crew.user, title="Gallery Image Rejected").exists()

    def test_decisions_are_terminal(self, submission, admin_user):
        GallerySubmissionService.approve(submission.pk, admin_user)
        with pytest.raises(PreconditionFailed):
            GallerySubmissionService.reject(submission.pk, admin_user, reason="changed my mind")
        with pytest.raises(PreconditionFailed):
            GallerySubmissionService.approve(submission.pk, admin_user)

    def test_staff_cannot_review(self, submission, crew):
        with pytest.raises(PermissionDenied):
            GallerySubmissionService.approve(submission.pk, crew.user)

    def test_feature_toggle_requires_approved(self, submission, admin_user):
        with pytest.raises(PreconditionFailed):
            GallerySubmissionService.set_featured(submission.pk, True, admin_user)

        GallerySubmissionService.approve(submission.pk, admin_user)
        featured = GallerySubmissionService.set_featured(submission.pk, True, admin_user)
        assert featured.featured is True
        unfeatured = GallerySubmissionService.set_featured(submission.pk, False, admin_user)
        assert unfeatured.featured is False
        assert unfeatured.status == GallerySubmissionStatus.APPROVED

    def test_featured_requires_approved_in_database(self, completed_report, crew):
        with pytest.raises(IntegrityError), transaction.atomic():
            GallerySubmission.objects.create(
                report=completed_report, uploaded_by=crew,
                before_image_ref="a", after_image_ref="b", featured=True,
            )


class TestDelete:

    def test_uploader_can_delete(self, submission, crew):
        GallerySubmissionService.delete(submission.pk, crew.user)
        assert not GallerySubmission.objects.filter(pk=submission.pk).exists()

    def test_other_staff_cannot_delete(self, submission, make_staff):
        other = make_staff("Nina Nope", "garbage")
        with pytest.raises(PermissionDenied):
            GallerySubmissionService.delete(submission.pk, other.user)


class TestQueries:

    def test_public_gallery_featured_first(self, completed_report, crew, admin_user):
        plain = GallerySubmissionService.submit(completed_report.pk, PAIR, crew.user)
        star = GallerySubmissionService.submit(
            completed_report.pk,
            {"before_image_ref": "uploads/before-2.jpg", "after_image_ref": "uploads/after-2.jpg"},
            crew.user,
        )
        hidden = GallerySubmissionService.submit(
            completed_report.pk,
            {"before_image_ref": "uploads/before-3.jpg", "after_image_ref": "uploads/after-3.jpg"},
            crew.user,
        )
        GallerySubmissionService.approve(plain.pk, admin_user)
        GallerySubmissionService.approve(star.pk, admin_user, featured=True)

        ids = [s.pk for s in GalleryQueryService.public_gallery()]
        assert ids == [star.pk, plain.pk]
        assert hidden.pk not in ids

    def test_stats(self, submission, admin_user):
        GallerySubmissionService.approve(submission.pk, admin_user, featured=True)
        assert GalleryQueryService.stats(admin_user) == {
            "total": 1, "pending": 0, "approved": 1, "rejected": 0, "featured": 1,
        }

    def test_eligible_reports_are_completed_and_mine(self, completed_report, make_report, crew):
        make_report(status=ReportStatus.IN_PROGRESS, progress=50, assigned_staff=crew)
        assert [r.pk for r in GalleryQueryService.eligible_reports(crew.user)] == [completed_report.pk]

    def test_pending_queue_is_admin_only(self, submission, crew, admin_user):
        assert [s.pk for s in GalleryQueryService.pending_queue(admin_user)] == [submission.pk]
        with pytest.raises(PermissionDenied):
            GalleryQueryService.pending_queue(crew.user)


class TestGalleryEndpoints:

    def test_nested_submit_and_list(self, completed_report, crew, client_for):
        client = client_for(crew.user)
        url = reverse("report-gallery-submission-list", kwargs={"report_pk": completed_report.pk})

        created = client.post(url, PAIR, format="json")
        listed = client.get(url)

        assert created.status_code == status.HTTP_201_CREATED, created.data
        assert created.data["status"] == "pending"
        assert [row["id"] for row in listed.data] == [created.data["id"]]

    def test_submit_on_open_report_returns_412(self, make_report, crew, client_for):
        report = make_report(status=ReportStatus.ASSIGNED, progress=25, assigned_staff=crew)
        url = reverse("report-gallery-submission-list", kwargs={"report_pk": report.pk})
        response = client_for(crew.user).post(url, PAIR, format="json")
        assert response.status_code == status.HTTP_412_PRECONDITION_FAILED
        assert response.data["code"] == "invalid_report_status"

    def test_approve_endpoint_and_public_listing(self, submission, admin_user, client_for, api_client):
        response = client_for(admin_user).post(
            reverse("gallery-submission-approve", kwargs={"pk": submission.pk}),
            {"featured": True},
            format="json",
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.data["featured"] is True

        public = api_client.get(reverse("gallery-submission-public"))
        assert public.status_code == status.HTTP_200_OK
        assert [row["id"] for row in public.data] == [submission.pk]

    def test_feature_pending_returns_412(self, submission, admin_user, client_for):
        response = client_for(admin_user).post(
            reverse("gallery-submission-feature", kwargs={"pk": submission.pk}),
            {"featured": True},
            format="json",
        )
        assert response.status_code == status.HTTP_412_PRECONDITION_FAILED
