"""
Service-level tests for the report lifecycle engine
(``ReportLifecycleService`` / ``AdminReviewService``).
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest
from django.db import IntegrityError, transaction

from core.domain.exceptions import (
    Conflict,
    InvalidStaff,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    PreconditionFailed,
    ValidationError,
)
from core.domain.transactions import compare_and_set
from core.models import Notification
from reports.models import Report, ReportProgressUpdate, ReportStatus, ReviewState
from reports.services import AdminReviewService, ReportCreationService, ReportLifecycleService

pytestmark = pytest.mark.django_db


@pytest.fixture()
def staff_a(make_staff):
    return make_staff("Alma Asphalt", "pothole")


@pytest.fixture()
def pending_report(make_report):
    return make_report()


@pytest.fixture()
def assigned_report(pending_report, staff_a, admin_user):
    return ReportLifecycleService.assign(
        pending_report.pk, staff_id=staff_a.pk, actor=admin_user,
        expected_status=ReportStatus.PENDING,
    )


@pytest.fixture()
def awaiting_review(assigned_report, staff_a):
    return ReportLifecycleService.update_progress(
        assigned_report.pk,
        percentage=100,
        description="finished",
        actor=staff_a.user,
        expected_status=ReportStatus.ASSIGNED,
    )


def _audit_count(report) -> int:
    return ReportProgressUpdate.objects.filter(report_id=report.pk).count()


class TestFullLifecycle:

    def test_assign_work_reject_redo_approve(self, pending_report, staff_a, admin_user):
        due = date.today() + timedelta(days=7)

        # 1. assign
        r = ReportLifecycleService.assign(
            pending_report.pk, staff_id=staff_a.pk, actor=admin_user,
            due_date=due, notes="", expected_status=ReportStatus.PENDING,
        )
        assert (r.status, r.progress, r.review_state) == (ReportStatus.ASSIGNED, 25, ReviewState.NOT_APPLICABLE)
        assert r.assigned_staff_id == staff_a.pk
        assert r.due_date == due
        assert r.assigned_at is not None

        # 2. partial progress
        r = ReportLifecycleService.update_progress(
            r.pk, percentage=60, description="half done",
            actor=staff_a.user, expected_status=ReportStatus.ASSIGNED,
        )
        assert (r.status, r.progress) == (ReportStatus.IN_PROGRESS, 60)

        # 3. completion opens a review
        r = ReportLifecycleService.update_progress(
            r.pk, percentage=100, description="finished",
            actor=staff_a.user, expected_status=ReportStatus.IN_PROGRESS,
        )
        assert (r.status, r.progress, r.review_state) == (
            ReportStatus.COMPLETED, 100, ReviewState.AWAITING_REVIEW,
        )
        assert r.completion_cycle == 1
        assert r.completion_notes == "finished"

        # 4. rejection resets to 75
        r = AdminReviewService.reject_completion(r.pk, admin_user, "photo missing")
        assert (r.status, r.progress, r.review_state) == (
            ReportStatus.IN_PROGRESS, 75, ReviewState.NOT_APPLICABLE,
        )
        assert r.rejection_reason == "photo missing"
        assert r.rejected_at is not None

        # 5. redo and approve
        r = ReportLifecycleService.update_progress(
            r.pk, percentage=100, description="redone",
            actor=staff_a.user, expected_status=ReportStatus.IN_PROGRESS,
        )
        assert r.review_state == ReviewState.AWAITING_REVIEW
        assert r.completion_cycle == 2

        r = AdminReviewService.approve_completion(r.pk, admin_user, "good")
        assert (r.status, r.review_state) == (ReportStatus.COMPLETED, ReviewState.APPROVED)
        assert r.is_terminal
        assert r.admin_notes == "good"
        assert r.reviewed_by_id == admin_user.pk

        trail = list(
            ReportProgressUpdate.objects.filter(report=r).values_list("from_status", "status", "percentage")
        )
        assert trail == [
            ("pending", "assigned", 25),
            ("assigned", "in_progress", 60),
            ("in_progress", "completed", 100),
            ("completed", "in_progress", 75),
            ("in_progress", "completed", 100),
            ("completed", "completed", 100),
        ]

    def test_rejection_audit_text_carries_reason(self, awaiting_review, admin_user):
        ReportLifecycleService.reject(awaiting_review.pk, actor=admin_user, reason="photo missing")
        last = ReportProgressUpdate.objects.filter(report=awaiting_review).last()
        assert last.description == "Admin rejected completion: photo missing"
        assert last.actor == admin_user


class TestAssign:

    def test_non_admin_cannot_assign(self, pending_report, staff_a, citizen):
        with pytest.raises(PermissionDenied):
            ReportLifecycleService.assign(
                pending_report.pk, staff_id=staff_a.pk, actor=citizen,
                expected_status=ReportStatus.PENDING,
            )

    def test_unknown_staff_is_invalid_staff(self, pending_report, admin_user):
        with pytest.raises(InvalidStaff):
            ReportLifecycleService.assign(
                pending_report.pk, staff_id=9999, actor=admin_user,
                expected_status=ReportStatus.PENDING,
            )

    def test_inactive_staff_is_invalid_staff(self, pending_report, make_staff, admin_user):
        retired = make_staff("Rita Retired", "pothole", is_active=False)
        with pytest.raises(InvalidStaff):
            ReportLifecycleService.assign(
                pending_report.pk, staff_id=retired.pk, actor=admin_user,
                expected_status=ReportStatus.PENDING,
            )
        pending_report.refresh_from_db()
        assert pending_report.status == ReportStatus.PENDING
        assert _audit_count(pending_report) == 0

    def test_unknown_report_is_not_found(self, staff_a, admin_user):
        with pytest.raises(NotFound):
            ReportLifecycleService.assign(
                4242, staff_id=staff_a.pk, actor=admin_user,
                expected_status=ReportStatus.PENDING,
            )

    def test_stale_expected_status_is_conflict(self, assigned_report, staff_a, admin_user):
        with pytest.raises(Conflict):
            ReportLifecycleService.assign(
                assigned_report.pk, staff_id=staff_a.pk, actor=admin_user,
                expected_status=ReportStatus.PENDING,
            )

    def test_reassigning_is_precondition_failure(self, assigned_report, staff_a, admin_user):
        with pytest.raises(InvalidTransition):
            ReportLifecycleService.assign(
                assigned_report.pk, staff_id=staff_a.pk, actor=admin_user,
                expected_status=ReportStatus.ASSIGNED,
            )

    @pytest.mark.parametrize("missing", [None, ""])
    def test_missing_expected_status_is_rejected(self, missing, pending_report, staff_a, admin_user):
        with pytest.raises(ValidationError):
            ReportLifecycleService.assign(
                pending_report.pk, staff_id=staff_a.pk, actor=admin_user,
                expected_status=missing,
            )
        pending_report.refresh_from_db()
        assert pending_report.status == ReportStatus.PENDING
        assert _audit_count(pending_report) == 0

    def test_assignment_notifies_staff_and_reporter(self, assigned_report, staff_a):
        assert Notification.objects.filter(recipient=staff_a.user, title="New Assignment").exists()
        assert Notification.objects.filter(recipient=assigned_report.reporter).exists()


class TestUpdateProgress:

    def test_progress_cannot_decrease(self, assigned_report, staff_a):
        ReportLifecycleService.update_progress(
            assigned_report.pk, percentage=60, description="",
            actor=staff_a.user, expected_status=ReportStatus.ASSIGNED,
        )
        with pytest.raises(ValidationError):
            ReportLifecycleService.update_progress(
                assigned_report.pk, percentage=40, description="oops",
                actor=staff_a.user, expected_status=ReportStatus.IN_PROGRESS,
            )
        assigned_report.refresh_from_db()
        assert assigned_report.progress == 60

    def test_equal_progress_is_accepted(self, assigned_report, staff_a):
        r = ReportLifecycleService.update_progress(
            assigned_report.pk, percentage=25, description="started",
            actor=staff_a.user, expected_status=ReportStatus.ASSIGNED,
        )
        assert (r.status, r.progress) == (ReportStatus.IN_PROGRESS, 25)

    def test_out_of_range_percentage_is_clamped(self, assigned_report, staff_a):
        r = ReportLifecycleService.update_progress(
            assigned_report.pk, percentage=150, description="",
            actor=staff_a.user, expected_status=ReportStatus.ASSIGNED,
        )
        assert r.progress == 100
        assert r.review_state == ReviewState.AWAITING_REVIEW

    def test_stale_expected_status_is_conflict_and_writes_nothing(self, assigned_report, staff_a):
        before = _audit_count(assigned_report)
        with pytest.raises(Conflict):
            ReportLifecycleService.update_progress(
                assigned_report.pk, percentage=60, description="",
                actor=staff_a.user, expected_status=ReportStatus.IN_PROGRESS,
            )
        assert _audit_count(assigned_report) == before

    def test_other_staff_member_is_denied(self, assigned_report, make_staff):
        intruder = make_staff("Ian Intruder", "pothole")
        with pytest.raises(PermissionDenied):
            ReportLifecycleService.update_progress(
                assigned_report.pk, percentage=60, description="",
                actor=intruder.user, expected_status=ReportStatus.ASSIGNED,
            )

    def test_admin_may_record_progress(self, assigned_report, admin_user):
        r = ReportLifecycleService.update_progress(
            assigned_report.pk, percentage=50, description="on behalf",
            actor=admin_user, expected_status=ReportStatus.ASSIGNED,
        )
        assert r.progress == 50

    def test_progress_on_pending_report_is_illegal(self, pending_report, admin_user):
        with pytest.raises(InvalidTransition):
            ReportLifecycleService.update_progress(
                pending_report.pk, percentage=10, description="",
                actor=admin_user, expected_status=ReportStatus.PENDING,
            )

    def test_progress_without_expected_status_writes_nothing(self, assigned_report, staff_a):
        before = _audit_count(assigned_report)
        with pytest.raises(ValidationError):
            ReportLifecycleService.update_progress(
                assigned_report.pk, percentage=60, description="",
                actor=staff_a.user, expected_status=None,
            )
        assigned_report.refresh_from_db()
        assert assigned_report.progress == 25
        assert _audit_count(assigned_report) == before

    def test_progress_on_completed_report_is_illegal(self, awaiting_review, staff_a):
        with pytest.raises(PreconditionFailed):
            ReportLifecycleService.complete(
                awaiting_review.pk, notes="again", actor=staff_a.user,
                expected_status=ReportStatus.COMPLETED,
            )

    def test_completion_notifies_admins(self, awaiting_review, admin_user):
        assert Notification.objects.filter(
            recipient=admin_user, title="Completion Awaiting Review",
        ).exists()


class TestReview:

    def test_approve_replay_is_precondition_failed_without_new_audit(self, awaiting_review, admin_user):
        AdminReviewService.approve_completion(awaiting_review.pk, admin_user)
        count = _audit_count(awaiting_review)

        with pytest.raises(PreconditionFailed):
            AdminReviewService.approve_completion(awaiting_review.pk, admin_user)
        assert _audit_count(awaiting_review) == count

    def test_reject_after_approve_is_precondition_failed(self, awaiting_review, admin_user):
        AdminReviewService.approve_completion(awaiting_review.pk, admin_user)
        with pytest.raises(PreconditionFailed):
            AdminReviewService.reject_completion(awaiting_review.pk, admin_user, "late change")
        awaiting_review.refresh_from_db()
        assert awaiting_review.review_state == ReviewState.APPROVED

    def test_approve_not_awaiting_review(self, assigned_report, admin_user):
        with pytest.raises(PreconditionFailed):
            AdminReviewService.approve_completion(assigned_report.pk, admin_user)

    @pytest.mark.parametrize("reason", ["", "   "])
    def test_blank_rejection_reason_rejected_before_mutation(self, awaiting_review, admin_user, reason):
        count = _audit_count(awaiting_review)
        with pytest.raises(ValidationError):
            AdminReviewService.reject_completion(awaiting_review.pk, admin_user, reason)
        awaiting_review.refresh_from_db()
        assert awaiting_review.review_state == ReviewState.AWAITING_REVIEW
        assert _audit_count(awaiting_review) == count

    def test_staff_cannot_review(self, awaiting_review, staff_a):
        with pytest.raises(PermissionDenied):
            AdminReviewService.approve_completion(awaiting_review.pk, staff_a.user)


class TestForceStatus:

    def test_force_to_pending_clears_assignment(self, assigned_report, admin_user):
        r = ReportLifecycleService.force_status(
            assigned_report.pk, new_status=ReportStatus.PENDING, actor=admin_user, notes="wrong crew",
        )
        assert (r.status, r.progress, r.assigned_staff_id) == (ReportStatus.PENDING, 0, None)
        last = ReportProgressUpdate.objects.filter(report=r).last()
        assert "wrong crew" in last.description

    def test_force_to_completed_opens_review(self, assigned_report, admin_user):
        r = ReportLifecycleService.force_status(
            assigned_report.pk, new_status=ReportStatus.COMPLETED, actor=admin_user,
        )
        assert (r.progress, r.review_state, r.completion_cycle) == (100, ReviewState.AWAITING_REVIEW, 1)

    def test_force_to_assigned_requires_staff(self, pending_report, admin_user):
        with pytest.raises(InvalidTransition):
            ReportLifecycleService.force_status(
                pending_report.pk, new_status=ReportStatus.ASSIGNED, actor=admin_user,
            )

    def test_force_out_of_review_clears_review_state(self, awaiting_review, admin_user):
        r = ReportLifecycleService.force_status(
            awaiting_review.pk, new_status=ReportStatus.IN_PROGRESS, actor=admin_user,
        )
        assert (r.status, r.progress, r.review_state) == (
            ReportStatus.IN_PROGRESS, 99, ReviewState.NOT_APPLICABLE,
        )

    def test_approved_reports_are_final(self, awaiting_review, admin_user):
        AdminReviewService.approve_completion(awaiting_review.pk, admin_user)
        with pytest.raises(InvalidTransition):
            ReportLifecycleService.force_status(
                awaiting_review.pk, new_status=ReportStatus.PENDING, actor=admin_user,
            )

    def test_same_status_is_validation_error(self, pending_report, admin_user):
        with pytest.raises(ValidationError):
            ReportLifecycleService.force_status(
                pending_report.pk, new_status=ReportStatus.PENDING, actor=admin_user,
            )

    def test_stale_expected_status_is_conflict(self, assigned_report, admin_user):
        with pytest.raises(Conflict):
            ReportLifecycleService.force_status(
                assigned_report.pk, new_status=ReportStatus.REJECTED, actor=admin_user,
                expected_status=ReportStatus.PENDING,
            )


class TestCompareAndSet:

    def test_lost_race_raises_conflict(self, assigned_report):
        stale_status = assigned_report.status
        Report.objects.filter(pk=assigned_report.pk).update(status=ReportStatus.IN_PROGRESS, progress=40)

        with pytest.raises(Conflict):
            compare_and_set(
                Report, assigned_report.pk,
                expected={"status": stale_status},
                changes={"progress": 50},
            )
        assigned_report.refresh_from_db()
        assert assigned_report.progress == 40

    def test_deleted_row_raises_not_found(self, pending_report):
        pk = pending_report.pk
        pending_report.delete()
        with pytest.raises(NotFound):
            compare_and_set(Report, pk, expected={"status": "pending"}, changes={"progress": 1})


class TestStoredInvariants:

    def test_review_state_requires_completed(self, make_report):
        with pytest.raises(IntegrityError), transaction.atomic():
            make_report(status=ReportStatus.IN_PROGRESS, review_state=ReviewState.AWAITING_REVIEW)

    def test_progress_bounded(self, make_report):
        with pytest.raises(IntegrityError), transaction.atomic():
            make_report(progress=101)


class TestCreationAndDeletion:

    def test_citizen_creates_pending_report(self, citizen):
        report = ReportCreationService.create_report(
            {"title": "Broken lamp", "description": "Dark street", "category": "lighting",
             "location_address": "5 Elm St"},
            citizen,
        )
        assert (report.status, report.progress, report.review_state) == (
            ReportStatus.PENDING, 0, ReviewState.NOT_APPLICABLE,
        )

    def test_staff_cannot_file_reports(self, staff_a):
        with pytest.raises(PermissionDenied):
            ReportCreationService.create_report(
                {"title": "x", "description": "y", "category": "other", "location_address": "z"},
                staff_a.user,
            )

    def test_admin_deletes_report_with_trail(self, assigned_report, admin_user):
        ReportCreationService.delete_report(assigned_report.pk, admin_user)
        assert not Report.objects.filter(pk=assigned_report.pk).exists()
        assert not ReportProgressUpdate.objects.filter(report_id=assigned_report.pk).exists()
