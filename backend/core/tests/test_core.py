"""
Tests for the shared core: domain exception mapping, notification
creation, the notification inbox and the constants endpoint.
"""

from __future__ import annotations

import pytest
from django.urls import reverse
from rest_framework import status

from core.domain.exception_handler import domain_exception_handler
from core.domain.exceptions import (
    Conflict,
    DomainError,
    InvalidReportStatus,
    InvalidStaff,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    PreconditionFailed,
    ValidationError,
)
from core.domain.notifications import NotificationService
from core.models import Notification


class TestExceptionHandler:

    @pytest.mark.parametrize("exc,expected_status,expected_code", [
        (PermissionDenied("no"), 403, "permission_denied"),
        (NotFound("gone"), 404, "not_found"),
        (Conflict("race"), 409, "conflict"),
        (PreconditionFailed("state"), 412, "precondition_failed"),
        (InvalidTransition(current="pending", target="completed"), 412, "invalid_transition"),
        (InvalidReportStatus("open"), 412, "invalid_report_status"),
        (ValidationError("bad"), 400, "validation_error"),
        (InvalidStaff("inactive"), 400, "invalid_staff"),
        (DomainError("other"), 400, "domain_error"),
    ])
    def test_mapping(self, exc, expected_status, expected_code):
        response = domain_exception_handler(exc, {})
        assert response.status_code == expected_status
        assert response.data["code"] == expected_code
        assert response.data["detail"]

    def test_unknown_exceptions_are_left_alone(self):
        assert domain_exception_handler(RuntimeError("boom"), {}) is None


class TestNotificationService:

    def test_render_fills_missing_keys(self):
        title, message = NotificationService.render("report_progress", {"report_id": 7})
        assert title == "Progress Update"
        assert message == "Work on report #7 is ?% complete."

    def test_unknown_event_falls_back_to_name(self):
        title, _ = NotificationService.render("something_else")
        assert title == "Something Else"

    @pytest.mark.django_db
    def test_create_dedupes_and_skips_actor(self, create_user):
        actor = create_user(username="actor")
        a = create_user(username="a")
        b = create_user(username="b")

        created = NotificationService.create(
            actor=actor,
            recipients=[a, b, a, actor],
            event_type="report_assigned",
            payload={"report_id": 1, "title": "Lamp"},
        )

        assert len(created) == 2
        assert set(Notification.objects.values_list("recipient__username", flat=True)) == {"a", "b"}

    @pytest.mark.django_db
    def test_create_links_related_object(self, create_user, make_report):
        report = make_report()
        actor = create_user(username="actor")
        NotificationService.create(
            actor=actor, recipients=report.reporter,
            event_type="report_status_changed", payload={}, related_object=report,
        )
        notification = Notification.objects.get()
        assert notification.content_object == report


@pytest.mark.django_db
class TestNotificationInbox:

    def test_list_unread_and_mark_read(self, citizen, create_user, client_for):
        actor = create_user(username="sender")
        NotificationService.create(actor=actor, recipients=citizen, event_type="report_progress", payload={})
        NotificationService.create(actor=actor, recipients=actor, event_type="report_progress", payload={})
        client = client_for(citizen)

        listing = client.get(reverse("core:notification-list"), {"unread": "true"})
        assert listing.status_code == status.HTTP_200_OK
        assert len(listing.data) == 1

        notification_id = listing.data[0]["id"]
        marked = client.post(reverse("core:notification-mark-as-read", kwargs={"pk": notification_id}))
        assert marked.status_code == status.HTTP_200_OK
        assert marked.data["is_read"] is True
        assert client.get(reverse("core:notification-list"), {"unread": "true"}).data == []

    def test_cannot_read_someone_elses_notification(self, citizen, create_user, client_for):
        other = create_user(username="other")
        [notification] = NotificationService.create(
            actor=citizen, recipients=other, event_type="report_progress", payload={},
        )
        response = client_for(citizen).post(
            reverse("core:notification-mark-as-read", kwargs={"pk": notification.pk})
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
def test_constants_endpoint_is_public(api_client):
    response = api_client.get(reverse("core:system-constants"))

    assert response.status_code == status.HTTP_200_OK
    assert response.data["progress_checkpoints"] == {"assigned": 25, "rejected": 75, "completed": 100}
    assert "pothole" in {c["value"] for c in response.data["report_categories"]}
    assert "needs_review" in {v["value"] for v in response.data["report_views"]}
    assert response.data["category_variations"]["pothole"] == ["road_repair", "road_maintenance"]


@pytest.mark.django_db
class TestNotificationEventTypes:

    def test_event_type_is_stored_and_filterable(self, citizen, create_user, client_for):
        actor = create_user(username="dispatcher")
        NotificationService.create(actor=actor, recipients=citizen, event_type="report_progress", payload={})
        NotificationService.create(actor=actor, recipients=citizen, event_type="report_status_changed", payload={})

        response = client_for(citizen).get(
            reverse("core:notification-list"), {"event_type": "report_status_changed"},
        )

        assert [row["event_type"] for row in response.data] == ["report_status_changed"]

    def test_read_all(self, citizen, create_user, client_for):
        actor = create_user(username="dispatcher")
        NotificationService.create(actor=actor, recipients=citizen, event_type="report_progress", payload={})
        NotificationService.create(actor=actor, recipients=citizen, event_type="report_progress", payload={})
        client = client_for(citizen)

        response = client.post(reverse("core:notification-mark-all-as-read"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"updated": 2}
        assert not Notification.objects.filter(recipient=citizen, is_read=False).exists()


def test_integrity_error_maps_to_409():
    from django.db import IntegrityError

    response = domain_exception_handler(IntegrityError("CHECK constraint failed"), {})

    assert response.status_code == 409
    assert response.data["code"] == "integrity_error"
