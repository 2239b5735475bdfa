"""
Root conftest.py — shared fixtures for the entire test suite.

Provides:
  - ``api_client`` fixture returning a DRF ``APIClient``.
  - ``create_user`` factory fixture for creating test users.
  - ``auth_header`` fixture for authenticated requests (JWT).
  - ``make_staff`` factory creating a staff user with a directory profile.
  - ``make_report`` factory creating a report in a chosen state.
"""

from __future__ import annotations

import pytest
from rest_framework.test import APIClient


@pytest.fixture()
def api_client() -> APIClient:
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture()
def create_user(db):
    """
    Factory fixture that creates a user with sensible defaults.

    Usage::

        def test_something(create_user):
            citizen = create_user(username="alice")
            admin = create_user(username="root", role="admin")
    """
    from accounts.models import User, UserRole

    _counter = 0

    def _factory(
        *,
        username: str | None = None,
        password: str = "TestPass123!",
        email: str | None = None,
        phone_number: str | None = None,
        role=UserRole.CITIZEN,
        is_active: bool = True,
        **kwargs,
    ) -> User:
        nonlocal _counter
        _counter += 1
        if username is None:
            username = f"testuser{_counter}"
        if email is None:
            email = f"{username}@test.local"
        if phone_number is None:
            phone_number = f"0912{_counter:07d}"

        return User.objects.create_user(
            username=username,
            password=password,
            email=email,
            phone_number=phone_number,
            role=role,
            is_active=is_active,
            **kwargs,
        )

    return _factory


@pytest.fixture()
def admin_user(create_user):
    from accounts.models import UserRole

    return create_user(username="admin", role=UserRole.ADMIN, first_name="Ada", last_name="Min")


@pytest.fixture()
def citizen(create_user):
    return create_user(username="citizen", first_name="Carla", last_name="Citizen")


@pytest.fixture()
def make_staff(create_user):
    """
    Factory creating a ``staff``-role user and its ``StaffProfile``.

    Usage::

        road = make_staff("Rhea Road", "road_repair")
        spare = make_staff("Gil General", "general", is_active=False)
    """
    from accounts.models import UserRole
    from staff.models import StaffProfile

    def _make(
        name: str,
        specialization: str,
        *,
        additional=None,
        is_active: bool = True,
    ) -> StaffProfile:
        first, _, last = name.partition(" ")
        user = create_user(role=UserRole.STAFF, first_name=first, last_name=last)
        return StaffProfile.objects.create(
            user=user,
            specialization_category=specialization,
            additional_categories=list(additional or []),
            is_active=is_active,
        )

    return _make


@pytest.fixture()
def make_report(citizen):
    """
    Factory creating a report directly in the database.

    Lifecycle fields may be passed to place the report in any state
    without walking the workflow::

        report = make_report(status="assigned", progress=25, assigned_staff=profile)
    """
    from reports.models import Report

    def _make(*, reporter=None, **fields) -> Report:
        defaults = {
            "title": "Pothole on Main St",
            "description": "Deep pothole near the bus stop.",
            "category": "pothole",
            "priority": "medium",
            "location_address": "12 Main St",
        }
        defaults.update(fields)
        return Report.objects.create(reporter=reporter or citizen, **defaults)

    return _make


@pytest.fixture()
def auth_header(create_user):
    """
    Returns a helper that builds an ``Authorization`` header for a user.

    Pass an existing ``user`` or the keyword arguments of ``create_user``::

        header = auth_header(user=admin_user)
        api_client.credentials(HTTP_AUTHORIZATION=header["Authorization"])

    The returned dict looks like::

        {"Authorization": "Bearer eyJ..."}
    """
    from rest_framework_simplejwt.tokens import AccessToken

    def _make(*, user=None, **user_kwargs) -> dict[str, str]:
        if user is None:
            user = create_user(**user_kwargs)
        token = AccessToken.for_user(user)
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture()
def client_for(auth_header):
    """Returns a helper giving an ``APIClient`` authenticated as ``user``."""

    def _client(user) -> APIClient:
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=auth_header(user=user)["Authorization"])
        return client

    return _client
