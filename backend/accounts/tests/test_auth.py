"""
Integration tests — registration, multi-identifier login and ``/me/``.

Endpoints under test:
    POST  /api/accounts/auth/register/   (accounts:register)
    POST  /api/accounts/auth/login/      (accounts:login)
    POST  /api/accounts/auth/token/refresh/ (accounts:token-refresh)
    GET   /api/accounts/me/              (accounts:me)
    PATCH /api/accounts/me/              (accounts:me)
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import UserRole
from staff.models import StaffProfile

User = get_user_model()

_PASSWORD = "Str0ng!Pass99"

_USER_FIELDS = {
    "username":     "login_test_user",
    "email":        "login_test_user@example.com",
    "phone_number": "09130000099",
    "first_name":   "Login",
    "last_name":    "Tester",
}


class TestRegistration(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.url = reverse("accounts:register")

    def _payload(self, **overrides):
        payload = {
            "username": "new_citizen",
            "email": "new_citizen@example.com",
            "phone_number": "09120001111",
            "first_name": "New",
            "last_name": "Citizen",
            "password": _PASSWORD,
            "password_confirm": _PASSWORD,
        }
        payload.update(overrides)
        return payload

    def test_register_creates_citizen(self):
        response = self.client.post(self.url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["role"], "citizen")
        self.assertNotIn("password", response.data)
        self.assertTrue(User.objects.get(username="new_citizen").check_password(_PASSWORD))

    def test_role_in_payload_is_ignored(self):
        response = self.client.post(self.url, self._payload(role="admin"), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(User.objects.get(username="new_citizen").role, UserRole.CITIZEN)

    def test_password_mismatch_is_400(self):
        response = self.client.post(self.url, self._payload(password_confirm="Other!Pass99"), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("password_confirm", response.data)

    def test_duplicate_email_is_409(self):
        User.objects.create_user(username="someone", email="new_citizen@example.com", password=_PASSWORD)
        response = self.client.post(self.url, self._payload(email="NEW_CITIZEN@example.com"), format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "conflict")


class TestAuthLoginMultiIdentifier(TestCase):
    """Login accepts the password with a username, e-mail or phone number."""

    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(password=_PASSWORD, **_USER_FIELDS)

    def setUp(self):
        self.client = APIClient()
        self.login_url = reverse("accounts:login")

    def _post_login(self, identifier: str, password: str):
        return self.client.post(
            self.login_url,
            {"identifier": identifier, "password": password},
            format="json",
        )

    def _assert_token_response(self, response):
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertIn("access", response.data)
        self.assertIn("refresh", response.data)
        self.assertEqual(response.data["user"]["id"], self.user.pk)

    def test_login_with_username(self):
        self._assert_token_response(self._post_login(_USER_FIELDS["username"], _PASSWORD))

    def test_login_with_email_case_insensitive(self):
        self._assert_token_response(self._post_login(_USER_FIELDS["email"].upper(), _PASSWORD))

    def test_login_with_phone_number(self):
        self._assert_token_response(self._post_login(_USER_FIELDS["phone_number"], _PASSWORD))

    def test_wrong_password_is_400(self):
        response = self._post_login(_USER_FIELDS["username"], "WrongPass!1")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertNotIn("access", response.data)

    def test_inactive_user_cannot_log_in(self):
        User.objects.filter(pk=self.user.pk).update(is_active=False)
        response = self._post_login(_USER_FIELDS["username"], _PASSWORD)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_refresh_token_issues_new_access(self):
        tokens = self._post_login(_USER_FIELDS["username"], _PASSWORD).data
        response = self.client.post(
            reverse("accounts:token-refresh"), {"refresh": tokens["refresh"]}, format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)


class TestMe(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(password=_PASSWORD, **_USER_FIELDS)
        staff_user = User.objects.create_user(
            username="me_staff", email="me_staff@example.com",
            password=_PASSWORD, role=UserRole.STAFF,
        )
        cls.profile = StaffProfile.objects.create(user=staff_user, specialization_category="lighting")

    def setUp(self):
        self.client = APIClient()
        self.url = reverse("accounts:me")

    def _login(self, identifier: str):
        response = self.client.post(
            reverse("accounts:login"),
            {"identifier": identifier, "password": _PASSWORD},
            format="json",
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")

    def test_me_requires_authentication(self):
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_returns_profile(self):
        self._login(_USER_FIELDS["username"])
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["username"], _USER_FIELDS["username"])
        self.assertIsNone(response.data["staff_profile_id"])

    def test_me_exposes_staff_profile_id(self):
        self._login("me_staff")
        response = self.client.get(self.url)
        self.assertEqual(response.data["role"], "staff")
        self.assertEqual(response.data["staff_profile_id"], self.profile.pk)

    def test_patch_updates_contact_fields_only(self):
        self._login(_USER_FIELDS["username"])
        response = self.client.patch(
            self.url, {"first_name": "Renamed", "role": "admin"}, format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.first_name, "Renamed")
        self.assertEqual(self.user.role, UserRole.CITIZEN)

    def test_patch_email_taken_is_409(self):
        self._login(_USER_FIELDS["username"])
        response = self.client.patch(self.url, {"email": "me_staff@example.com"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
