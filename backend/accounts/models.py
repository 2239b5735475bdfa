"""
Accounts app models.

A custom ``User`` extending Django's ``AbstractUser`` with a single
workflow ``role``: citizens file reports, staff members work on them,
admins route and review them.  Authentication itself (passwords, JWT)
is handled by Django and SimpleJWT.
"""

from django.contrib.auth.models import AbstractUser
from django.db import models


class UserRole(models.TextChoices):
    CITIZEN = "citizen", "Citizen"
    STAFF = "staff", "Staff"
    ADMIN = "admin", "Admin"


class User(AbstractUser):
    """
    Custom user model for the civic issue workflow.

    Login is supported via username, e-mail or phone number together
    with the password (see ``accounts.backends.MultiFieldAuthBackend``).
    Self-registered users are always citizens; staff and admin roles are
    granted by an admin.
    """

    email = models.EmailField(
        unique=True,
        verbose_name="Email Address",
    )
    phone_number = models.CharField(
        max_length=20,
        blank=True,
        default="",
        db_index=True,
        verbose_name="Phone Number",
    )
    role = models.CharField(
        max_length=16,
        choices=UserRole.choices,
        default=UserRole.CITIZEN,
        db_index=True,
        verbose_name="Role",
    )

    REQUIRED_FIELDS = ["email"]

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"

    def has_role(self, role_name: str) -> bool:
        """Check if the user's current role matches the given name."""
        return self.role == role_name

    @property
    def display_name(self) -> str:
        return self.get_full_name() or self.username
