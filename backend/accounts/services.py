"""
Accounts Service Layer.

Views stay thin: they validate input through serializers, call a
service method, and return the result wrapped in a DRF ``Response``.

Architecture
------------
- ``UserRegistrationService``  — citizen self-registration.
- ``CurrentUserService``       — "Me" endpoint helpers.
"""

from __future__ import annotations

import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction

from core.domain.exceptions import Conflict

from .models import UserRole

User = get_user_model()

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Registration Service
# ═══════════════════════════════════════════════════════════════════


class UserRegistrationService:
    """
    Encapsulates the citizen self-registration flow.
    """

    @staticmethod
    def register_user(validated_data: dict[str, Any]) -> User:
        """
        Create a new citizen account.

        Parameters
        ----------
        validated_data : dict
            Cleaned data from ``RegisterRequestSerializer``.

        Returns
        -------
        User
            The newly created user, always with role ``citizen``.

        Raises
        ------
        core.domain.exceptions.Conflict
            If the username or e-mail is already taken.
        """
        data = dict(validated_data)
        data.pop("password_confirm", None)
        password = data.pop("password")
        data.pop("role", None)

        conflicts = []
        if User.objects.filter(username=data.get("username")).exists():
            conflicts.append("username")
        if User.objects.filter(email__iexact=data.get("email", "")).exists():
            conflicts.append("email")
        if conflicts:
            raise Conflict(
                f"The following field(s) already exist: {', '.join(conflicts)}."
            )

        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    password=password,
                    role=UserRole.CITIZEN,
                    **data,
                )
        except IntegrityError:
            raise Conflict(
                "A user with one of the provided unique fields already exists."
            )

        logger.info("Registered citizen %s (#%d)", user.username, user.pk)
        return user


# ═══════════════════════════════════════════════════════════════════
#  Current User Service
# ═══════════════════════════════════════════════════════════════════


class CurrentUserService:
    """
    Helpers for the "Me" endpoint.
    """

    @staticmethod
    def get_profile(user: User) -> User:
        """Return the user with the staff profile joined for serialization."""
        return User.objects.select_related("staff_profile").get(pk=user.pk)

    @staticmethod
    def update_profile(user: User, validated_data: dict[str, Any]) -> User:
        """
        Update the authenticated user's own contact fields.

        The user may NOT change their own ``role`` or ``username`` here.

        Raises
        ------
        core.domain.exceptions.Conflict
            If the new e-mail belongs to another account.
        """
        email = validated_data.get("email")
        if email and User.objects.filter(email__iexact=email).exclude(pk=user.pk).exists():
            raise Conflict("The following field(s) already exist: email.")

        for field, value in validated_data.items():
            setattr(user, field, value)
        if validated_data:
            user.save(update_fields=list(validated_data.keys()))
        return CurrentUserService.get_profile(user)
