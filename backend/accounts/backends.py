"""
Custom authentication backend for multi-field login.

Allows users to authenticate using any one of ``username``, ``email``
or ``phone_number`` together with their ``password``.

Registered in ``settings.AUTHENTICATION_BACKENDS`` so that Django's
``authenticate(identifier=..., password=...)`` dispatches to it.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend
from django.db.models import Q

User = get_user_model()


class MultiFieldAuthBackend(ModelBackend):
    """
    Authenticate against username, email, or phone number.
    """

    def authenticate(self, request, identifier=None, password=None, **kwargs):
        """
        Resolve the user by *identifier* and verify *password*.

        Returns the authenticated user, or ``None`` on failure.
        """
        if not identifier or password is None:
            return None

        lookup = Q(username=identifier) | Q(email__iexact=identifier)
        if identifier.strip():
            lookup |= Q(phone_number=identifier)

        try:
            user = User.objects.get(lookup)
        except User.DoesNotExist:
            # Run the default password hasher to mitigate timing attacks
            User().set_password(password)
            return None
        except User.MultipleObjectsReturned:
            # A phone number shared by several accounts is ambiguous
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None
