"""
Staff app Service Layer.

Architecture
------------
- ``StaffDirectoryService``     — staff profile listing, creation,
                                  updates and activation.
- ``AssignmentMatcherService``  — builds a directory snapshot and ranks
                                  staff for a report category via the
                                  pure ``staff.matching`` engine.

All mutating operations are admin-only and enforced here, never in
the views.
"""

from __future__ import annotations

import logging
from typing import Any

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Count, Q, QuerySet

from accounts.models import UserRole
from core.domain.access import require_role
from core.domain.exceptions import Conflict, NotFound, ValidationError

from .matching import StaffCandidate, StaffMatch, normalize_category, rank_staff
from .models import StaffProfile

User = get_user_model()

logger = logging.getLogger(__name__)


def _with_open_assignments(queryset: QuerySet[StaffProfile]) -> QuerySet[StaffProfile]:
    from reports.filters import open_assignment_predicate

    return queryset.annotate(
        open_assignments=Count(
            "assigned_reports",
            filter=open_assignment_predicate("assigned_reports__"),
            distinct=True,
        ),
    )


# ═══════════════════════════════════════════════════════════════════
#  Staff Directory Service
# ═══════════════════════════════════════════════════════════════════


class StaffDirectoryService:
    """
    Reads and maintains the staff directory.
    """

    @staticmethod
    def list_staff(requesting_user: Any, filters: dict[str, Any]) -> QuerySet[StaffProfile]:
        """
        Return staff profiles annotated with ``open_assignments``.

        Parameters
        ----------
        requesting_user : User
            Must be an admin.
        filters : dict
            Cleaned data from ``StaffFilterSerializer``:
            - ``is_active`` : bool
            - ``search``    : str (name, username, specialization)
        """
        require_role(requesting_user, UserRole.ADMIN, message="Only admins can browse the staff directory.")

        qs = _with_open_assignments(StaffProfile.objects.select_related("user"))
        if "is_active" in filters:
            qs = qs.filter(is_active=filters["is_active"])
        term = (filters.get("search") or "").strip()
        if term:
            qs = qs.filter(
                Q(user__first_name__icontains=term)
                | Q(user__last_name__icontains=term)
                | Q(user__username__icontains=term)
                | Q(specialization_category__icontains=term)
            )
        return qs.order_by("user__first_name", "user__last_name", "id")

    @staticmethod
    def get_staff(requesting_user: Any, staff_id: int) -> StaffProfile:
        """
        Retrieve one profile.  Admins may read any profile; a staff
        member may read their own.
        """
        try:
            profile = _with_open_assignments(
                StaffProfile.objects.select_related("user")
            ).get(pk=staff_id)
        except StaffProfile.DoesNotExist:
            raise NotFound(f"Staff member with id {staff_id} not found.")

        if profile.user_id != requesting_user.pk:
            require_role(requesting_user, UserRole.ADMIN)
        return profile

    @staticmethod
    @transaction.atomic
    def create_staff(validated_data: dict[str, Any], actor: Any) -> StaffProfile:
        """
        Create a ``staff``-role user account and its directory profile.

        Raises
        ------
        PermissionDenied
            If ``actor`` is not an admin.
        Conflict
            If the username or e-mail is taken.
        """
        require_role(actor, UserRole.ADMIN, message="Only admins can add staff members.")

        data = dict(validated_data)
        password = data.pop("password")
        account_fields = {
            key: data.pop(key)
            for key in ("username", "email", "first_name", "last_name")
            if key in data
        }
        if User.objects.filter(username=account_fields.get("username")).exists():
            raise Conflict("The following field(s) already exist: username.")
        if User.objects.filter(email__iexact=account_fields.get("email", "")).exists():
            raise Conflict("The following field(s) already exist: email.")

        try:
            user = User.objects.create_user(
                password=password,
                role=UserRole.STAFF,
                phone_number=data.get("phone_number", ""),
                **account_fields,
            )
        except IntegrityError:
            raise Conflict("A user with one of the provided unique fields already exists.")

        profile = StaffProfile.objects.create(user=user, **data)
        logger.info(
            "Staff profile #%d (%s, %s) created by %s",
            profile.pk, user.username, profile.specialization_category, actor,
        )
        return StaffDirectoryService.get_staff(actor, profile.pk)

    @staticmethod
    @transaction.atomic
    def update_staff(staff_id: int, validated_data: dict[str, Any], actor: Any) -> StaffProfile:
        """Update specialization, extra categories, contact or activity."""
        require_role(actor, UserRole.ADMIN, message="Only admins can edit staff members.")

        try:
            profile = StaffProfile.objects.select_for_update().get(pk=staff_id)
        except StaffProfile.DoesNotExist:
            raise NotFound(f"Staff member with id {staff_id} not found.")

        for field, value in validated_data.items():
            setattr(profile, field, value)
        if validated_data:
            profile.save(update_fields=[*validated_data.keys(), "updated_at"])

        logger.info("Staff profile #%d updated by %s: %s", profile.pk, actor, sorted(validated_data))
        return StaffDirectoryService.get_staff(actor, profile.pk)

    @staticmethod
    def set_active(staff_id: int, is_active: bool, actor: Any) -> StaffProfile:
        """
        Activate or deactivate a staff member.  Deactivated staff keep
        their current assignments but are never offered new ones.
        """
        return StaffDirectoryService.update_staff(staff_id, {"is_active": is_active}, actor)


# ═══════════════════════════════════════════════════════════════════
#  Assignment Matcher Service
# ═══════════════════════════════════════════════════════════════════


class AssignmentMatcherService:
    """
    Side-effect-free facade over ``staff.matching.rank_staff``.
    """

    @staticmethod
    def snapshot() -> list[StaffCandidate]:
        """
        Immutable view of every assignable staff member and their load.

        A profile counts only while both it and its login account are
        active, the same test ``ReportLifecycleService.assign`` applies.
        """
        qs = _with_open_assignments(
            StaffProfile.objects.select_related("user").filter(is_active=True, user__is_active=True)
        )
        return [
            StaffCandidate(
                staff_id=profile.pk,
                name=profile.display_name,
                specialization_category=profile.specialization_category,
                additional_categories=frozenset(
                    str(c) for c in (profile.additional_categories or [])
                ),
                is_active=profile.is_active,
                open_assignments=profile.open_assignments,
            )
            for profile in qs
        ]

    @staticmethod
    def rank_staff_for_category(category: str, requesting_user: Any) -> list[StaffMatch]:
        """
        Rank active staff for a report category, best first.

        The category is normalized first, so ``"Pothole"`` and
        ``" pothole "`` rank the same as ``"pothole"``.

        Raises
        ------
        PermissionDenied
            If the caller is not an admin.
        ValidationError
            If ``category`` is not a known report category.
        """
        from reports.models import ReportCategory

        require_role(requesting_user, UserRole.ADMIN, message="Only admins can rank staff for assignment.")
        raw, category = category, normalize_category(category)
        if category not in ReportCategory.values:
            raise ValidationError(
                f"Unknown report category '{raw}'. "
                f"Expected one of: {', '.join(ReportCategory.values)}."
            )

        matches = rank_staff(
            category,
            AssignmentMatcherService.snapshot(),
            settings.REPORT_CATEGORY_VARIATIONS,
        )
        if not matches:
            logger.warning("No active staff available for category '%s'", category)
        return matches
