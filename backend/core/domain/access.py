"""
core.domain.access — Role-scoped queryset selectors and guards.

Shared utilities that each app's service layer calls to scope querysets
by the requesting user's role and to guard role-restricted operations.

╔══════════════════════════════════════════════════════════════════╗
║  Per-app scoping logic does NOT live here.                     ║
║  Each app's ``services.py`` owns its own scope config.         ║
║  This module provides:                                         ║
║    1) ``apply_role_filter`` — role-keyed queryset dispatch.    ║
║    2) ``require_role`` — guard on the caller's role.           ║
║    3) ``get_user_role_name`` — role-name helper.               ║
╚══════════════════════════════════════════════════════════════════╝

Usage in an app's service layer::

    from core.domain.access import apply_role_filter

    REPORT_SCOPE = {
        "admin":   lambda qs, u: qs,
        "staff":   lambda qs, u: qs.filter(assigned_staff__user=u),
        "citizen": lambda qs, u: qs.filter(reporter=u),
    }

    qs = apply_role_filter(Report.objects.all(), user, scope_config=REPORT_SCOPE)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from django.db.models import QuerySet

from core.domain.exceptions import PermissionDenied

if TYPE_CHECKING:
    from accounts.models import User

# Takes (queryset, user) and returns a filtered queryset.
ScopeFilter = Callable[[QuerySet, "User"], QuerySet]

ScopeConfig = dict[str, ScopeFilter]


def get_user_role_name(user: User) -> str | None:
    """
    Return the role name for a user, or ``None`` for anonymous callers.

    Superusers are always treated as ``"admin"`` so that the Django
    ``createsuperuser`` account can drive the admin workflow.
    """
    if not getattr(user, "is_authenticated", False):
        return None
    if user.is_superuser:
        return "admin"
    return getattr(user, "role", None) or None


def apply_role_filter(
    queryset: QuerySet,
    user: User,
    *,
    scope_config: ScopeConfig,
    default: str = "none",
) -> QuerySet:
    """
    Apply the scope filter registered for the user's role.

    Args:
        queryset:     Base (unfiltered) queryset.
        user:         The authenticated user.
        scope_config: Mapping of role name → ``(qs, user) -> qs``.
        default:      What to do when the role has no entry.
                      ``"none"`` (default) → empty queryset.
                      ``"all"`` → return unfiltered.

    Returns:
        The (possibly filtered) queryset.
    """
    role_name = get_user_role_name(user)

    if role_name and role_name in scope_config:
        return scope_config[role_name](queryset, user)

    if default == "none":
        return queryset.none()
    return queryset


def require_role(user: User, *allowed_roles: str, message: str = "") -> None:
    """
    Guard that raises ``PermissionDenied`` if the user's role is not
    among ``allowed_roles``.

    Example::

        require_role(actor, "admin", message="Only admins can assign reports.")
    """
    role_name = get_user_role_name(user)
    if role_name not in allowed_roles:
        raise PermissionDenied(
            message
            or (
                f"Role '{role_name}' is not permitted for this operation. "
                f"Required: {', '.join(allowed_roles)}."
            )
        )
