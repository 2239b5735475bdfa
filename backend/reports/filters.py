"""
reports.filters — the view filter engine.

Named result sets ("pending assignment", "needs review", ...) are
expressed once, as composable ``Q`` predicates, and shared by every
consumer: the report list endpoint, the per-view counters and the staff
load annotation.  Nothing here writes to the database.

A query is described by a ``ReportFilterSpec``::

    spec = ReportFilterSpec(view="needs_review", search="main st", priority="high")
    qs = filter_reports(Report.objects.all(), spec)

which is equivalent to ``needs_review() & search_predicate("main st") &
priority_predicate("high")`` plus a stable ordering.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from django.db.models import (
    Case,
    CharField,
    Count,
    IntegerField,
    Q,
    QuerySet,
    Value,
    When,
)
from django.db.models.functions import Concat

from core.domain.exceptions import ValidationError

from .models import ReportPriority, ReportStatus, ReviewState


# ═══════════════════════════════════════════════════════════════════
#  Named predicates
# ═══════════════════════════════════════════════════════════════════


def all_reports() -> Q:
    return Q()


def pending_assignment() -> Q:
    """Reports nobody has been assigned to yet."""
    return Q(status=ReportStatus.PENDING)


def in_progress() -> Q:
    """Assigned or being worked on, and not waiting for review."""
    return Q(status__in=[ReportStatus.ASSIGNED, ReportStatus.IN_PROGRESS]) & ~Q(
        review_state=ReviewState.AWAITING_REVIEW
    )


def needs_review() -> Q:
    """Completed work waiting for an admin decision."""
    return Q(status=ReportStatus.COMPLETED, review_state=ReviewState.AWAITING_REVIEW)


def completed_approved() -> Q:
    """Completed work an admin has approved (terminal)."""
    return Q(status=ReportStatus.COMPLETED, review_state=ReviewState.APPROVED)


REPORT_VIEWS: dict[str, Callable[[], Q]] = {
    "all": all_reports,
    "pending_assignment": pending_assignment,
    "in_progress": in_progress,
    "needs_review": needs_review,
    "completed_approved": completed_approved,
}


def open_assignment_predicate(prefix: str = "") -> Q:
    """
    Reports that still count against a staff member's load.

    ``prefix`` lets the same predicate run across a relation, e.g.
    ``open_assignment_predicate("assigned_reports__")`` from ``StaffProfile``.
    """
    return Q(**{f"{prefix}status__in": [ReportStatus.ASSIGNED, ReportStatus.IN_PROGRESS]}) | Q(
        **{
            f"{prefix}status": ReportStatus.COMPLETED,
            f"{prefix}review_state": ReviewState.AWAITING_REVIEW,
        }
    )


# ═══════════════════════════════════════════════════════════════════
#  Refinements
# ═══════════════════════════════════════════════════════════════════


def search_predicate(term: str) -> Q:
    """
    Case-insensitive substring match over title, description, location
    and reporter name.

    Requires the queryset to carry the ``reporter_full_name`` annotation
    added by ``with_reporter_name``.
    """
    term = (term or "").strip()
    if not term:
        return Q()
    return (
        Q(title__icontains=term)
        | Q(description__icontains=term)
        | Q(location_address__icontains=term)
        | Q(location_landmark__icontains=term)
        | Q(reporter__username__icontains=term)
        | Q(reporter_full_name__icontains=term)
    )


def category_predicate(category: str | None) -> Q:
    return Q(category=category) if category else Q()


def priority_predicate(priority: str | None) -> Q:
    return Q(priority=priority) if priority else Q()


def with_reporter_name(queryset: QuerySet) -> QuerySet:
    return queryset.annotate(
        reporter_full_name=Concat(
            "reporter__first_name",
            Value(" "),
            "reporter__last_name",
            output_field=CharField(),
        ),
    )


# ═══════════════════════════════════════════════════════════════════
#  Ordering
# ═══════════════════════════════════════════════════════════════════

DEFAULT_ORDERING = "-created_at"

ORDERING_FIELDS = (
    "created_at",
    "updated_at",
    "progress",
    "due_date",
    "priority",
)

ORDERING_CHOICES = tuple(
    choice for name in ORDERING_FIELDS for choice in (name, f"-{name}")
)

_PRIORITY_RANK = Case(
    When(priority=ReportPriority.LOW, then=Value(0)),
    When(priority=ReportPriority.MEDIUM, then=Value(1)),
    When(priority=ReportPriority.HIGH, then=Value(2)),
    default=Value(1),
    output_field=IntegerField(),
)


def apply_ordering(queryset: QuerySet, ordering: str | None) -> QuerySet:
    """
    Order by one whitelisted field, tie-broken by id in the same
    direction so equal keys keep a stable order across requests.
    """
    ordering = ordering or DEFAULT_ORDERING
    if ordering not in ORDERING_CHOICES:
        ordering = DEFAULT_ORDERING

    descending = ordering.startswith("-")
    field = ordering.lstrip("-")
    if field == "priority":
        queryset = queryset.annotate(priority_rank=_PRIORITY_RANK)
        field = "priority_rank"

    prefix = "-" if descending else ""
    return queryset.order_by(f"{prefix}{field}", f"{prefix}id")


# ═══════════════════════════════════════════════════════════════════
#  Composition
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ReportFilterSpec:
    """A complete, immutable description of one report query."""

    view: str = "all"
    search: str = ""
    category: str | None = None
    priority: str | None = None
    ordering: str = DEFAULT_ORDERING

    def predicate(self) -> Q:
        try:
            named = REPORT_VIEWS[self.view]
        except KeyError:
            raise ValidationError(f"Unknown report view '{self.view}'.")
        return (
            named()
            & search_predicate(self.search)
            & category_predicate(self.category)
            & priority_predicate(self.priority)
        )


def filter_reports(queryset: QuerySet, spec: ReportFilterSpec) -> QuerySet:
    """Apply ``spec`` to ``queryset`` and return it in a stable order."""
    queryset = with_reporter_name(queryset).filter(spec.predicate())
    return apply_ordering(queryset, spec.ordering)


def count_by_view(queryset: QuerySet) -> dict[str, int]:
    """Number of reports in ``queryset`` matching each named view."""
    aggregates = {
        name: Count("id", filter=build()) if name != "all" else Count("id")
        for name, build in REPORT_VIEWS.items()
    }
    return queryset.aggregate(**aggregates)
