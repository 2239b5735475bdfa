"""Assignment matcher — ranks staff for a report category.

Pure computation engine: it works on an immutable snapshot of
``StaffCandidate`` values and a category-variation table, and never
touches the database.  ``staff.services.AssignmentMatcherService``
builds the snapshot and handles side effects.

Ranking:
  1. direct matches    (specialization or additional category == category)
  2. variation matches (specialization or additional category is a
                        configured synonym of the category)
  3. general pool      (every other active staff member)

Within a tier, staff with fewer open assignments come first, then by
name, then by id, so identical input always yields identical output.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, Mapping

_WHITESPACE = re.compile(r"\s+")


def normalize_category(value: str | None) -> str:
    """Lower-case, trim, and collapse whitespace runs to ``_``.

    >>> normalize_category("  Road   Repair ")
    'road_repair'
    """
    if not value:
        return ""
    return _WHITESPACE.sub("_", value.strip().lower())


class MatchTier(IntEnum):
    """Match quality; lower sorts first."""
    DIRECT = 0
    VARIATION = 1
    GENERAL = 2

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class StaffCandidate:
    """Snapshot of one staff member as seen by the matcher."""
    staff_id: int
    name: str
    specialization_category: str
    additional_categories: frozenset[str] = field(default_factory=frozenset)
    is_active: bool = True
    open_assignments: int = 0


@dataclass(frozen=True)
class StaffMatch:
    """A ranked staff match result."""
    staff_id: int
    name: str
    tier: MatchTier
    open_assignments: int

    def sort_key(self) -> tuple[int, int, str, int]:
        return (int(self.tier), self.open_assignments, self.name.lower(), self.staff_id)


def classify(
    category: str,
    candidate: StaffCandidate,
    variations: Mapping[str, Iterable[str]],
) -> MatchTier:
    """Return the match tier of one candidate for a report category.

    The variation table is read in one direction only: report category
    to synonym specializations.
    """
    target = normalize_category(category)
    specialization = normalize_category(candidate.specialization_category)
    extras = {normalize_category(c) for c in candidate.additional_categories}
    extras.discard("")

    if target and (specialization == target or target in extras):
        return MatchTier.DIRECT

    synonyms = {normalize_category(s) for s in variations.get(target, ())}
    synonyms.discard("")
    if synonyms and (specialization in synonyms or synonyms & extras):
        return MatchTier.VARIATION

    return MatchTier.GENERAL


def rank_staff(
    category: str,
    candidates: Iterable[StaffCandidate],
    variations: Mapping[str, Iterable[str]] | None = None,
) -> list[StaffMatch]:
    """Rank active candidates for ``category``, best first.

    Args:
        category: Report category (any casing/spacing).
        candidates: Staff snapshot; inactive entries are skipped.
        variations: Report category → synonym specializations.  Keys
            are normalized before lookup.

    Returns:
        List of ``StaffMatch``; empty when no active staff exist.
    """
    table = {
        normalize_category(key): tuple(values)
        for key, values in (variations or {}).items()
    }

    matches = [
        StaffMatch(
            staff_id=c.staff_id,
            name=c.name,
            tier=classify(category, c, table),
            open_assignments=c.open_assignments,
        )
        for c in candidates
        if c.is_active
    ]
    matches.sort(key=StaffMatch.sort_key)
    return matches
