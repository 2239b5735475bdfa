"""
core.domain.transactions — Helpers for safe state transitions.

Every mutating workflow operation follows the same shape::

    with transaction.atomic():
        report = lock_for_update(Report, report_id)      # 1. locked read
        ...validate expected state and legality...        # 2. guards
        report = compare_and_set(                         # 3. guarded write
            Report, report.pk,
            expected={"status": report.status},
            changes={"status": ReportStatus.ASSIGNED, ...},
        )
        ReportProgressUpdate.objects.create(...)          # 4. audit row

``select_for_update`` serialises writers on databases that support row
locks; the guarded ``UPDATE ... WHERE`` in ``compare_and_set`` is the
authority on every backend (including SQLite, where row locks are a
no-op).  If the row changed between read and write, zero rows match and
the caller gets a ``Conflict``; the surrounding ``atomic()`` block then
rolls back any audit entry written in the same transaction.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, TypeVar

from django.db import models
from django.utils import timezone

from core.domain.exceptions import Conflict, NotFound

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=models.Model)


def lock_for_update(model_class: type[M], pk: Any) -> M:
    """
    Acquire a row-level lock on the given model instance.

    Convenience wrapper around ``select_for_update().get(pk=pk)``
    that must be called inside an ``atomic()`` block.

    Args:
        model_class: The Django model class.
        pk:          Primary key value.

    Returns:
        The locked model instance.

    Raises:
        NotFound: If no row with that PK exists.
    """
    try:
        return model_class.objects.select_for_update().get(pk=pk)
    except model_class.DoesNotExist:
        raise NotFound(f"{model_class.__name__} with id {pk} not found.")


def compare_and_set(
    model_class: type[M],
    pk: Any,
    *,
    expected: Mapping[str, Any],
    changes: Mapping[str, Any],
) -> M:
    """
    Apply ``changes`` to one row only if its current values match ``expected``.

    The check and the write happen in a single ``UPDATE ... WHERE``
    statement, so a concurrent writer that got there first makes the
    update match zero rows.

    Args:
        model_class: The Django model class.
        pk:          Primary key of the row to update.
        expected:    Field → value pairs the stored row must still hold.
        changes:     Field → value pairs to write.  ``updated_at`` is
                     stamped automatically when the model has it, since
                     ``QuerySet.update`` bypasses ``auto_now``.

    Returns:
        A freshly loaded instance reflecting the committed values.

    Raises:
        NotFound: If the row no longer exists.
        Conflict: If the row exists but no longer matches ``expected``.
    """
    values = dict(changes)
    field_names = {f.name for f in model_class._meta.concrete_fields}
    if "updated_at" in field_names:
        values.setdefault("updated_at", timezone.now())

    updated = model_class.objects.filter(pk=pk, **expected).update(**values)
    if updated == 0:
        if not model_class.objects.filter(pk=pk).exists():
            raise NotFound(f"{model_class.__name__} with id {pk} not found.")
        logger.info(
            "Compare-and-set lost on %s #%s (expected %s)",
            model_class.__name__, pk, dict(expected),
        )
        raise Conflict(
            f"{model_class.__name__} #{pk} was modified by another request; "
            f"re-fetch it and retry."
        )

    return model_class.objects.get(pk=pk)
