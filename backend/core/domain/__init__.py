"""
core.domain — Shared workflow building blocks.

- ``exceptions``        — domain exception hierarchy.
- ``exception_handler`` — DRF handler mapping domain exceptions to HTTP.
- ``transactions``      — locked reads and compare-and-set writes.
- ``access``            — role-scoped querysets and role guards.
- ``notifications``     — single entry-point for notification rows.
"""
