"""
core.domain.exceptions — Domain-specific exception hierarchy.

These exceptions represent workflow-rule violations inside service
layers.  They are deliberately **not** DRF exceptions so that the
domain layer stays framework-agnostic.  The global DRF exception handler
(``core.domain.exception_handler``) maps them to HTTP responses.

Mapping cheatsheet
------------------
┌──────────────────────┬──────────────────────────────────┬──────┐
│ Domain Exception     │ Meaning                          │ Code │
├──────────────────────┼──────────────────────────────────┼──────┤
│ DomainError          │ generic business-rule violation  │ 400  │
│ ValidationError      │ malformed input                  │ 400  │
│ InvalidStaff         │ assignee missing or inactive     │ 400  │
│ PermissionDenied     │ caller's role may not do this    │ 403  │
│ NotFound             │ referenced record does not exist │ 404  │
│ Conflict             │ compare-and-set lost / duplicate │ 409  │
│ PreconditionFailed   │ record not in a legal state      │ 412  │
│ InvalidTransition    │ illegal lifecycle transition     │ 412  │
│ InvalidReportStatus  │ report not completed (gallery)   │ 412  │
└──────────────────────┴──────────────────────────────────┴──────┘

``Conflict`` and ``PreconditionFailed`` are intentionally distinct:
a ``Conflict`` means another actor changed the record first and the
caller should re-fetch; a ``PreconditionFailed`` means the requested
transition is not legal from the current (stable) state and retrying
will not help.

Usage inside a service::

    from core.domain.exceptions import InvalidTransition

    if report.status not in allowed_sources:
        raise InvalidTransition(
            current=report.status,
            target=ReportStatus.ASSIGNED,
            reason="Only pending reports can be assigned.",
        )
"""

from __future__ import annotations


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    Each subclass carries a machine-readable ``code`` that the exception
    handler copies into the response body.
    """

    code = "domain_error"

    def __init__(self, message: str = "A business rule was violated.") -> None:
        self.message = message
        super().__init__(self.message)


class ValidationError(DomainError):
    """
    Malformed input detected by the domain layer (empty rejection
    reason, progress regression, unknown category).

    Maps to HTTP 400.
    """

    code = "validation_error"

    def __init__(self, message: str = "The supplied data is invalid.") -> None:
        super().__init__(message)


class InvalidStaff(DomainError):
    """
    The assignment target does not exist or is inactive.

    Maps to HTTP 400.
    """

    code = "invalid_staff"

    def __init__(self, message: str = "The selected staff member cannot receive assignments.") -> None:
        super().__init__(message)


class PermissionDenied(DomainError):
    """
    The authenticated user does not have the required role for this
    operation.

    Maps to HTTP 403.
    """

    code = "permission_denied"

    def __init__(self, message: str = "You do not have permission to perform this action.") -> None:
        super().__init__(message)


class NotFound(DomainError):
    """
    The requested resource does not exist (or is not visible to the
    requesting user given their role scope).

    Maps to HTTP 404.
    """

    code = "not_found"

    def __init__(self, message: str = "The requested resource was not found.") -> None:
        super().__init__(message)


class Conflict(DomainError):
    """
    The operation conflicts with the current state of the resource.

    Typical usage: the caller's expected status no longer matches the
    stored status, or a duplicate creation attempt.  Maps to HTTP 409.
    """

    code = "conflict"

    def __init__(self, message: str = "The operation conflicts with the current state.") -> None:
        super().__init__(message)


class PreconditionFailed(DomainError):
    """
    The record exists but is not in a state where the requested
    operation is legal.

    Maps to HTTP 412.
    """

    code = "precondition_failed"

    def __init__(self, message: str = "The resource is not in a state that allows this operation.") -> None:
        super().__init__(message)


class InvalidTransition(PreconditionFailed):
    """
    A state-machine transition that is not allowed from the current status.

    Example::

        raise InvalidTransition(
            current="pending",
            target="completed",
            reason="Report must be assigned before work is recorded.",
        )
    """

    code = "invalid_transition"

    def __init__(
        self,
        message: str | None = None,
        *,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        if message is None:
            parts = ["Invalid state transition"]
            if current and target:
                parts.append(f"from '{current}' to '{target}'")
            message = " ".join(parts) + "."
            if reason:
                message = f"{message} {reason}"
        super().__init__(message)
        self.current = current
        self.target = target
        self.reason = reason


class InvalidReportStatus(PreconditionFailed):
    """
    The referenced report is not ``completed``; gallery submissions can
    only be created for completed work.

    Maps to HTTP 412.
    """

    code = "invalid_report_status"

    def __init__(self, message: str = "Gallery submissions require a completed report.") -> None:
        super().__init__(message)
