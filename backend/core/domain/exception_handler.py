"""
core.domain.exception_handler — DRF-compatible global exception handler.

Maps domain exceptions from ``core.domain.exceptions`` to proper
DRF ``Response`` objects so that views don't need per-endpoint
try/except boilerplate.

Registered in ``settings.py``::

    REST_FRAMEWORK = {
        ...
        'EXCEPTION_HANDLER': 'core.domain.exception_handler.domain_exception_handler',
    }

Every mapped response has the shape ``{"detail": str, "code": str}``.
Database ``IntegrityError`` (a violated constraint) is reported as 409.
"""

from __future__ import annotations

import logging

from django.db import IntegrityError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_default_handler

from core.domain.exceptions import (
    Conflict,
    DomainError,
    InvalidStaff,
    NotFound,
    PermissionDenied,
    PreconditionFailed,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Domain exception → HTTP status code
_STATUS_MAP: dict[type, int] = {
    PermissionDenied:   403,
    NotFound:           404,
    Conflict:           409,
    PreconditionFailed: 412,  # also InvalidTransition / InvalidReportStatus
    InvalidStaff:       400,
    ValidationError:    400,
    DomainError:        400,  # catch-all base class last
}


def domain_exception_handler(exc: Exception, context: dict) -> Response | None:
    """
    DRF exception handler that also handles ``core.domain.exceptions``.

    The default DRF handler is called first.  If it returns ``None``
    (meaning DRF doesn't recognise the exception), we check whether
    it's one of our domain exceptions and return an appropriate response.
    """
    response = drf_default_handler(exc, context)
    if response is not None:
        return response

    # Order matters: most specific first
    for exc_class, status_code in _STATUS_MAP.items():
        if isinstance(exc, exc_class):
            logger.warning(
                "Domain exception [%s] in %s: %s",
                type(exc).__name__,
                context.get("view", "unknown"),
                exc,
            )
            return Response(
                {"detail": str(exc), "code": exc.code},
                status=status_code,
            )

    if isinstance(exc, IntegrityError):
        # A database constraint caught a write the service guards let through.
        logger.error(
            "Integrity error in %s: %s", context.get("view", "unknown"), exc,
        )
        return Response(
            {"detail": "The change conflicts with the current state of the record.",
             "code": "integrity_error"},
            status=409,
        )

    return None
