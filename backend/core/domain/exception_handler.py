"""
core.domain.exception_handler — DRF-compatible global exception handler.

Maps domain exceptions from ``core.domain.exceptions`` to proper
DRF ``Response`` objects so that views don't need per-endpoint
try/except boilerplate.

Register in ``settings.py``::

    REST_FRAMEWORK = {
        ...
        'EXCEPTION_HANDLER': 'core.domain.exception_handler.domain_exception_handler',
    }
"""

from __future__ import annotations

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_default_handler

from core.domain.exceptions import (
    ConcurrencyConflict,
    Conflict,
    DomainError,
    ErrorKind,
    InvalidInput,
    InvalidState,
    NotFound,
    PermissionDenied,
    StoreUnavailable,
    TransientFailure,
)

logger = logging.getLogger(__name__)

# Domain exception → HTTP status code
_STATUS_MAP: dict[type, int] = {
    InvalidInput:        400,
    InvalidState:        400,
    PermissionDenied:    403,
    NotFound:            404,
    Conflict:            409,
    ConcurrencyConflict: 409,
    TransientFailure:    503,
    StoreUnavailable:    503,
    DomainError:         400,  # catch-all base class last
}

_INFRASTRUCTURE_KINDS = frozenset({
    ErrorKind.TRANSIENT_FAILURE,
    ErrorKind.STORE_UNAVAILABLE,
})


def domain_error_payload(exc: DomainError) -> dict[str, str]:
    """Body used for every domain error response."""
    return {"detail": exc.message, "code": exc.kind.value}


def status_for(exc: DomainError) -> int:
    for exc_class, status_code in _STATUS_MAP.items():
        if isinstance(exc, exc_class):
            return status_code
    return 400


def domain_exception_handler(exc: Exception, context: dict) -> Response | None:
    """
    DRF exception handler that also handles ``core.domain.exceptions``.

    The default DRF handler is called first.  If it returns ``None``
    (meaning DRF doesn't recognise the exception), we check whether
    it's one of our domain exceptions and return an appropriate response.
    """
    # Let DRF handle its own exceptions (ValidationError, AuthN, etc.)
    response = drf_default_handler(exc, context)
    if response is not None:
        return response

    if not isinstance(exc, DomainError):
        # Not our exception — let it propagate
        return None

    log = logger.error if exc.kind in _INFRASTRUCTURE_KINDS else logger.warning
    log(
        "Domain exception [%s] in %s: %s",
        exc.kind.value,
        context.get("view", "unknown"),
        exc,
    )
    response = Response(domain_error_payload(exc), status=status_for(exc))
    if exc.kind in _INFRASTRUCTURE_KINDS:
        response["Retry-After"] = "1"
    return response
