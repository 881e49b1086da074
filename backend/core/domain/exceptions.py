"""
core.domain.exceptions — Domain-specific exception hierarchy.

These exceptions represent business-rule violations and classified store
failures inside service layers.  They are deliberately **not** DRF
exceptions so that the domain layer stays framework-agnostic.  The global
DRF exception handler (``core.domain.exception_handler``) maps them to
HTTP responses.

Every exception carries a stable ``kind`` (an ``ErrorKind`` member) that
callers branch on, and a short human-readable ``message`` suitable for
direct display.  Callers must never branch on the message text.

Mapping cheatsheet
------------------
┌─────────────────────┬──────────────────────────┬──────┐
│ Domain Exception    │ ErrorKind                │ Code │
├─────────────────────┼──────────────────────────┼──────┤
│ InvalidInput        │ invalid_input            │ 400  │
│ InvalidState        │ invalid_state            │ 400  │
│ PermissionDenied    │ unauthorized             │ 403  │
│ NotFound            │ not_found                │ 404  │
│ Conflict            │ conflict                 │ 409  │
│ ConcurrencyConflict │ concurrency_conflict     │ 409  │
│ TransientFailure    │ transient_failure        │ 503  │
│ StoreUnavailable    │ store_unavailable        │ 503  │
└─────────────────────┴──────────────────────────┴──────┘

``ErrorKind.QUERY_FAILED`` is a read-path marker only; read services
report it on their result objects and never raise it.

Recommended usage inside a service::

    from core.domain.exceptions import InvalidState

    if course.publication_state != PublicationState.PUBLISHED:
        raise InvalidState("Course is not published")
"""

from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    """Stable, caller-facing failure tags."""

    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    UNAUTHORIZED = "unauthorized"
    CONFLICT = "conflict"
    CONCURRENCY_CONFLICT = "concurrency_conflict"
    TRANSIENT_FAILURE = "transient_failure"
    STORE_UNAVAILABLE = "store_unavailable"
    QUERY_FAILED = "query_failed"


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    Catch this at the view boundary and convert to a 400 Bad Request.
    """

    kind: ErrorKind = ErrorKind.INVALID_INPUT
    default_message = "A business rule was violated."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(DomainError):
    """
    A malformed or empty identifier was supplied.

    Raised before any store call.  Maps to HTTP 400.
    """

    kind = ErrorKind.INVALID_INPUT
    default_message = "Invalid input provided"


class InvalidState(DomainError):
    """
    The resource exists but its current state does not permit the
    operation (e.g. enrolling in a course that is not published).

    Maps to HTTP 400.
    """

    kind = ErrorKind.INVALID_STATE
    default_message = "The resource is not in a state that permits this operation"


class PermissionDenied(DomainError):
    """
    The caller does not own the resource being mutated.

    Maps to HTTP 403.
    """

    kind = ErrorKind.UNAUTHORIZED
    default_message = "You do not have permission to perform this action"


class NotFound(DomainError):
    """
    The requested resource does not exist.

    Maps to HTTP 404.
    """

    kind = ErrorKind.NOT_FOUND
    default_message = "The requested resource was not found"


class Conflict(DomainError):
    """
    The operation conflicts with an existing row.

    Typical usage: duplicate creation attempt, whether caught by an
    application pre-check or by a unique constraint at commit time.
    Maps to HTTP 409.
    """

    kind = ErrorKind.CONFLICT
    default_message = "The operation conflicts with the current state"


class ConcurrencyConflict(DomainError):
    """
    The store aborted the unit of work because of a concurrent
    modification (serialization failure, deadlock).

    Distinct from ``Conflict``: the caller may retry.  Maps to HTTP 409.
    """

    kind = ErrorKind.CONCURRENCY_CONFLICT
    default_message = "Concurrent modification detected, please try again"


class TransientFailure(DomainError):
    """
    The transaction failed, rolled back or timed out.  The caller is the
    unit of retry.  Maps to HTTP 503.
    """

    kind = ErrorKind.TRANSIENT_FAILURE
    default_message = "Transaction failed, please try again"


class StoreUnavailable(DomainError):
    """
    Connection-level or infrastructure failure.  The message is generic
    and never carries driver detail.  Maps to HTTP 503.
    """

    kind = ErrorKind.STORE_UNAVAILABLE
    default_message = "Database operation failed"
