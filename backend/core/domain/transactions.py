"""
core.domain.transactions — Transaction boundary and store-error classification.

Provides the one place where ``transaction.atomic`` is wrapped for
service layers and where driver-level ``DatabaseError``s are turned into
``core.domain.exceptions`` kinds.  Services never inspect driver errors
themselves.

Design goals
------------
* A unit of work is all-or-nothing: any exception raised inside it rolls
  the whole block back.
* Validation failures (``DomainError`` raised by the callback) pass
  through unchanged, so callers can tell them apart from commit failures.
* Classification uses the driver's real signal (SQLSTATE on PostgreSQL,
  the extended error code on SQLite, the exception type otherwise), never
  message substrings.
* No automatic retry.  Retry/backoff is the caller's concern.

Usage::

    from core.domain.transactions import atomic_unit_of_work

    enrollment = atomic_unit_of_work(
        self._enroll,
        user_id,
        course,
        conflict_message="User is already enrolled in this course",
    )
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Callable, TypeVar

from django.conf import settings
from django.db import (
    DatabaseError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    connection,
    transaction,
)
from django.db.transaction import TransactionManagementError

from core.domain.exceptions import (
    ConcurrencyConflict,
    Conflict,
    DomainError,
    StoreUnavailable,
    TransientFailure,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# PostgreSQL SQLSTATE codes.
_CONCURRENCY_SQLSTATES = frozenset({
    "40001",  # serialization_failure
    "40P01",  # deadlock_detected
})
_TRANSIENT_SQLSTATES = frozenset({
    "57014",  # query_canceled (statement_timeout)
    "55P03",  # lock_not_available
    "25P02",  # in_failed_sql_transaction
    "40002",  # transaction_integrity_constraint_violation
    "40003",  # statement_completion_unknown
})
_CONNECTION_SQLSTATE_CLASS = "08"

_SQLITE_BUSY_CODES = frozenset({
    getattr(sqlite3, "SQLITE_BUSY", 5),
    getattr(sqlite3, "SQLITE_LOCKED", 6),
})


def _driver_error(exc: BaseException) -> BaseException | None:
    """Return the DB-API exception Django wrapped, if any."""
    return exc.__cause__


def _sqlstate(exc: BaseException) -> str | None:
    cause = _driver_error(exc)
    if cause is None:
        return None
    # psycopg 3 exposes ``sqlstate``, psycopg2 exposes ``pgcode``.
    return getattr(cause, "sqlstate", None) or getattr(cause, "pgcode", None)


def _sqlite_code(exc: BaseException) -> int | None:
    cause = _driver_error(exc)
    if cause is None:
        return None
    code = getattr(cause, "sqlite_errorcode", None)
    if code is None:
        return None
    # Extended result codes keep the primary code in the low byte.
    return code & 0xFF


def classify_database_error(
    exc: BaseException,
    *,
    conflict_message: str | None = None,
) -> DomainError:
    """
    Map a store-level exception to the stable domain taxonomy.

    Args:
        exc:              The exception raised by the ORM / driver.
        conflict_message: Message for the ``Conflict`` produced by an
                          ``IntegrityError``.  Each caller knows which
                          constraint its unit of work can violate.

    Returns:
        A ``DomainError`` instance ready to be raised or reported.  The
        message never carries driver detail.
    """
    if isinstance(exc, DomainError):
        return exc

    if isinstance(exc, IntegrityError):
        return Conflict(conflict_message)

    state = _sqlstate(exc)
    if state:
        if state in _CONCURRENCY_SQLSTATES:
            return ConcurrencyConflict()
        if state in _TRANSIENT_SQLSTATES:
            return TransientFailure()
        if state.startswith(_CONNECTION_SQLSTATE_CLASS):
            return StoreUnavailable()

    if _sqlite_code(exc) in _SQLITE_BUSY_CODES:
        return TransientFailure()

    if isinstance(exc, TransactionManagementError):
        return TransientFailure()
    if isinstance(exc, (InterfaceError, OperationalError)):
        return StoreUnavailable()
    if isinstance(exc, DatabaseError):
        return TransientFailure()
    return StoreUnavailable()


def _apply_statement_timeout() -> None:
    """
    Bound the current transaction on PostgreSQL.

    ``SET LOCAL`` only lasts until the enclosing transaction ends.  SQLite
    relies on the connection-level busy ``timeout`` option instead.
    """
    timeout_ms = getattr(settings, "ATOMIC_STATEMENT_TIMEOUT_MS", None)
    if not timeout_ms or connection.vendor != "postgresql":
        return
    with connection.cursor() as cursor:
        cursor.execute(f"SET LOCAL statement_timeout = {int(timeout_ms)}")


def atomic_unit_of_work(
    fn: Callable[..., T],
    *args: Any,
    conflict_message: str | None = None,
    **kwargs: Any,
) -> T:
    """
    Execute ``fn(*args, **kwargs)`` inside ``transaction.atomic()``.

    The block commits when ``fn`` returns and rolls back on any
    exception.  ``DomainError``s raised by ``fn`` propagate unchanged;
    a ``DatabaseError`` is classified with ``classify_database_error``
    and re-raised as a ``DomainError``.  Anything else propagates.

    Args:
        fn:               Callable to run atomically.
        *args:            Positional arguments forwarded to ``fn``.
        conflict_message: Message for a uniqueness violation.
        **kwargs:         Keyword arguments forwarded to ``fn``.

    Returns:
        Whatever ``fn`` returns.

    Raises:
        DomainError: validation raised by ``fn`` or a classified store failure.
    """
    try:
        with transaction.atomic():
            _apply_statement_timeout()
            return fn(*args, **kwargs)
    except DomainError:
        raise
    except DatabaseError as exc:
        classified = classify_database_error(exc, conflict_message=conflict_message)
        if isinstance(classified, Conflict):
            logger.info("Unit of work hit a uniqueness constraint; rolled back.")
        else:
            logger.error(
                "Unit of work %s failed [%s]: %s",
                getattr(fn, "__name__", repr(fn)),
                classified.kind.value,
                exc,
            )
        raise classified from exc
