"""
Structured results returned by the enrollment services.

Write operations return ``EnrollmentResult`` (the enrollment or a
classified ``DomainError``).  Read operations return page/status objects
that carry an optional error marker instead of raising.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from core.domain.exceptions import DomainError, ErrorKind

if TYPE_CHECKING:
    from .models import Enrollment

QUERY_FAILED_MESSAGE = "Database query failed"


@dataclass(frozen=True)
class EnrollmentResult:
    """Outcome of ``create_enrollment`` / ``delete_enrollment``."""

    enrollment: Enrollment | None = None
    error: DomainError | None = None

    @classmethod
    def success(cls, enrollment: Enrollment) -> EnrollmentResult:
        return cls(enrollment=enrollment)

    @classmethod
    def failure(cls, error: DomainError) -> EnrollmentResult:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_kind(self) -> ErrorKind | None:
        return self.error.kind if self.error is not None else None

    @property
    def message(self) -> str | None:
        return self.error.message if self.error is not None else None

    def unwrap(self) -> Enrollment:
        """Return the enrollment, or raise the carried ``DomainError``."""
        if self.error is not None:
            raise self.error
        return self.enrollment


@dataclass(frozen=True)
class PageInfo:
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> PageInfo:
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if total else 0,
        )


@dataclass(frozen=True)
class EnrollmentPage:
    """A page of enrollments plus pagination metadata."""

    items: list[Enrollment] = field(default_factory=list)
    pagination: PageInfo | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class EnrollmentStatusResult:
    """
    Whether a user is enrolled in a course.

    When ``error`` is set, ``is_enrolled`` is always ``False``: a status
    that could not be determined is never reported as enrolled.
    """

    is_enrolled: bool
    enrolled_at: datetime | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
