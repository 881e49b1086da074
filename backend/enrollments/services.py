"""
Enrollments app Service Layer.

This module is the **single source of truth** for enrollment business
logic.  Views must remain *thin*: they validate input through
serializers, call a service method, and map the returned result to a
DRF ``Response``.

Architecture
------------
- ``EnrollmentService``      — the transaction core: enrol / unenrol with
  the course ``student_count`` maintained in the same atomic unit.
- ``EnrollmentQueryService`` — read-only status checks and paginated
  history.  Bypasses the transaction core and never raises.

Design Principles
-----------------
* **Pre-check + constraint**: a point lookup gives a fast, friendly
  ``Conflict`` for the common duplicate case, but the unique constraint on
  (user_id, course) is what actually guarantees one enrollment per pair
  when two requests race past the pre-check.  Both paths produce the same
  ``Conflict`` kind and message.
* **Counter inside the membership transaction**: ``student_count`` is
  adjusted with an ``F()`` expression in the same ``atomic()`` block as
  the insert/delete, never standalone and never read-modify-write.
* **One classification step**: store errors are turned into
  ``core.domain.exceptions`` kinds by
  ``core.domain.transactions.classify_database_error``; no call site
  inspects driver messages.
* **No internal retry**: ``TransientFailure`` / ``ConcurrencyConflict``
  are returned to the caller, which owns the retry policy.
* **Injected repositories**: both services accept repository objects so
  tests can substitute fakes; the defaults are the Django ORM adapters.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from django.db import DatabaseError

from core.constants import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    MIN_PAGE_SIZE,
)
from core.domain.exceptions import (
    Conflict,
    DomainError,
    ErrorKind,
    InvalidInput,
    InvalidState,
    NotFound,
    PermissionDenied,
)
from core.domain.transactions import atomic_unit_of_work, classify_database_error
from courses.models import PublicationState
from courses.repositories import CourseRepository

from .models import Enrollment
from .repositories import EnrollmentRepository
from .results import (
    QUERY_FAILED_MESSAGE,
    EnrollmentPage,
    EnrollmentResult,
    EnrollmentStatusResult,
    PageInfo,
)

logger = logging.getLogger(__name__)

# ── User-visible messages ───────────────────────────────────────────
INVALID_USER_ID = "Invalid user ID"
INVALID_COURSE_ID = "Invalid course ID provided"
STATUS_INVALID_COURSE_ID = "Invalid course ID"
INVALID_ENROLLMENT_ID = "Invalid enrollment ID provided"
COURSE_NOT_FOUND = "Course not found"
COURSE_NOT_PUBLISHED = "Course is not published"
ALREADY_ENROLLED = "User is already enrolled in this course"
ENROLLMENT_NOT_FOUND = "Enrollment not found"
NOT_ENROLLMENT_OWNER = "You are not permitted to delete this enrollment"


# ═══════════════════════════════════════════════════════════════════
#  Shared helpers
# ═══════════════════════════════════════════════════════════════════


def _is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def _require_id(value: Any, message: str) -> str:
    """Raise ``InvalidInput`` for a missing/blank identifier."""
    if _is_blank(value):
        raise InvalidInput(message)
    return str(value)


def _field(source: Any, name: str) -> Any:
    """Read ``name`` from either a mapping or an object."""
    if source is None:
        return None
    if isinstance(source, Mapping):
        return source.get(name)
    return getattr(source, name, None)


def _course_id_from(request: Any) -> Any:
    return _field(request, "course_id")


def _coerce_int(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def normalize_pagination(pagination: Any) -> tuple[int, int]:
    """
    Normalise ``{page, limit}`` given as a mapping or an object.

    ``page`` below 1 becomes 1; ``limit`` is clamped into
    ``[MIN_PAGE_SIZE, MAX_PAGE_SIZE]``.  Missing or non-numeric values
    fall back to the defaults.
    """
    page = _coerce_int(_field(pagination, "page"), DEFAULT_PAGE)
    limit = _coerce_int(_field(pagination, "limit"), DEFAULT_PAGE_SIZE)
    return max(DEFAULT_PAGE, page), max(MIN_PAGE_SIZE, min(MAX_PAGE_SIZE, limit))


# ═══════════════════════════════════════════════════════════════════
#  Enrollment Transaction Core
# ═══════════════════════════════════════════════════════════════════


class EnrollmentService:
    """
    Creates and deletes enrollments, keeping ``Course.student_count`` in
    step inside the same transaction.

    Every public method returns an ``EnrollmentResult``; no
    ``DomainError`` or store exception escapes.
    """

    def __init__(
        self,
        courses: CourseRepository | None = None,
        enrollments: EnrollmentRepository | None = None,
    ) -> None:
        self.courses = courses or CourseRepository()
        self.enrollments = enrollments or EnrollmentRepository()

    # ------------------------------------------------------------------
    #  create_enrollment
    # ------------------------------------------------------------------
    def create_enrollment(self, user_id: str, request: Any) -> EnrollmentResult:
        """
        Enrol ``user_id`` in the course named by ``request.course_id``.

        Validation (input, course existence, publication state, existing
        enrollment) happens before the transaction and short-circuits.
        The unit of work inserts the row and increments the counter; a
        uniqueness violation at commit maps to the same ``Conflict`` as
        the pre-check.
        """
        try:
            user_id = _require_id(user_id, INVALID_USER_ID)
            course_id = _require_id(_course_id_from(request), INVALID_COURSE_ID)

            course = self.courses.find_course(course_id)
            if course is None:
                raise NotFound(COURSE_NOT_FOUND)
            if course.publication_state != PublicationState.PUBLISHED:
                raise InvalidState(COURSE_NOT_PUBLISHED)

            # Fast path only; the unique constraint is the real guard.
            if self.enrollments.find_for_user_and_course(user_id, course_id) is not None:
                raise Conflict(ALREADY_ENROLLED)

            enrollment = atomic_unit_of_work(
                self._enroll,
                user_id,
                course_id,
                conflict_message=ALREADY_ENROLLED,
            )
        except DomainError as exc:
            return EnrollmentResult.failure(exc)
        except DatabaseError as exc:
            return EnrollmentResult.failure(
                classify_database_error(exc, conflict_message=ALREADY_ENROLLED)
            )

        logger.info(
            "Enrollment %s created: user %s enrolled in course %s",
            enrollment.pk,
            user_id,
            course_id,
        )
        return EnrollmentResult.success(enrollment)

    def _enroll(self, user_id: str, course_id: str) -> Enrollment:
        """Unit of work for ``create_enrollment``; runs inside ``atomic()``."""
        enrollment = self.enrollments.insert(user_id, course_id)

        # Re-validates eligibility in the same statement as the increment.
        updated = self.courses.adjust_student_count(
            course_id, 1, require_state=PublicationState.PUBLISHED,
        )
        if not updated:
            # Course vanished or was unpublished after the pre-check.
            if self.courses.find_course(course_id) is None:
                raise NotFound(COURSE_NOT_FOUND)
            raise InvalidState(COURSE_NOT_PUBLISHED)
        return enrollment

    # ------------------------------------------------------------------
    #  delete_enrollment
    # ------------------------------------------------------------------
    def delete_enrollment(self, user_id: str, enrollment_id: str) -> EnrollmentResult:
        """
        Remove an enrollment owned by ``user_id`` and decrement the
        course counter atomically.  The ownership check runs before any
        mutation.
        """
        try:
            user_id = _require_id(user_id, INVALID_USER_ID)
            enrollment_id = _require_id(enrollment_id, INVALID_ENROLLMENT_ID)

            enrollment = self.enrollments.get_by_id(enrollment_id)
            if enrollment is None:
                raise NotFound(ENROLLMENT_NOT_FOUND)
            if enrollment.user_id != user_id:
                raise PermissionDenied(NOT_ENROLLMENT_OWNER)

            atomic_unit_of_work(self._unenroll, enrollment)
        except DomainError as exc:
            return EnrollmentResult.failure(exc)
        except DatabaseError as exc:
            return EnrollmentResult.failure(classify_database_error(exc))

        logger.info(
            "Enrollment %s deleted: user %s left course %s",
            enrollment.pk,
            user_id,
            enrollment.course_id,
        )
        return EnrollmentResult.success(enrollment)

    def _unenroll(self, enrollment: Enrollment) -> Enrollment:
        """Unit of work for ``delete_enrollment``; runs inside ``atomic()``."""
        if not self.enrollments.delete(enrollment.pk):
            # A concurrent delete already removed the row and its count.
            raise NotFound(ENROLLMENT_NOT_FOUND)
        if not self.courses.adjust_student_count(enrollment.course_id, -1):
            # The row is gone either way; a zero counter has drifted.
            logger.warning(
                "student_count of course %s already at zero while deleting enrollment %s",
                enrollment.course_id,
                enrollment.pk,
            )
        return enrollment


# ═══════════════════════════════════════════════════════════════════
#  Enrollment Query Service
# ═══════════════════════════════════════════════════════════════════


class EnrollmentQueryService:
    """
    Read-only enrollment queries.

    Failures degrade to an empty/false result with an error marker; read
    paths never raise into the caller.
    """

    def __init__(self, enrollments: EnrollmentRepository | None = None) -> None:
        self.enrollments = enrollments or EnrollmentRepository()

    # ------------------------------------------------------------------
    #  get_enrollments
    # ------------------------------------------------------------------
    def get_enrollments(
        self,
        user_id: str,
        pagination: Any = None,
    ) -> EnrollmentPage:
        """
        Return one page of ``user_id``'s enrollments (course joined),
        newest first, with ``{page, limit, total, total_pages}``.
        """
        page, limit = normalize_pagination(pagination)

        if _is_blank(user_id):
            return EnrollmentPage(
                pagination=PageInfo.build(page, limit, 0),
                error=INVALID_USER_ID,
                error_kind=ErrorKind.INVALID_INPUT,
            )

        try:
            total = self.enrollments.count_for_user(str(user_id))
            offset = (page - 1) * limit
            # Past the last page: nothing to fetch, and the offset may not fit the store.
            items = (
                self.enrollments.list_for_user(str(user_id), offset=offset, limit=limit)
                if offset < total
                else []
            )
        except Exception:
            logger.exception("Database error while listing enrollments for user %s", user_id)
            return EnrollmentPage(
                pagination=PageInfo.build(page, limit, 0),
                error=QUERY_FAILED_MESSAGE,
                error_kind=ErrorKind.QUERY_FAILED,
            )

        return EnrollmentPage(items=items, pagination=PageInfo.build(page, limit, total))

    # ------------------------------------------------------------------
    #  get_enrollment_status
    # ------------------------------------------------------------------
    def get_enrollment_status(self, user_id: str, course_id: str) -> EnrollmentStatusResult:
        """Report whether ``user_id`` is enrolled in ``course_id``; fails closed."""
        if _is_blank(user_id):
            return EnrollmentStatusResult(
                is_enrolled=False,
                error=INVALID_USER_ID,
                error_kind=ErrorKind.INVALID_INPUT,
            )
        if _is_blank(course_id):
            return EnrollmentStatusResult(
                is_enrolled=False,
                error=STATUS_INVALID_COURSE_ID,
                error_kind=ErrorKind.INVALID_INPUT,
            )

        try:
            enrollment = self.enrollments.find_for_user_and_course(str(user_id), str(course_id))
        except Exception:
            logger.exception(
                "Database error while checking enrollment of user %s in course %s",
                user_id,
                course_id,
            )
            return EnrollmentStatusResult(
                is_enrolled=False,
                error=QUERY_FAILED_MESSAGE,
                error_kind=ErrorKind.QUERY_FAILED,
            )

        if enrollment is None:
            return EnrollmentStatusResult(is_enrolled=False)
        return EnrollmentStatusResult(is_enrolled=True, enrolled_at=enrollment.enrolled_at)
