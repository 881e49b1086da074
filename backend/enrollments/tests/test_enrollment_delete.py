"""
Unit tests for ``EnrollmentService.delete_enrollment``.
"""

from __future__ import annotations

from unittest import mock

import pytest
from django.db import OperationalError

from core.domain.exceptions import ErrorKind
from enrollments.models import Enrollment
from enrollments.services import (
    ENROLLMENT_NOT_FOUND,
    NOT_ENROLLMENT_OWNER,
    EnrollmentQueryService,
    EnrollmentService,
)

pytestmark = pytest.mark.django_db


@pytest.fixture()
def service() -> EnrollmentService:
    return EnrollmentService()


@pytest.fixture()
def enrolled(service, create_course):
    """A published course with ``owner`` enrolled through the service."""
    course = create_course()
    enrollment = service.create_enrollment("owner", {"course_id": course.pk}).unwrap()
    return course, enrollment


class TestDeleteEnrollment:

    def test_owner_can_delete(self, service, enrolled):
        course, enrollment = enrolled

        result = service.delete_enrollment("owner", enrollment.pk)

        assert result.ok
        assert result.enrollment.pk == enrollment.pk
        assert not Enrollment.objects.filter(pk=enrollment.pk).exists()
        course.refresh_from_db()
        assert course.student_count == 0

    def test_non_owner_is_unauthorized(self, service, enrolled):
        course, enrollment = enrolled

        result = service.delete_enrollment("intruder", enrollment.pk)

        assert result.error_kind == ErrorKind.UNAUTHORIZED
        assert result.message == NOT_ENROLLMENT_OWNER
        assert Enrollment.objects.filter(pk=enrollment.pk).exists()
        course.refresh_from_db()
        assert course.student_count == 1

    def test_missing_enrollment_is_not_found(self, service):
        result = service.delete_enrollment("owner", "no-such-enrollment")

        assert result.error_kind == ErrorKind.NOT_FOUND
        assert result.message == ENROLLMENT_NOT_FOUND

    @pytest.mark.parametrize("user_id,enrollment_id", [("", "x"), ("owner", ""), ("owner", None)])
    def test_blank_ids_are_invalid_input(self, service, user_id, enrollment_id):
        result = service.delete_enrollment(user_id, enrollment_id)
        assert result.error_kind == ErrorKind.INVALID_INPUT

    def test_second_delete_is_not_found_and_counter_stays(self, service, enrolled):
        course, enrollment = enrolled
        assert service.delete_enrollment("owner", enrollment.pk).ok

        result = service.delete_enrollment("owner", enrollment.pk)

        assert result.error_kind == ErrorKind.NOT_FOUND
        course.refresh_from_db()
        assert course.student_count == 0

    def test_concurrent_delete_does_not_double_decrement(self, service, enrolled):
        """The row vanished between the lookup and the unit of work."""
        course, enrollment = enrolled
        Enrollment.objects.filter(pk=enrollment.pk).delete()

        with mock.patch.object(service.enrollments, "get_by_id", return_value=enrollment):
            result = service.delete_enrollment("owner", enrollment.pk)

        assert result.error_kind == ErrorKind.NOT_FOUND
        course.refresh_from_db()
        assert course.student_count == 1

    def test_counter_failure_rolls_back_delete(self, service, enrolled):
        course, enrollment = enrolled

        with mock.patch.object(
            service.courses,
            "adjust_student_count",
            side_effect=OperationalError("connection lost"),
        ):
            result = service.delete_enrollment("owner", enrollment.pk)

        assert result.error_kind == ErrorKind.STORE_UNAVAILABLE
        assert Enrollment.objects.filter(pk=enrollment.pk).exists()
        course.refresh_from_db()
        assert course.student_count == 1

    def test_delete_with_counter_at_zero_still_succeeds(self, service, create_course):
        course = create_course(student_count=0)
        enrollment = Enrollment.objects.create(user_id="owner", course=course)

        result = service.delete_enrollment("owner", enrollment.pk)

        assert result.ok
        assert not Enrollment.objects.filter(pk=enrollment.pk).exists()
        course.refresh_from_db()
        assert course.student_count == 0

    def test_status_is_false_after_delete(self, service, enrolled):
        course, enrollment = enrolled
        assert service.delete_enrollment("owner", enrollment.pk).ok

        status = EnrollmentQueryService().get_enrollment_status("owner", course.pk)

        assert status.ok
        assert status.is_enrolled is False
        assert status.enrolled_at is None


class TestEnrollmentLifecycleScenario:
    """enrol → duplicate → unenrol on a fresh published course."""

    def test_full_cycle(self, service, create_course):
        course = create_course(title="c1")
        assert course.student_count == 0

        first = service.create_enrollment("u1", {"course_id": course.pk})
        assert first.ok
        course.refresh_from_db()
        assert course.student_count == 1

        again = service.create_enrollment("u1", {"course_id": course.pk})
        assert again.error_kind == ErrorKind.CONFLICT
        course.refresh_from_db()
        assert course.student_count == 1

        removed = service.delete_enrollment("u1", first.enrollment.pk)
        assert removed.ok
        course.refresh_from_db()
        assert course.student_count == 0
