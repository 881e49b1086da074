"""
Enrollments app repository.

Thin Django ORM adapter over ``Enrollment``.  Services depend on this
class rather than on ``Enrollment.objects`` so that a fake with the same
method names can be injected in tests.
"""

from __future__ import annotations

from django.db.models import QuerySet

from .models import Enrollment


class EnrollmentRepository:
    """CRUD over enrollment rows keyed by (user_id, course) uniqueness."""

    def _base(self) -> QuerySet:
        return Enrollment.objects.select_related("course")

    def find_for_user_and_course(self, user_id: str, course_id: str) -> Enrollment | None:
        return Enrollment.objects.filter(user_id=user_id, course_id=course_id).first()

    def get_by_id(self, enrollment_id: str) -> Enrollment | None:
        return self._base().filter(pk=enrollment_id).first()

    def insert(self, user_id: str, course_id: str) -> Enrollment:
        """
        Insert a new row.

        Raises ``django.db.IntegrityError`` when the (user_id, course)
        constraint is violated; classification is the caller's job.
        """
        return Enrollment.objects.create(user_id=user_id, course_id=course_id)

    def delete(self, enrollment_id: str) -> int:
        """Delete by primary key and return the number of rows removed."""
        deleted, _ = Enrollment.objects.filter(pk=enrollment_id).delete()
        return deleted

    def list_for_user(self, user_id: str, *, offset: int, limit: int) -> list[Enrollment]:
        """One page of the user's enrollments, newest first, course joined."""
        qs = self._base().filter(user_id=user_id).order_by("-enrolled_at", "-id")
        return list(qs[offset:offset + limit])

    def count_for_user(self, user_id: str) -> int:
        return Enrollment.objects.filter(user_id=user_id).count()
