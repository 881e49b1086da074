"""
Courses app repository — Course Lookup and Course Mutation.

The enrollment core reads a course's publication state and adjusts its
``student_count``; it does nothing else with course rows.  Everything
goes through ``CourseRepository`` so services can be handed a fake in
tests.
"""

from __future__ import annotations

from django.db.models import F

from .models import Course


class CourseRepository:
    """Django ORM adapter over ``Course``."""

    def find_course(self, course_id: str) -> Course | None:
        """Return the course with its current publication state, or ``None``."""
        return Course.objects.filter(pk=course_id).first()

    def adjust_student_count(
        self,
        course_id: str,
        delta: int,
        *,
        require_state: str | None = None,
    ) -> int:
        """
        Atomically add ``delta`` to ``student_count``.

        Issues a single ``UPDATE … SET student_count = student_count + delta``
        so concurrent adjustments never overwrite each other.  Must be
        called inside the caller's ``atomic()`` block, next to the
        enrollment row change it accounts for.

        Args:
            course_id:     Course primary key.
            delta:         Signed amount to add.
            require_state: When given, the row is only updated if its
                           ``publication_state`` still equals this value.

        A negative ``delta`` only applies while the counter can absorb it,
        so ``student_count`` never goes below zero.

        Returns:
            The number of rows updated (0 or 1).
        """
        qs = Course.objects.filter(pk=course_id)
        if require_state is not None:
            qs = qs.filter(publication_state=require_state)
        if delta < 0:
            qs = qs.filter(student_count__gte=-delta)
        return qs.update(student_count=F("student_count") + delta)
