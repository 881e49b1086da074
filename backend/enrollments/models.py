"""
Enrollments app models.

An ``Enrollment`` links one principal to one course.  Rows are created and
deleted only by ``enrollments.services.EnrollmentService`` and are never
updated in place.
"""

from django.db import models
from django.utils import timezone

from core.constants import PRINCIPAL_ID_MAX_LENGTH, PUBLIC_ID_MAX_LENGTH
from core.models import generate_public_id


class Enrollment(models.Model):
    """
    Membership of a user in a course.

    ``user_id`` is the opaque identifier handed over by the authentication
    layer, not a foreign key: principals may live outside this database.
    The unique constraint on (``user_id``, ``course``) is the authoritative
    duplicate guard under concurrency.
    """

    id = models.CharField(
        primary_key=True,
        max_length=PUBLIC_ID_MAX_LENGTH,
        default=generate_public_id,
        editable=False,
    )
    user_id = models.CharField(
        max_length=PRINCIPAL_ID_MAX_LENGTH,
        verbose_name="User ID",
    )
    course = models.ForeignKey(
        "courses.Course",
        on_delete=models.CASCADE,
        related_name="enrollments",
        verbose_name="Course",
    )
    enrolled_at = models.DateTimeField(
        default=timezone.now,
        editable=False,
        verbose_name="Enrolled At",
    )

    class Meta:
        verbose_name = "Enrollment"
        verbose_name_plural = "Enrollments"
        ordering = ["-enrolled_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["user_id", "course"],
                name="uniq_enrollment_user_course",
            ),
        ]
        indexes = [
            models.Index(
                fields=["user_id", "-enrolled_at"],
                name="enrollment_user_recent_idx",
            ),
        ]

    def __str__(self):
        return f"{self.user_id} → {self.course_id}"
