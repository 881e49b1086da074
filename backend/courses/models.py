"""
Courses app models.

Only the parts of a course the enrollment core depends on live here: its
identity, its publication state and the denormalized ``student_count``.
"""

from django.db import models

from core.constants import PUBLIC_ID_MAX_LENGTH
from core.models import TimeStampedModel, generate_public_id


class PublicationState(models.TextChoices):
    DRAFT = "draft", "Draft"
    PUBLISHED = "published", "Published"
    ARCHIVED = "archived", "Archived"


class Course(TimeStampedModel):
    """
    A course that users may enrol in once it is published.

    ``student_count`` is a cache of the number of live enrollments.  It is
    written only by the enrollment service, inside the same transaction
    as the enrollment row it accounts for.
    """

    id = models.CharField(
        primary_key=True,
        max_length=PUBLIC_ID_MAX_LENGTH,
        default=generate_public_id,
        editable=False,
    )
    title = models.CharField(max_length=300, verbose_name="Title")
    publication_state = models.CharField(
        max_length=20,
        choices=PublicationState.choices,
        default=PublicationState.DRAFT,
        db_index=True,
        verbose_name="Publication State",
    )
    student_count = models.PositiveIntegerField(
        default=0,
        verbose_name="Student Count",
    )

    class Meta:
        verbose_name = "Course"
        verbose_name_plural = "Courses"
        ordering = ["-created_at"]

    def __str__(self):
        return self.title or self.id

    @property
    def is_published(self) -> bool:
        return self.publication_state == PublicationState.PUBLISHED
