"""
Enrollments app serializers.

Request serializers only parse and shape input; response serializers
render service results.  **No business logic** lives here: eligibility,
duplicate detection and counter maintenance belong to ``services.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from core.constants import DEFAULT_PAGE, DEFAULT_PAGE_SIZE
from courses.models import Course

from .models import Enrollment


# ═══════════════════════════════════════════════════════════════════
#  Request serializers
# ═══════════════════════════════════════════════════════════════════


class EnrollmentCreateSerializer(serializers.Serializer):
    """Body of ``POST /api/enrollments/``."""

    course_id = serializers.CharField(max_length=255)


class EnrollmentListQuerySerializer(serializers.Serializer):
    """
    Query string of ``GET /api/enrollments/``.

    No range validation here: out-of-range values are normalised by the
    query service rather than rejected.
    """

    page = serializers.IntegerField(required=False, default=DEFAULT_PAGE)
    limit = serializers.IntegerField(required=False, default=DEFAULT_PAGE_SIZE)


# ═══════════════════════════════════════════════════════════════════
#  Response serializers
# ═══════════════════════════════════════════════════════════════════


class CourseSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Course
        fields = ["id", "title", "publication_state", "student_count"]
        read_only_fields = fields


class EnrollmentSerializer(serializers.ModelSerializer):
    """Enrollment row with its joined course summary."""

    course_id = serializers.CharField(read_only=True)
    course = CourseSummarySerializer(read_only=True)

    class Meta:
        model = Enrollment
        fields = ["id", "user_id", "course_id", "course", "enrolled_at"]
        read_only_fields = fields


class PageInfoSerializer(serializers.Serializer):
    page = serializers.IntegerField()
    limit = serializers.IntegerField()
    total = serializers.IntegerField()
    total_pages = serializers.IntegerField()


class EnrollmentPageSerializer(serializers.Serializer):
    """Renders an ``EnrollmentPage``."""

    items = EnrollmentSerializer(many=True)
    pagination = PageInfoSerializer()
    error = serializers.CharField(allow_null=True, required=False)


class EnrollmentStatusSerializer(serializers.Serializer):
    """Renders an ``EnrollmentStatusResult``."""

    is_enrolled = serializers.BooleanField()
    enrolled_at = serializers.DateTimeField(allow_null=True)
    error = serializers.CharField(allow_null=True, required=False)
