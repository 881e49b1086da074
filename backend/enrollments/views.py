"""
Enrollments app views.

Architecture: Views are intentionally thin.
Every view follows a strict three-step pattern:

    1. Parse and validate input via a serializer.
    2. Delegate all business logic to the enrollment services.
    3. Serialize the result and return a DRF ``Response``.

Write failures are re-raised from the service result with
``EnrollmentResult.unwrap()`` and rendered by the global
``core.domain.exception_handler``.  Read failures come back as result
objects carrying an error marker and are rendered here.

The authenticated principal's primary key, as a string, is the trusted
``user_id`` handed to the services.
"""

from __future__ import annotations

from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)

from core.domain.exceptions import ErrorKind

from .serializers import (
    EnrollmentCreateSerializer,
    EnrollmentListQuerySerializer,
    EnrollmentPageSerializer,
    EnrollmentSerializer,
    EnrollmentStatusSerializer,
)
from .services import EnrollmentQueryService, EnrollmentService


def _principal_id(request: Request) -> str:
    return str(request.user.pk)


def _read_failure_status(error_kind: ErrorKind | None) -> int:
    if error_kind == ErrorKind.INVALID_INPUT:
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_503_SERVICE_UNAVAILABLE


# ═══════════════════════════════════════════════════════════════════
#  Enrollment ViewSet
# ═══════════════════════════════════════════════════════════════════


class EnrollmentViewSet(viewsets.ViewSet):
    """
    ``/api/enrollments/``: enrol, list own enrollments, unenrol.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"[^/]+"

    @extend_schema(
        summary="List my enrollments",
        description="Paginated enrollments of the current user, newest first.",
        parameters=[
            OpenApiParameter("page", int, description="1-based page number (values below 1 become 1)."),
            OpenApiParameter("limit", int, description="Page size, clamped to 1-100."),
        ],
        responses={
            200: OpenApiResponse(response=EnrollmentPageSerializer, description="One page of enrollments."),
            503: OpenApiResponse(response=EnrollmentPageSerializer, description="Query failed; empty page."),
        },
        tags=["Enrollments"],
    )
    def list(self, request: Request) -> Response:
        query = EnrollmentListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        result = EnrollmentQueryService().get_enrollments(
            _principal_id(request), query.validated_data,
        )
        payload = EnrollmentPageSerializer(result).data
        if not result.ok:
            return Response(payload, status=_read_failure_status(result.error_kind))
        return Response(payload)

    @extend_schema(
        summary="Enrol in a course",
        description="Enrol the current user in a published course.",
        request=EnrollmentCreateSerializer,
        responses={
            201: OpenApiResponse(response=EnrollmentSerializer, description="Enrolled."),
            400: OpenApiResponse(description="Invalid input or course not published."),
            404: OpenApiResponse(description="Course not found."),
            409: OpenApiResponse(description="Already enrolled, or concurrent modification."),
            503: OpenApiResponse(description="Transaction failed; retry."),
        },
        tags=["Enrollments"],
    )
    def create(self, request: Request) -> Response:
        serializer = EnrollmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        enrollment = EnrollmentService().create_enrollment(
            _principal_id(request), serializer.validated_data,
        ).unwrap()
        return Response(
            EnrollmentSerializer(enrollment).data,
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(
        summary="Unenrol",
        description="Delete one of the current user's enrollments.",
        responses={
            200: OpenApiResponse(response=EnrollmentSerializer, description="Deleted enrollment."),
            403: OpenApiResponse(description="Enrollment belongs to another user."),
            404: OpenApiResponse(description="Enrollment not found."),
            503: OpenApiResponse(description="Transaction failed; retry."),
        },
        tags=["Enrollments"],
    )
    def destroy(self, request: Request, pk: str = None) -> Response:
        enrollment = EnrollmentService().delete_enrollment(
            _principal_id(request), pk,
        ).unwrap()
        return Response(EnrollmentSerializer(enrollment).data)


# ═══════════════════════════════════════════════════════════════════
#  Enrollment status
# ═══════════════════════════════════════════════════════════════════


class CourseEnrollmentStatusView(APIView):
    """
    ``GET /api/courses/{course_id}/enrollment-status/``
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="My enrollment status for a course",
        responses={
            200: OpenApiResponse(response=EnrollmentStatusSerializer, description="Status."),
            400: OpenApiResponse(response=EnrollmentStatusSerializer, description="Invalid course ID."),
            503: OpenApiResponse(response=EnrollmentStatusSerializer, description="Query failed."),
        },
        tags=["Enrollments"],
    )
    def get(self, request: Request, course_id: str) -> Response:
        result = EnrollmentQueryService().get_enrollment_status(
            _principal_id(request), course_id,
        )
        payload = EnrollmentStatusSerializer(result).data
        if not result.ok:
            return Response(payload, status=_read_failure_status(result.error_kind))
        return Response(payload)
