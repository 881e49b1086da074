"""
Enrollments app URL configuration.

    /api/enrollments/                              → list / create
    /api/enrollments/{id}/                         → delete
    /api/courses/{course_id}/enrollment-status/    → status for current user

Include from the top-level ``backend/backend/urls.py``::

    path("api/", include("enrollments.urls")),
"""

from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import CourseEnrollmentStatusView, EnrollmentViewSet

router = DefaultRouter()
router.register(
    prefix=r"enrollments",
    viewset=EnrollmentViewSet,
    basename="enrollment",
)

urlpatterns = [
    *router.urls,
    path(
        "courses/<str:course_id>/enrollment-status/",
        CourseEnrollmentStatusView.as_view(),
        name="course-enrollment-status",
    ),
]
