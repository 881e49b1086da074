"""
Integration tests for the enrollment HTTP endpoints.

    POST   /api/enrollments/
    GET    /api/enrollments/?page=&limit=
    DELETE /api/enrollments/{id}/
    GET    /api/courses/{course_id}/enrollment-status/

Executed through real HTTP endpoints with a JWT obtained from
``POST /api/auth/token/``.
"""

from __future__ import annotations

from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError, OperationalError
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from courses.models import Course, PublicationState
from enrollments.models import Enrollment
from enrollments.repositories import EnrollmentRepository

User = get_user_model()


class EnrollmentAPITestBase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.password = "Enrol!Pass42"
        cls.student = User.objects.create_user(
            username="student_one",
            password=cls.password,
            email="student_one@example.com",
        )
        cls.other_student = User.objects.create_user(
            username="student_two",
            password=cls.password,
            email="student_two@example.com",
        )
        cls.course = Course.objects.create(
            title="Distributed Systems",
            publication_state=PublicationState.PUBLISHED,
        )
        cls.draft_course = Course.objects.create(
            title="Unreleased Course",
            publication_state=PublicationState.DRAFT,
        )

    def setUp(self):
        self.client = APIClient()
        self.list_url = reverse("enrollment-list")

    def login_as(self, user, password: str) -> str:
        """Obtain a token through POST /api/auth/token/ and set Bearer auth."""
        resp = self.client.post(
            reverse("token-obtain"),
            {"username": user.username, "password": password},
            format="json",
        )
        self.assertEqual(
            resp.status_code,
            status.HTTP_200_OK,
            msg=f"Login failed for test user: {resp.data}",
        )
        token = resp.data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        return token

    def enroll(self, course_id: str):
        return self.client.post(self.list_url, {"course_id": course_id}, format="json")

    def status_url(self, course_id: str) -> str:
        return reverse("course-enrollment-status", kwargs={"course_id": course_id})


class TestCreateEnrollmentEndpoint(EnrollmentAPITestBase):

    def test_student_can_enroll(self):
        self.login_as(self.student, self.password)

        resp = self.enroll(self.course.pk)

        self.assertEqual(
            resp.status_code,
            status.HTTP_201_CREATED,
            msg=f"Expected enrollment to return 201. Body: {resp.data}",
        )
        self.assertEqual(resp.data["user_id"], str(self.student.pk))
        self.assertEqual(resp.data["course_id"], self.course.pk)
        self.assertEqual(resp.data["course"]["title"], "Distributed Systems")
        self.course.refresh_from_db()
        self.assertEqual(self.course.student_count, 1)

    def test_duplicate_enrollment_returns_409(self):
        self.login_as(self.student, self.password)
        self.enroll(self.course.pk)

        resp = self.enroll(self.course.pk)

        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data["code"], "conflict")
        self.assertEqual(resp.data["detail"], "User is already enrolled in this course")
        self.course.refresh_from_db()
        self.assertEqual(self.course.student_count, 1)

    def test_draft_course_returns_400(self):
        self.login_as(self.student, self.password)

        resp = self.enroll(self.draft_course.pk)

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["code"], "invalid_state")
        self.assertFalse(Enrollment.objects.filter(course=self.draft_course).exists())

    def test_unknown_course_returns_404(self):
        self.login_as(self.student, self.password)

        resp = self.enroll("no-such-course")

        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["code"], "not_found")

    def test_blank_course_id_returns_400(self):
        self.login_as(self.student, self.password)

        resp = self.enroll("")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("course_id", resp.data)

    def test_transient_failure_returns_503(self):
        self.login_as(self.student, self.password)

        with mock.patch.object(
            EnrollmentRepository, "insert", side_effect=DatabaseError("could not commit"),
        ):
            resp = self.enroll(self.course.pk)

        self.assertEqual(resp.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(resp.data["code"], "transient_failure")
        self.assertEqual(resp["Retry-After"], "1")
        self.assertNotIn("could not commit", resp.data["detail"])

    def test_requires_authentication(self):
        resp = self.enroll(self.course.pk)

        self.assertEqual(
            resp.status_code,
            status.HTTP_401_UNAUTHORIZED,
            msg=f"Unauthenticated enrollment should return 401. Body: {resp.data}",
        )


class TestListEnrollmentsEndpoint(EnrollmentAPITestBase):

    def test_lists_own_enrollments(self):
        Enrollment.objects.create(user_id=str(self.student.pk), course=self.course)
        Enrollment.objects.create(user_id=str(self.other_student.pk), course=self.course)
        self.login_as(self.student, self.password)

        resp = self.client.get(self.list_url, {"page": 1, "limit": 10})

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(len(resp.data["items"]), 1)
        self.assertEqual(
            resp.data["pagination"],
            {"page": 1, "limit": 10, "total": 1, "total_pages": 1},
        )

    def test_out_of_range_pagination_is_normalised(self):
        self.login_as(self.student, self.password)

        resp = self.client.get(self.list_url, {"page": 0, "limit": 0})

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["pagination"]["page"], 1)
        self.assertEqual(resp.data["pagination"]["limit"], 1)

    def test_query_failure_returns_empty_page(self):
        self.login_as(self.student, self.password)
        self.enroll(self.course.pk)

        with mock.patch.object(
            EnrollmentRepository, "list_for_user", side_effect=OperationalError("gone"),
        ):
            resp = self.client.get(self.list_url)

        self.assertEqual(resp.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(resp.data["items"], [])
        self.assertEqual(resp.data["pagination"]["total"], 0)
        self.assertEqual(resp.data["error"], "Database query failed")


class TestDeleteEnrollmentEndpoint(EnrollmentAPITestBase):

    def setUp(self):
        super().setUp()
        self.login_as(self.student, self.password)
        self.enrollment_id = self.enroll(self.course.pk).data["id"]

    def detail_url(self, enrollment_id: str) -> str:
        return reverse("enrollment-detail", kwargs={"pk": enrollment_id})

    def test_owner_can_unenroll(self):
        resp = self.client.delete(self.detail_url(self.enrollment_id))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["id"], self.enrollment_id)
        self.course.refresh_from_db()
        self.assertEqual(self.course.student_count, 0)

    def test_other_user_gets_403(self):
        self.login_as(self.other_student, self.password)

        resp = self.client.delete(self.detail_url(self.enrollment_id))

        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(resp.data["code"], "unauthorized")
        self.assertTrue(Enrollment.objects.filter(pk=self.enrollment_id).exists())

    def test_unknown_enrollment_returns_404(self):
        resp = self.client.delete(self.detail_url("missing"))

        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)


class TestEnrollmentStatusEndpoint(EnrollmentAPITestBase):

    def test_reports_enrolled(self):
        self.login_as(self.student, self.password)
        self.enroll(self.course.pk)

        resp = self.client.get(self.status_url(self.course.pk))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data["is_enrolled"])
        self.assertIsNotNone(resp.data["enrolled_at"])

    def test_reports_not_enrolled(self):
        self.login_as(self.student, self.password)

        resp = self.client.get(self.status_url(self.course.pk))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertFalse(resp.data["is_enrolled"])
        self.assertIsNone(resp.data["enrolled_at"])

    def test_query_failure_fails_closed(self):
        self.login_as(self.student, self.password)

        with mock.patch.object(
            EnrollmentRepository,
            "find_for_user_and_course",
            side_effect=OperationalError("gone"),
        ):
            resp = self.client.get(self.status_url(self.course.pk))

        self.assertEqual(resp.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertFalse(resp.data["is_enrolled"])
