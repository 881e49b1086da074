"""
Root conftest.py — shared fixtures for the entire test suite.

Provides:
  - ``api_client`` fixture returning a DRF ``APIClient``.
  - ``create_user`` factory fixture for creating test users.
  - ``auth_header`` fixture for authenticated requests (JWT).
  - ``create_course`` factory fixture for courses in any publication state.
"""

from __future__ import annotations

import pytest
from rest_framework.test import APIClient


@pytest.fixture()
def api_client() -> APIClient:
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture()
def create_user(db):
    """
    Factory fixture that creates a user with sensible defaults.

    Usage::

        def test_something(create_user):
            user = create_user(username="alice")
    """
    from django.contrib.auth import get_user_model

    User = get_user_model()
    _counter = 0

    def _factory(
        *,
        username: str | None = None,
        password: str = "TestPass123!",
        email: str | None = None,
        is_active: bool = True,
        **kwargs,
    ):
        nonlocal _counter
        _counter += 1
        if username is None:
            username = f"testuser{_counter}"
        if email is None:
            email = f"{username}@test.local"

        return User.objects.create_user(
            username=username,
            password=password,
            email=email,
            is_active=is_active,
            **kwargs,
        )

    return _factory


@pytest.fixture()
def auth_header(create_user):
    """
    Returns a helper that creates a user and returns ``(user, header)``
    where ``header`` is an ``Authorization`` dict with a valid JWT.

    Usage::

        def test_protected(auth_header, api_client):
            user, header = auth_header(username="alice")
            api_client.credentials(HTTP_AUTHORIZATION=header["Authorization"])
            resp = api_client.get("/api/enrollments/")
            assert resp.status_code != 401
    """
    from rest_framework_simplejwt.tokens import AccessToken

    def _make(*, username: str | None = None, **user_kwargs):
        user = create_user(username=username, **user_kwargs)
        token = AccessToken.for_user(user)
        return user, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture()
def create_course(db):
    """
    Factory fixture for ``courses.Course``; published by default.

    Usage::

        course = create_course()
        draft = create_course(publication_state=PublicationState.DRAFT)
    """
    from courses.models import Course, PublicationState

    _counter = 0

    def _factory(
        *,
        title: str | None = None,
        publication_state: str = PublicationState.PUBLISHED,
        student_count: int = 0,
        **kwargs,
    ) -> Course:
        nonlocal _counter
        _counter += 1
        return Course.objects.create(
            title=title or f"Course {_counter}",
            publication_state=publication_state,
            student_count=student_count,
            **kwargs,
        )

    return _factory
