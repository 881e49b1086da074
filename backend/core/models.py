"""
Core app models.

Provides abstract base models and shared utilities used across the project.
"""

import uuid

from django.db import models


def generate_public_id() -> str:
    """Opaque string primary key for rows exposed through the API."""
    return uuid.uuid4().hex


class TimeStampedModel(models.Model):
    """
    Abstract base model that provides self-updating ``created_at`` and
    ``updated_at`` timestamp fields for every concrete child model.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name="Created At",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name="Updated At",
    )

    class Meta:
        abstract = True
