"""
core.domain — Shared domain utilities for cross-app service layers.

Modules
-------
exceptions         Domain exception hierarchy and the stable ``ErrorKind`` tags.
transactions       ``transaction.atomic`` wrapper + store-error classification.
exception_handler  DRF handler rendering domain exceptions as responses.

Usage from any app::

    from core.domain.exceptions import DomainError, NotFound
    from core.domain.transactions import atomic_unit_of_work
"""
