"""
Core constants — **Single Source of Truth** for project-wide magic numbers.

Any formula or business rule that references a numeric constant should
import it from here instead of hardcoding.  This avoids drift between
apps that use the same value.
"""

# ── Pagination ──────────────────────────────────────────────────────
# Listing endpoints normalise ``page`` to >= 1 and clamp ``limit`` into
# [MIN_PAGE_SIZE, MAX_PAGE_SIZE].
DEFAULT_PAGE: int = 1
DEFAULT_PAGE_SIZE: int = 10
MIN_PAGE_SIZE: int = 1
MAX_PAGE_SIZE: int = 100

# ── Identifiers ─────────────────────────────────────────────────────
# Opaque string primary keys (uuid4 hex) fit in 32 chars; external
# principal identifiers may be longer.
PUBLIC_ID_MAX_LENGTH: int = 32
PRINCIPAL_ID_MAX_LENGTH: int = 255
