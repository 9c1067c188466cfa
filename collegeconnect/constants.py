"""
collegeconnect.constants — Shared Constants & Helpers
======================================================

Single source of truth for scoring weights, roster defaults and the UTC
time helpers used by services and serializers.
"""

from __future__ import annotations

from datetime import UTC, datetime

# ---------------------------------------------------------------------------
# Popularity score weights (trending sort)
# ---------------------------------------------------------------------------
COMMENT_WEIGHT = 2
VIEW_WEIGHT = 0.1
FRESHNESS_WINDOW_DAYS = 7

# ---------------------------------------------------------------------------
# Roster defaults
# ---------------------------------------------------------------------------
ACCEPTED_MEMBER_ROLE = "Member"
PROJECT_OWNER_ROLE = "Owner"
TEAM_LEADER_ROLE = "Leader"
TEAM_MAX_SIZE_DEFAULT = 5

# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
NOTIFICATION_TTL_DAYS = 30

DEFAULT_PROFILE_IMAGE = "https://via.placeholder.com/150x150/007bff/ffffff?text=Profile"

SECONDS_PER_DAY = 60 * 60 * 24


# ---------------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------------
def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on round-trip)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def isoformat(value: datetime | None) -> str | None:
    normalized = as_utc(value)
    return normalized.isoformat() if normalized else None
