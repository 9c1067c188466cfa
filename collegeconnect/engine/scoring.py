"""
collegeconnect.engine.scoring — Vote tallies & popularity score
================================================================

Pure functions over already-loaded numbers.  Nothing here touches the
database; ``voteCount`` and ``popularityScore`` are always recomputed at
read time and never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from collegeconnect.constants import (
    COMMENT_WEIGHT,
    FRESHNESS_WINDOW_DAYS,
    SECONDS_PER_DAY,
    VIEW_WEIGHT,
    as_utc,
    utcnow,
)


@dataclass(frozen=True, slots=True)
class VoteTally:
    """Up/down vote counts for one post or comment."""

    upvotes: int = 0
    downvotes: int = 0

    @property
    def vote_count(self) -> int:
        return self.upvotes - self.downvotes

    def to_dict(self) -> dict[str, int]:
        return {
            "upvotes": self.upvotes,
            "downvotes": self.downvotes,
            "voteCount": self.vote_count,
        }


def age_in_days(created_at: datetime, now: datetime | None = None) -> float:
    now = as_utc(now) if now is not None else utcnow()
    return (now - as_utc(created_at)).total_seconds() / SECONDS_PER_DAY


def popularity_score(
    *,
    vote_count: int,
    comments_count: int,
    views: int,
    created_at: datetime,
    now: datetime | None = None,
) -> float:
    """Trending score for a post.

    ``vote_count + 2·comments + 0.1·views + max(0, 7 − age_days)``

    The freshness bonus decays linearly to zero over the first week.  The
    total may still be negative for heavily down-voted posts.
    """
    freshness = max(0.0, FRESHNESS_WINDOW_DAYS - age_in_days(created_at, now))
    return (
        vote_count
        + COMMENT_WEIGHT * comments_count
        + VIEW_WEIGHT * views
        + freshness
    )
