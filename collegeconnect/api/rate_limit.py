"""
collegeconnect.api.rate_limit — Per-Actor Mutation Rate Limiting
=================================================================

Sliding-window counter keyed by the authenticated user id (JWT ``sub``).
Defaults to 100 mutations per 15 minutes (``config.yaml``).  Returns
HTTP 429 with a ``Retry-After`` header when the limit is exceeded.

State lives in the ``rate_limit_events`` table so it survives restarts.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Any

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import Engine, delete, func, select
from sqlalchemy.orm import Session

from collegeconnect.api.deps import get_config, get_current_actor, get_engine
from collegeconnect.config import CollegeConnectConfig
from collegeconnect.constants import as_utc, utcnow
from collegeconnect.database.models import RateLimitEvent
from collegeconnect.services.access import Actor

logger = logging.getLogger(__name__)

DEFAULT_RATE_LIMIT = 100
DEFAULT_WINDOW_SECONDS = 15 * 60

# HTTP methods considered "mutations"
_MUTATION_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class MutationRateLimiter:
    """Sliding-window rate limiter keyed by actor id."""

    def __init__(
        self,
        max_requests: int = DEFAULT_RATE_LIMIT,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        *,
        engine: Engine,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.engine = engine

    def _prune(self, session: Session, actor_id: str) -> None:
        cutoff = utcnow() - timedelta(seconds=self.window_seconds)
        session.execute(
            delete(RateLimitEvent).where(
                RateLimitEvent.actor_id == actor_id,
                RateLimitEvent.timestamp < cutoff,
            )
        )

    def check(self, actor_id: str) -> tuple[bool, dict[str, Any]]:
        """Check if the actor is within rate limits.

        Returns (allowed, info) where info contains:
          - remaining: requests remaining in the window
          - reset: seconds until the oldest request expires
          - limit: the max requests per window
        """
        now = utcnow()
        with Session(self.engine) as session:
            self._prune(session, actor_id)
            timestamps = session.scalars(
                select(RateLimitEvent.timestamp)
                .where(RateLimitEvent.actor_id == actor_id)
                .order_by(RateLimitEvent.timestamp.asc())
            ).all()
            session.commit()

        count = len(timestamps)
        if count >= self.max_requests:
            oldest = as_utc(timestamps[0])
            reset = (oldest + timedelta(seconds=self.window_seconds) - now).total_seconds()
            return False, {
                "remaining": 0,
                "reset": max(1, int(reset) + 1),
                "limit": self.max_requests,
            }

        return True, {
            "remaining": max(0, self.max_requests - count),
            "reset": self.window_seconds,
            "limit": self.max_requests,
        }

    def record(self, actor_id: str) -> dict[str, Any]:
        """Record a request and return the updated rate-limit info."""
        with Session(self.engine) as session:
            self._prune(session, actor_id)
            session.add(RateLimitEvent(actor_id=actor_id))
            session.flush()
            count = session.scalar(
                select(func.count(RateLimitEvent.id)).where(
                    RateLimitEvent.actor_id == actor_id
                )
            ) or 0
            session.commit()

        return {
            "remaining": max(0, self.max_requests - count),
            "reset": self.window_seconds,
            "limit": self.max_requests,
        }

    def reset(self, actor_id: str | None = None) -> None:
        """Clear rate limit state. If actor_id is None, clear all."""
        with Session(self.engine) as session:
            stmt = delete(RateLimitEvent)
            if actor_id is not None:
                stmt = stmt.where(RateLimitEvent.actor_id == actor_id)
            session.execute(stmt)
            session.commit()


def get_rate_limiter(
    engine: Engine = Depends(get_engine),
    config: CollegeConnectConfig = Depends(get_config),
) -> MutationRateLimiter:
    return MutationRateLimiter(
        max_requests=config.rate_limit_max_requests,
        window_seconds=config.rate_limit_window_seconds,
        engine=engine,
    )


# ---------------------------------------------------------------------------
# FastAPI dependency — chains after get_current_actor
# ---------------------------------------------------------------------------
async def rate_limited_actor(
    request: Request,
    actor: Actor = Depends(get_current_actor),
    limiter: MutationRateLimiter = Depends(get_rate_limiter),
) -> Actor:
    """Authenticate *and* enforce the per-actor mutation limit.

    GET/HEAD/OPTIONS requests pass through without rate-limit checks.
    Use ``Depends(rate_limited_actor)`` on every mutating route.
    """
    if request.method not in _MUTATION_METHODS:
        return actor

    allowed, info = await asyncio.to_thread(limiter.check, actor.id)

    if not allowed:
        logger.warning(
            "Rate limit exceeded for %s: %d requests per %ds",
            actor.id, limiter.max_requests, limiter.window_seconds,
        )
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=(
                "Too many requests from this user, please try again later."
            ),
            headers={"Retry-After": str(info["reset"])},
        )

    await asyncio.to_thread(limiter.record, actor.id)
    return actor
