"""
collegeconnect.services.engagement — Vote state for posts & comments
=====================================================================

Each (entity, user) pair owns at most one row in the matching vote table,
with ``direction`` either ``up`` or ``down``.  The unique constraint on
that pair makes "in both vote sets at once" unrepresentable, so the
operations below only ever:

  1. Reject a repeat vote in the same direction (:class:`AlreadyVoted`).
  2. Flip an opposite-direction row with one conditional ``UPDATE``.
  3. Otherwise ``INSERT`` a new row inside a SAVEPOINT; a concurrent
     duplicate insert trips the unique constraint and surfaces as
     :class:`AlreadyVoted`.  Any other integrity failure propagates.

Every mutation re-runs the entity's derived-count sync before commit.
Tallies are always counted from rows, never stored.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from sqlalchemy import Engine, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from collegeconnect.constants import utcnow
from collegeconnect.database.engine import get_session, is_unique_violation
from collegeconnect.database.models import (
    Comment,
    CommentStatus,
    CommentVote,
    Post,
    PostStatus,
    PostVote,
    User,
    VoteDirection,
)
from collegeconnect.engine.scoring import VoteTally
from collegeconnect.errors import AlreadyVoted, NotFound
from collegeconnect.services.counters import sync_comment_counts, sync_post_counts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VotableKind:
    """Binds a votable entity model to its vote table."""

    name: str
    model: type
    vote_model: type
    fk: str
    deleted_status: str
    sync: Callable[[Session, object], int]
    unique_key: str

    @property
    def label(self) -> str:
        return self.name.capitalize()

    def vote_fk(self):
        return getattr(self.vote_model, self.fk)


POST = VotableKind(
    name="post",
    model=Post,
    vote_model=PostVote,
    fk="post_id",
    deleted_status=PostStatus.DELETED.value,
    sync=sync_post_counts,
    unique_key="uq_post_votes_post_user",
)

COMMENT = VotableKind(
    name="comment",
    model=Comment,
    vote_model=CommentVote,
    fk="comment_id",
    deleted_status=CommentStatus.DELETED.value,
    sync=sync_comment_counts,
    unique_key="uq_comment_votes_comment_user",
)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def load_votable(session: Session, kind: VotableKind, entity_id: str):
    """Return the live entity or raise :class:`NotFound` (absent or deleted)."""
    entity = session.get(kind.model, entity_id)
    if entity is None or entity.status == kind.deleted_status:
        raise NotFound(f"{kind.label} not found")
    return entity


def tally(session: Session, kind: VotableKind, entity_id: str) -> VoteTally:
    """Count up/down rows for one entity."""
    return tallies_for(session, kind, [entity_id]).get(entity_id, VoteTally())


def tallies_for(
    session: Session, kind: VotableKind, entity_ids: Iterable[str]
) -> dict[str, VoteTally]:
    """Batch tally for a page of entities; ids with no votes are omitted."""
    ids = list(entity_ids)
    if not ids:
        return {}
    fk = kind.vote_fk()
    rows = session.execute(
        select(fk, kind.vote_model.direction, func.count(kind.vote_model.id))
        .where(fk.in_(ids))
        .group_by(fk, kind.vote_model.direction)
    ).all()

    counts: dict[str, dict[str, int]] = {}
    for entity_id, direction, count in rows:
        counts.setdefault(entity_id, {})[direction] = count
    return {
        entity_id: VoteTally(
            upvotes=by_dir.get(VoteDirection.UP.value, 0),
            downvotes=by_dir.get(VoteDirection.DOWN.value, 0),
        )
        for entity_id, by_dir in counts.items()
    }


def user_vote(
    session: Session, kind: VotableKind, entity_id: str, user_id: str
) -> VoteDirection | None:
    """The user's current direction on an entity, or ``None``."""
    direction = session.scalar(
        select(kind.vote_model.direction).where(
            kind.vote_fk() == entity_id,
            kind.vote_model.user_id == user_id,
        )
    )
    return VoteDirection(direction) if direction else None


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------
def _cast_vote(
    session: Session,
    kind: VotableKind,
    entity_id: str,
    user_id: str,
    direction: VoteDirection,
) -> VoteTally:
    entity = load_votable(session, kind, entity_id)
    if session.get(User, user_id) is None:
        raise NotFound("User not found")

    if user_vote(session, kind, entity_id, user_id) is direction:
        raise AlreadyVoted(f"You have already {direction.value}voted this {kind.name}")

    fk = kind.vote_fk()
    flipped = session.execute(
        update(kind.vote_model)
        .where(
            fk == entity_id,
            kind.vote_model.user_id == user_id,
            kind.vote_model.direction == direction.opposite.value,
        )
        .values(direction=direction.value, created_at=utcnow())
        .execution_options(synchronize_session=False)
    ).rowcount

    if not flipped:
        try:
            with session.begin_nested():
                session.add(kind.vote_model(
                    **{kind.fk: entity_id},
                    user_id=user_id,
                    direction=direction.value,
                ))
        except IntegrityError as exc:
            if not is_unique_violation(exc, kind.vote_model, kind.unique_key):
                raise
            # Lost a race against an identical concurrent vote.
            raise AlreadyVoted(
                f"You have already {direction.value}voted this {kind.name}"
            ) from None

    kind.sync(session, entity)
    result = tally(session, kind, entity_id)
    logger.info(
        "%s %s %svoted by %s (flipped=%s) → %s",
        kind.label, entity_id, direction.value, user_id, bool(flipped), result.to_dict(),
    )
    return result


def upvote(engine: Engine, kind: VotableKind, entity_id: str, user_id: str) -> VoteTally:
    """Record an up-vote, replacing any down-vote by the same user."""
    with get_session(engine) as session:
        return _cast_vote(session, kind, entity_id, user_id, VoteDirection.UP)


def downvote(engine: Engine, kind: VotableKind, entity_id: str, user_id: str) -> VoteTally:
    """Record a down-vote, replacing any up-vote by the same user."""
    with get_session(engine) as session:
        return _cast_vote(session, kind, entity_id, user_id, VoteDirection.DOWN)


def remove_vote(engine: Engine, kind: VotableKind, entity_id: str, user_id: str) -> VoteTally:
    """Drop the user's vote in either direction.  Idempotent."""
    with get_session(engine) as session:
        entity = load_votable(session, kind, entity_id)
        removed = session.execute(
            delete(kind.vote_model)
            .where(kind.vote_fk() == entity_id, kind.vote_model.user_id == user_id)
            .execution_options(synchronize_session=False)
        ).rowcount
        kind.sync(session, entity)
        result = tally(session, kind, entity_id)
        logger.info(
            "%s %s vote removed for %s (rows=%d) → %s",
            kind.label, entity_id, user_id, removed, result.to_dict(),
        )
        return result
