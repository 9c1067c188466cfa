"""
collegeconnect.services.counters — Derived-field maintenance
=============================================================

Every mutating service operation calls the matching ``sync_*`` function
as its last step, inside the same session.  Each one recomputes a stored
counter from the authoritative child rows; none of them trust or
increment the previous value.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from collegeconnect.database.models import (
    Comment,
    Event,
    EventParticipant,
    MemberStatus,
    Post,
)


def sync_post_counts(session: Session, post: Post) -> int:
    """``comments_count`` = number of top-level comments on *post*."""
    session.flush()
    post.comments_count = session.scalar(
        select(func.count(Comment.id)).where(
            Comment.post_id == post.id,
            Comment.parent_comment_id.is_(None),
        )
    ) or 0
    return post.comments_count


def sync_comment_counts(session: Session, comment: Comment) -> int:
    """``replies_count`` = number of direct replies to *comment*."""
    session.flush()
    comment.replies_count = session.scalar(
        select(func.count(Comment.id)).where(Comment.parent_comment_id == comment.id)
    ) or 0
    return comment.replies_count


def sync_roster_size(session: Session, member_model, parent_key: str, entity) -> int:
    """``team_size_current`` = number of *active* roster rows.

    Works for both projects and teams; *member_model* is the roster table
    and *parent_key* its foreign-key column name.
    """
    session.flush()
    entity.team_size_current = session.scalar(
        select(func.count(member_model.id)).where(
            getattr(member_model, parent_key) == entity.id,
            member_model.status == MemberStatus.ACTIVE.value,
        )
    ) or 0
    return entity.team_size_current


def sync_participant_count(session: Session, event: Event) -> int:
    """``current_participants`` = number of participant rows on *event*."""
    session.flush()
    event.current_participants = session.scalar(
        select(func.count(EventParticipant.id)).where(
            EventParticipant.event_id == event.id
        )
    ) or 0
    return event.current_participants
