"""
collegeconnect.services.user_service — Profiles & computed stats
=================================================================

Profile stats are aggregated on read (non-deleted posts, active comments,
owned projects, net votes received) rather than stored on the user row.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Engine, case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from collegeconnect.database.engine import get_session, is_unique_violation
from collegeconnect.database.models import (
    Comment,
    CommentStatus,
    CommentVote,
    Post,
    PostStatus,
    PostVote,
    Project,
    User,
    VoteDirection,
)
from collegeconnect.errors import Conflict, NotFound
from collegeconnect.services.access import Actor, ensure_admin, ensure_owner
from collegeconnect.services.serializers import serialize_user

logger = logging.getLogger(__name__)

_PROFILE_FIELDS = frozenset({
    "name", "college", "course", "year", "semester", "bio",
    "skills", "interests", "social_links", "profile_image",
})


def _net_votes(session: Session, vote_model, fk, owner_model, owner_col, user_id: str) -> int:
    signed = case((vote_model.direction == VoteDirection.UP.value, 1), else_=-1)
    return session.scalar(
        select(func.coalesce(func.sum(signed), 0))
        .select_from(vote_model)
        .join(owner_model, fk == owner_model.id)
        .where(owner_col == user_id)
    ) or 0


def compute_stats(session: Session, user_id: str) -> dict[str, int]:
    posts = session.scalar(
        select(func.count(Post.id)).where(
            Post.author_id == user_id, Post.status != PostStatus.DELETED.value
        )
    ) or 0
    comments = session.scalar(
        select(func.count(Comment.id)).where(
            Comment.author_id == user_id, Comment.status == CommentStatus.ACTIVE.value
        )
    ) or 0
    projects = session.scalar(
        select(func.count(Project.id)).where(Project.owner_id == user_id)
    ) or 0
    reputation = (
        _net_votes(session, PostVote, PostVote.post_id, Post, Post.author_id, user_id)
        + _net_votes(session, CommentVote, CommentVote.comment_id, Comment, Comment.author_id, user_id)
    )
    return {
        "postsCount": posts,
        "commentsCount": comments,
        "projectsCount": projects,
        "reputation": reputation,
    }


def _load_user(session: Session, user_id: str) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def create_user(engine: Engine, actor: Actor, *, name: str, email: str, college: str, **profile: Any) -> dict:
    """Admin-only provisioning.  Emails are unique case-insensitively."""
    ensure_admin(actor, "create users")
    email = email.strip().lower()
    with get_session(engine) as session:
        if session.scalar(select(User.id).where(User.email == email)) is not None:
            raise Conflict("A user with this email already exists")
        user = User(name=name.strip(), email=email, college=college.strip())
        if profile.get("role"):
            user.role = profile.pop("role")
        for key, value in profile.items():
            if key in _PROFILE_FIELDS and value is not None:
                setattr(user, key, value)
        session.add(user)
        try:
            session.flush()
        except IntegrityError as exc:
            if not is_unique_violation(exc, User, "users_email_key"):
                raise
            raise Conflict("A user with this email already exists") from None
        logger.info("User %s created by %s", user.id, actor.id)
        return serialize_user(user)


def get_user(engine: Engine, user_id: str) -> dict:
    with Session(engine) as session:
        user = _load_user(session, user_id)
        return serialize_user(user, compute_stats(session, user_id))


def user_stats(engine: Engine, user_id: str) -> dict:
    with Session(engine) as session:
        _load_user(session, user_id)
        return compute_stats(session, user_id)


def update_user(engine: Engine, actor: Actor, user_id: str, **changes: Any) -> dict:
    """Profile edits by the user themself or an admin."""
    with get_session(engine) as session:
        user = _load_user(session, user_id)
        ensure_owner(actor, user.id, "update this user")
        applied = []
        for key, value in changes.items():
            if key in _PROFILE_FIELDS and value is not None:
                setattr(user, key, value)
                applied.append(key)
        session.flush()
        logger.info("User %s updated by %s (%s)", user_id, actor.id, sorted(applied))
        return serialize_user(user)


def deactivate_user(engine: Engine, actor: Actor, user_id: str) -> None:
    """Admin-only soft delete (``is_active = false``)."""
    ensure_admin(actor, "deactivate users")
    with get_session(engine) as session:
        user = _load_user(session, user_id)
        user.is_active = False
        logger.info("User %s deactivated by %s", user_id, actor.id)
