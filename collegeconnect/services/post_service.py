"""
collegeconnect.services.post_service — Post lifecycle
======================================================

Create, read (counts a view), update and soft-delete.  Deleting only flips
``status`` to ``deleted``; the row, its votes and comments stay for
history and the post remains fetchable by id.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy import Engine, update
from sqlalchemy.orm import Session

from collegeconnect.database.engine import get_session
from collegeconnect.database.models import (
    CommentStatus,
    Post,
    PostStatus,
    PostTag,
    User,
)
from collegeconnect.errors import NotFound
from collegeconnect.services import engagement
from collegeconnect.services.access import Actor, ensure_owner
from collegeconnect.services.counters import sync_post_counts
from collegeconnect.services.serializers import serialize_comment, serialize_post

logger = logging.getLogger(__name__)

_UPDATABLE = frozenset({"title", "content", "category", "status", "visibility", "post_type"})


def normalize_tags(tags: Iterable[str] | None) -> list[str]:
    """Trim, lowercase and de-duplicate, keeping first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags or []:
        cleaned = tag.strip().lower()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


def _set_tags(post: Post, tags: Iterable[str] | None) -> None:
    # Reuse surviving rows so the (post_id, tag) unique key never collides.
    existing = {row.tag: row for row in post.tag_rows}
    post.tag_rows = [existing.get(t) or PostTag(tag=t) for t in normalize_tags(tags)]


def _require_author(session: Session, user_id: str) -> User:
    user = session.get(User, user_id)
    if user is None or not user.is_active:
        raise NotFound("User not found")
    return user


def _post_payload(session: Session, post: Post, *, with_comments: bool = False) -> dict:
    votes = engagement.tally(session, engagement.POST, post.id)
    comments = None
    if with_comments:
        live = [c for c in post.comments if c.status == CommentStatus.ACTIVE.value]
        tallies = engagement.tallies_for(session, engagement.COMMENT, [c.id for c in live])
        comments = [serialize_comment(c, tallies.get(c.id)) for c in live]
    return serialize_post(post, votes, comments=comments)


def create_post(
    engine: Engine,
    actor: Actor,
    *,
    title: str,
    content: str,
    category: str,
    tags: Iterable[str] | None = None,
    status: str = PostStatus.PUBLISHED.value,
    visibility: str | None = None,
    post_type: str | None = None,
) -> dict:
    with get_session(engine) as session:
        _require_author(session, actor.id)
        post = Post(
            title=title.strip(),
            content=content,
            author_id=actor.id,
            category=category,
            status=status,
        )
        if visibility:
            post.visibility = visibility
        if post_type:
            post.post_type = post_type
        _set_tags(post, tags)
        session.add(post)
        sync_post_counts(session, post)
        logger.info("Post %s created by %s in %s", post.id, actor.id, category)
        return _post_payload(session, post)


def get_post(engine: Engine, post_id: str) -> dict:
    """Fetch one post with its live top-level comments and count the view.

    Deleted posts are still returned (with ``status: deleted``).
    ``comments`` lists only active comments, while ``commentsCount`` counts
    every top-level comment ever made, soft-deleted ones included.
    """
    with get_session(engine) as session:
        bumped = session.execute(
            update(Post)
            .where(Post.id == post_id)
            .values(views=Post.views + 1)
            .execution_options(synchronize_session=False)
        ).rowcount
        if not bumped:
            raise NotFound("Post not found")
        post = session.get(Post, post_id, populate_existing=True)
        return _post_payload(session, post, with_comments=True)


def update_post(engine: Engine, actor: Actor, post_id: str, **changes: Any) -> dict:
    """Apply *changes* (author or admin only).  ``tags`` replaces the tag set."""
    with get_session(engine) as session:
        post = engagement.load_votable(session, engagement.POST, post_id)
        ensure_owner(actor, post.author_id, "update this post")

        if changes.get("tags") is not None:
            _set_tags(post, changes.pop("tags"))
        for key, value in changes.items():
            if key in _UPDATABLE and value is not None:
                setattr(post, key, value)

        sync_post_counts(session, post)
        logger.info("Post %s updated by %s (%s)", post_id, actor.id, sorted(changes))
        return _post_payload(session, post)


def delete_post(engine: Engine, actor: Actor, post_id: str) -> None:
    """Soft delete: ``status = deleted``."""
    with get_session(engine) as session:
        post = engagement.load_votable(session, engagement.POST, post_id)
        ensure_owner(actor, post.author_id, "delete this post")
        post.status = PostStatus.DELETED.value
        sync_post_counts(session, post)
        logger.info("Post %s deleted by %s", post_id, actor.id)
