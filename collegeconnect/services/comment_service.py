"""
collegeconnect.services.comment_service — Comments & one-level replies
=======================================================================
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine

from collegeconnect.constants import isoformat, utcnow
from collegeconnect.database.engine import get_session
from collegeconnect.database.models import (
    Comment,
    CommentEdit,
    CommentStatus,
    NotificationType,
    Post,
    User,
)
from collegeconnect.engine.related import RelatedEntity
from collegeconnect.errors import NotFound, ValidationError
from collegeconnect.services import engagement
from collegeconnect.services.access import Actor, ensure_owner
from collegeconnect.services.counters import sync_comment_counts, sync_post_counts
from collegeconnect.services.notification_service import create_notification
from collegeconnect.services.serializers import serialize_comment

logger = logging.getLogger(__name__)


def create_comment(
    engine: Engine,
    actor: Actor,
    post_id: str,
    content: str,
    parent_comment_id: str | None = None,
) -> dict:
    """Comment on a live post, or reply to one of its top-level comments.

    Updates the post's ``comments_count`` (top-level only) or the parent's
    ``replies_count`` in the same transaction and notifies the post author.
    """
    with get_session(engine) as session:
        post: Post = engagement.load_votable(session, engagement.POST, post_id)
        if session.get(User, actor.id) is None:
            raise NotFound("User not found")

        parent = None
        if parent_comment_id:
            parent = session.get(Comment, parent_comment_id)
            if (
                parent is None
                or parent.post_id != post_id
                or parent.status == CommentStatus.DELETED.value
            ):
                raise NotFound("Parent comment not found")
            if parent.parent_comment_id is not None:
                raise ValidationError.for_field(
                    "parentComment", "Replies can only be one level deep"
                )

        comment = Comment(
            content=content,
            author_id=actor.id,
            post_id=post_id,
            parent_comment_id=parent_comment_id,
        )
        session.add(comment)

        sync_post_counts(session, post)
        if parent is not None:
            sync_comment_counts(session, parent)
        sync_comment_counts(session, comment)

        if post.author_id != actor.id:
            create_notification(
                session,
                recipient_id=post.author_id,
                sender_id=actor.id,
                type=NotificationType.POST_COMMENT,
                title="New comment on your post",
                message=content[:200],
                related=RelatedEntity.post(post_id),
            )

        logger.info(
            "Comment %s on post %s by %s (reply_to=%s)",
            comment.id, post_id, actor.id, parent_comment_id,
        )
        return serialize_comment(comment)


def update_comment(engine: Engine, actor: Actor, comment_id: str, content: str) -> dict:
    """Edit content (author or admin).  The previous text is kept in history."""
    with get_session(engine) as session:
        comment: Comment = engagement.load_votable(session, engagement.COMMENT, comment_id)
        ensure_owner(actor, comment.author_id, "update this comment")

        if content != comment.content:
            now = utcnow()
            comment.edits.append(CommentEdit(content=comment.content, edited_at=now))
            comment.content = content
            comment.is_edited = True
            comment.last_edited_at = now

        sync_comment_counts(session, comment)
        votes = engagement.tally(session, engagement.COMMENT, comment_id)
        logger.info("Comment %s edited by %s (%d edits)", comment_id, actor.id, len(comment.edits))
        return serialize_comment(comment, votes)


def comment_history(engine: Engine, comment_id: str) -> list[dict]:
    """Prior versions of a comment, oldest first."""
    with get_session(engine) as session:
        comment = engagement.load_votable(session, engagement.COMMENT, comment_id)
        return [
            {"content": e.content, "editedAt": isoformat(e.edited_at)}
            for e in comment.edits
        ]


def delete_comment(engine: Engine, actor: Actor, comment_id: str) -> None:
    """Soft delete: ``status = deleted``."""
    with get_session(engine) as session:
        comment: Comment = engagement.load_votable(session, engagement.COMMENT, comment_id)
        ensure_owner(actor, comment.author_id, "delete this comment")
        comment.status = CommentStatus.DELETED.value

        post = session.get(Post, comment.post_id)
        sync_post_counts(session, post)
        if comment.parent_comment_id:
            sync_comment_counts(session, session.get(Comment, comment.parent_comment_id))
        logger.info("Comment %s deleted by %s", comment_id, actor.id)
