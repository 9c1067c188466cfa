"""
collegeconnect.api.routes.comments — Comment & reply endpoints
===============================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from pydantic import Field

from collegeconnect.api.deps import EngineDep, PaginationDep
from collegeconnect.api.rate_limit import rate_limited_actor
from collegeconnect.api.responses import ok, paged
from collegeconnect.api.schemas import CamelModel
from collegeconnect.services import comment_service, engagement, listing
from collegeconnect.services.access import Actor

router = APIRouter(tags=["comments"])


class CommentCreate(CamelModel):
    content: str = Field(min_length=1, max_length=1000)
    parent_comment: str | None = None


class CommentUpdate(CamelModel):
    content: str = Field(min_length=1, max_length=1000)


@router.get("/posts/{post_id}/comments")
def list_comments(post_id: str, engine: EngineDep, pagination: PaginationDep):
    return paged(listing.list_post_comments(engine, post_id, pagination))


@router.post("/posts/{post_id}/comments", status_code=status.HTTP_201_CREATED)
def create_comment(
    post_id: str,
    body: CommentCreate,
    engine: EngineDep,
    actor: Actor = Depends(rate_limited_actor),
):
    comment = comment_service.create_comment(
        engine, actor, post_id, body.content, body.parent_comment
    )
    return ok(comment, "Comment added successfully")


@router.get("/comments/{comment_id}/replies")
def list_replies(comment_id: str, engine: EngineDep, pagination: PaginationDep):
    return paged(listing.list_replies(engine, comment_id, pagination))


@router.get("/comments/{comment_id}/history")
def comment_history(comment_id: str, engine: EngineDep):
    return ok(comment_service.comment_history(engine, comment_id))


@router.put("/comments/{comment_id}")
def update_comment(
    comment_id: str,
    body: CommentUpdate,
    engine: EngineDep,
    actor: Actor = Depends(rate_limited_actor),
):
    comment = comment_service.update_comment(engine, actor, comment_id, body.content)
    return ok(comment, "Comment updated successfully")


@router.delete("/comments/{comment_id}")
def delete_comment(comment_id: str, engine: EngineDep, actor: Actor = Depends(rate_limited_actor)):
    comment_service.delete_comment(engine, actor, comment_id)
    return ok(message="Comment deleted successfully")


@router.post("/comments/{comment_id}/upvote")
def upvote_comment(comment_id: str, engine: EngineDep, actor: Actor = Depends(rate_limited_actor)):
    votes = engagement.upvote(engine, engagement.COMMENT, comment_id, actor.id)
    return ok(votes.to_dict(), "Comment upvoted successfully")


@router.post("/comments/{comment_id}/downvote")
def downvote_comment(comment_id: str, engine: EngineDep, actor: Actor = Depends(rate_limited_actor)):
    votes = engagement.downvote(engine, engagement.COMMENT, comment_id, actor.id)
    return ok(votes.to_dict(), "Comment downvoted successfully")


@router.delete("/comments/{comment_id}/vote")
def remove_comment_vote(comment_id: str, engine: EngineDep, actor: Actor = Depends(rate_limited_actor)):
    votes = engagement.remove_vote(engine, engagement.COMMENT, comment_id, actor.id)
    return ok(votes.to_dict(), "Vote removed successfully")
