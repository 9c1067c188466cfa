"""
collegeconnect.api.routes.posts — Post endpoints
=================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from pydantic import Field

from collegeconnect.api.deps import EngineDep, PaginationDep
from collegeconnect.api.rate_limit import rate_limited_actor
from collegeconnect.api.responses import ok, paged
from collegeconnect.api.schemas import CamelModel
from collegeconnect.database.models import PostCategory, PostStatus, PostType, Visibility
from collegeconnect.services import engagement, listing, post_service
from collegeconnect.services.access import Actor

router = APIRouter(prefix="/posts", tags=["posts"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class PostCreate(CamelModel):
    title: str = Field(min_length=5, max_length=200)
    content: str = Field(min_length=10, max_length=5000)
    category: PostCategory
    tags: list[str] = Field(default_factory=list)
    status: PostStatus = PostStatus.PUBLISHED
    visibility: Visibility | None = None
    post_type: PostType | None = None


class PostUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=5, max_length=200)
    content: str | None = Field(default=None, min_length=10, max_length=5000)
    category: PostCategory | None = None
    tags: list[str] | None = None
    status: PostStatus | None = None
    visibility: Visibility | None = None
    post_type: PostType | None = None


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
@router.get("")
def list_posts(
    engine: EngineDep,
    pagination: PaginationDep,
    category: str | None = None,
    tags: str | None = None,
    author: str | None = None,
    search: str | None = None,
    sort_by: str | None = Query(default=None, alias="sortBy"),
):
    """Published posts, newest first unless ``sortBy`` is popular/trending."""
    page = listing.list_posts(
        engine,
        pagination,
        category=category,
        tags=tags,
        author=author,
        search=search,
        sort_by=sort_by if sort_by in listing.POST_SORTS else None,
    )
    return paged(page)


@router.get("/{post_id}")
def get_post(post_id: str, engine: EngineDep):
    return ok(post_service.get_post(engine, post_id))


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------
@router.post("", status_code=status.HTTP_201_CREATED)
def create_post(
    body: PostCreate,
    engine: EngineDep,
    actor: Actor = Depends(rate_limited_actor),
):
    post = post_service.create_post(engine, actor, **body.changes())
    return ok(post, "Post created successfully")


@router.put("/{post_id}")
def update_post(
    post_id: str,
    body: PostUpdate,
    engine: EngineDep,
    actor: Actor = Depends(rate_limited_actor),
):
    post = post_service.update_post(engine, actor, post_id, **body.changes())
    return ok(post, "Post updated successfully")


@router.delete("/{post_id}")
def delete_post(
    post_id: str,
    engine: EngineDep,
    actor: Actor = Depends(rate_limited_actor),
):
    post_service.delete_post(engine, actor, post_id)
    return ok(message="Post deleted successfully")


# ---------------------------------------------------------------------------
# Votes
# ---------------------------------------------------------------------------
@router.post("/{post_id}/upvote")
def upvote_post(post_id: str, engine: EngineDep, actor: Actor = Depends(rate_limited_actor)):
    votes = engagement.upvote(engine, engagement.POST, post_id, actor.id)
    return ok(votes.to_dict(), "Post upvoted successfully")


@router.post("/{post_id}/downvote")
def downvote_post(post_id: str, engine: EngineDep, actor: Actor = Depends(rate_limited_actor)):
    votes = engagement.downvote(engine, engagement.POST, post_id, actor.id)
    return ok(votes.to_dict(), "Post downvoted successfully")


@router.delete("/{post_id}/vote")
def remove_post_vote(post_id: str, engine: EngineDep, actor: Actor = Depends(rate_limited_actor)):
    votes = engagement.remove_vote(engine, engagement.POST, post_id, actor.id)
    return ok(votes.to_dict(), "Vote removed successfully")
