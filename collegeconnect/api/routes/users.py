"""
collegeconnect.api.routes.users — User directory & profiles
============================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from pydantic import Field

from collegeconnect.api.deps import EngineDep, PaginationDep
from collegeconnect.api.rate_limit import rate_limited_actor
from collegeconnect.api.responses import ok, paged
from collegeconnect.api.schemas import CamelModel
from collegeconnect.database.models import UserRole
from collegeconnect.errors import ValidationError
from collegeconnect.services import listing, user_service
from collegeconnect.services.access import Actor

router = APIRouter(prefix="/users", tags=["users"])

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class ProfileFields(CamelModel):
    course: str | None = Field(default=None, max_length=100)
    year: str | None = Field(default=None, max_length=20)
    semester: str | None = Field(default=None, max_length=20)
    bio: str | None = Field(default=None, max_length=500)
    skills: list[str] | None = None
    interests: list[str] | None = None
    social_links: dict[str, str] | None = None
    profile_image: str | None = Field(default=None, max_length=500)


class UserCreate(ProfileFields):
    name: str = Field(min_length=2, max_length=50)
    email: str = Field(max_length=255, pattern=_EMAIL_PATTERN)
    college: str = Field(min_length=2, max_length=100)
    role: UserRole | None = None


class UserUpdate(ProfileFields):
    name: str | None = Field(default=None, min_length=2, max_length=50)
    college: str | None = Field(default=None, min_length=2, max_length=100)


@router.get("/search/skills")
def search_by_skills(engine: EngineDep, pagination: PaginationDep, skills: str | None = None):
    """Compact profiles of users holding any of the comma-separated ``skills``."""
    if not skills or not skills.strip():
        raise ValidationError.for_field("skills", "Skills parameter is required")
    return ok(listing.search_users_by_skills(engine, skills, pagination.limit))


@router.get("/college/{college}")
def users_by_college(college: str, engine: EngineDep, pagination: PaginationDep):
    return paged(listing.users_by_college(engine, college, pagination))


@router.get("")
def list_users(
    engine: EngineDep,
    pagination: PaginationDep,
    role: str | None = None,
    college: str | None = None,
    skills: str | None = None,
    search: str | None = None,
):
    page = listing.list_users(
        engine, pagination, role=role, college=college, skills=skills, search=search
    )
    return paged(page)


@router.get("/{user_id}")
def get_user(user_id: str, engine: EngineDep):
    return ok(user_service.get_user(engine, user_id))


@router.get("/{user_id}/stats")
def user_stats(user_id: str, engine: EngineDep):
    return ok(user_service.user_stats(engine, user_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(body: UserCreate, engine: EngineDep, actor: Actor = Depends(rate_limited_actor)):
    user = user_service.create_user(engine, actor, **body.changes())
    return ok(user, "User created successfully")


@router.put("/{user_id}")
def update_user(
    user_id: str,
    body: UserUpdate,
    engine: EngineDep,
    actor: Actor = Depends(rate_limited_actor),
):
    user = user_service.update_user(engine, actor, user_id, **body.changes())
    return ok(user, "Profile updated successfully")


@router.delete("/{user_id}")
def deactivate_user(user_id: str, engine: EngineDep, actor: Actor = Depends(rate_limited_actor)):
    user_service.deactivate_user(engine, actor, user_id)
    return ok(message="User deactivated successfully")
