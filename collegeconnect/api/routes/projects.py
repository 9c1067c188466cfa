"""
collegeconnect.api.routes.projects — Project endpoints
=======================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from pydantic import Field

from collegeconnect.api.deps import EngineDep, PaginationDep, get_optional_actor
from collegeconnect.api.rate_limit import rate_limited_actor
from collegeconnect.api.responses import ok, paged
from collegeconnect.api.routes.rosters import roster_router
from collegeconnect.api.schemas import CamelModel, SkillIn
from collegeconnect.database.models import ProjectDomain, ProjectStatus, ProjectType, Visibility
from collegeconnect.services import listing, project_service
from collegeconnect.services.access import Actor

router = APIRouter(prefix="/projects", tags=["projects"])


class ProjectSize(CamelModel):
    required: int = Field(ge=1, le=20)


class ProjectCreate(CamelModel):
    title: str = Field(min_length=5, max_length=200)
    description: str = Field(min_length=10, max_length=2000)
    type: ProjectType
    domain: ProjectDomain
    team_size: ProjectSize
    required_skills: list[SkillIn] = Field(min_length=1)
    skills: list[str] = Field(default_factory=list)
    visibility: Visibility | None = None
    is_open: bool | None = None
    tags: list[str] | None = None


class ProjectUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=5, max_length=200)
    description: str | None = Field(default=None, min_length=10, max_length=2000)
    type: ProjectType | None = None
    domain: ProjectDomain | None = None
    status: ProjectStatus | None = None
    team_size: ProjectSize | None = None
    required_skills: list[SkillIn] | None = Field(default=None, min_length=1)
    visibility: Visibility | None = None
    is_open: bool | None = None
    tags: list[str] | None = None


def _flatten_size(data: dict) -> dict:
    size = data.pop("team_size", None)
    if size is not None:
        data["team_size_required"] = size["required"]
    return data


@router.get("")
def list_projects(
    engine: EngineDep,
    pagination: PaginationDep,
    type: str | None = None,
    domain: str | None = None,
    status: str | None = None,
    skill: str | None = None,
    search: str | None = None,
):
    page = listing.list_projects(
        engine, pagination, type=type, domain=domain, status=status, skill=skill, search=search
    )
    return paged(page)


@router.get("/{project_id}")
def get_project(
    project_id: str,
    engine: EngineDep,
    actor: Actor | None = Depends(get_optional_actor),
):
    return ok(project_service.get_project(engine, project_id, actor))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_project(body: ProjectCreate, engine: EngineDep, actor: Actor = Depends(rate_limited_actor)):
    data = _flatten_size(body.changes())
    owner_skills = data.pop("skills", None)
    project = project_service.create_project(engine, actor, owner_skills=owner_skills, **data)
    return ok(project, "Project created successfully")


@router.put("/{project_id}")
def update_project(
    project_id: str,
    body: ProjectUpdate,
    engine: EngineDep,
    actor: Actor = Depends(rate_limited_actor),
):
    project = project_service.update_project(
        engine, actor, project_id, **_flatten_size(body.changes())
    )
    return ok(project, "Project updated successfully")


router.include_router(roster_router(project_service.KIND))
