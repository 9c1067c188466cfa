"""
collegeconnect.api.routes.teams — Event team endpoints
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
from collegeconnect.constants import TEAM_MAX_SIZE_DEFAULT
from collegeconnect.database.models import TeamStatus, Visibility
from collegeconnect.services import listing, team_service
from collegeconnect.services.access import Actor

router = APIRouter(prefix="/teams", tags=["teams"])


class TeamSize(CamelModel):
    required: int = Field(ge=1, le=10)
    max: int = Field(default=TEAM_MAX_SIZE_DEFAULT, ge=1, le=10)


class TeamCreate(CamelModel):
    name: str = Field(min_length=2, max_length=100)
    description: str = Field(min_length=10, max_length=1000)
    event: str = Field(min_length=1)
    team_size: TeamSize
    required_skills: list[SkillIn] = Field(min_length=1)
    skills: list[str] = Field(default_factory=list)
    visibility: Visibility | None = None
    tags: list[str] | None = None


class TeamUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    description: str | None = Field(default=None, min_length=10, max_length=1000)
    status: TeamStatus | None = None
    team_size: TeamSize | None = None
    required_skills: list[SkillIn] | None = Field(default=None, min_length=1)
    visibility: Visibility | None = None
    tags: list[str] | None = None


def _flatten_size(data: dict) -> dict:
    size = data.pop("team_size", None)
    if size is not None:
        data["team_size_required"] = size["required"]
        if "max" in size:
            data["team_size_max"] = size["max"]
    return data


@router.get("")
def list_teams(
    engine: EngineDep,
    pagination: PaginationDep,
    event: str | None = None,
    skill: str | None = None,
    search: str | None = None,
):
    return paged(listing.list_teams(engine, pagination, event=event, skill=skill, search=search))


@router.get("/{team_id}")
def get_team(
    team_id: str,
    engine: EngineDep,
    actor: Actor | None = Depends(get_optional_actor),
):
    return ok(team_service.get_team(engine, team_id, actor))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_team(body: TeamCreate, engine: EngineDep, actor: Actor = Depends(rate_limited_actor)):
    data = _flatten_size(body.changes())
    leader_skills = data.pop("skills", None)
    event_id = data.pop("event")
    team = team_service.create_team(
        engine, actor, event_id=event_id, leader_skills=leader_skills, **data
    )
    return ok(team, "Team created successfully")


@router.put("/{team_id}")
def update_team(
    team_id: str,
    body: TeamUpdate,
    engine: EngineDep,
    actor: Actor = Depends(rate_limited_actor),
):
    team = team_service.update_team(engine, actor, team_id, **_flatten_size(body.changes()))
    return ok(team, "Team updated successfully")


router.include_router(roster_router(team_service.KIND))
