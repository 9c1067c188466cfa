"""
collegeconnect.services.team_service — Event teams
===================================================

Teams are formed around one event.  The leader is the first active
member; everyone else joins through ``membership.TEAM``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy import Engine, update

from collegeconnect.constants import TEAM_LEADER_ROLE, TEAM_MAX_SIZE_DEFAULT
from collegeconnect.database.engine import get_session
from collegeconnect.database.models import Event, Team, TeamSkill, User
from collegeconnect.errors import FieldError, NotFound, ValidationError
from collegeconnect.services import membership
from collegeconnect.services.access import Actor, ensure_owner
from collegeconnect.services.counters import sync_roster_size
from collegeconnect.services.serializers import serialize_team

logger = logging.getLogger(__name__)

KIND = membership.TEAM

_UPDATABLE = frozenset({
    "name", "description", "status", "team_size_required",
    "team_size_max", "visibility", "tags",
})


def validate_team_size(required: int, maximum: int) -> None:
    errors = []
    if required < 1:
        errors.append(FieldError("teamSize.required", "Team size must be at least 1"))
    if maximum < required:
        errors.append(FieldError("teamSize.max", "Maximum size cannot be below the required size"))
    if errors:
        raise ValidationError("Validation failed", errors)


def _skill_rows(skills: Iterable[dict] | None) -> list[TeamSkill]:
    rows = []
    for raw in skills or []:
        row = TeamSkill(skill=raw["skill"].strip())
        if raw.get("level"):
            row.level = raw["level"]
        if raw.get("is_required") is not None:
            row.is_required = raw["is_required"]
        rows.append(row)
    return rows


def create_team(
    engine: Engine,
    actor: Actor,
    *,
    name: str,
    description: str,
    event_id: str,
    team_size_required: int,
    team_size_max: int = TEAM_MAX_SIZE_DEFAULT,
    required_skills: Iterable[dict] | None = None,
    leader_skills: list[str] | None = None,
    **details: Any,
) -> dict:
    validate_team_size(team_size_required, team_size_max)
    with get_session(engine) as session:
        if session.get(User, actor.id) is None:
            raise NotFound("User not found")
        if session.get(Event, event_id) is None:
            raise NotFound("Event not found")
        team = Team(
            name=name.strip(),
            description=description,
            leader_id=actor.id,
            event_id=event_id,
            team_size_required=team_size_required,
            team_size_max=team_size_max,
        )
        for key, value in details.items():
            if key in _UPDATABLE and value is not None:
                setattr(team, key, value)
        team.required_skills = _skill_rows(required_skills)
        session.add(team)
        session.flush()

        membership.insert_member(session, KIND, team, actor.id, TEAM_LEADER_ROLE, leader_skills)
        sync_roster_size(session, KIND.member_model, KIND.parent_key, team)
        logger.info("Team %s created by %s for event %s", team.id, actor.id, event_id)
        return serialize_team(team, include_requests=True)


def get_team(engine: Engine, team_id: str, actor: Actor | None = None) -> dict:
    with get_session(engine) as session:
        bumped = session.execute(
            update(Team)
            .where(Team.id == team_id)
            .values(views=Team.views + 1)
            .execution_options(synchronize_session=False)
        ).rowcount
        if not bumped:
            raise NotFound("Team not found")
        team = session.get(Team, team_id, populate_existing=True)
        show_requests = actor is not None and membership.can_manage(actor, KIND, team)
        return serialize_team(team, include_requests=show_requests)


def update_team(engine: Engine, actor: Actor, team_id: str, **changes: Any) -> dict:
    with get_session(engine) as session:
        team = membership.load_entity(session, KIND, team_id)
        ensure_owner(actor, team.leader_id, "update this team")
        if changes.get("required_skills") is not None:
            team.required_skills = _skill_rows(changes.pop("required_skills"))
        for key, value in changes.items():
            if key in _UPDATABLE and value is not None:
                setattr(team, key, value)
        validate_team_size(team.team_size_required, team.team_size_max)
        sync_roster_size(session, KIND.member_model, KIND.parent_key, team)
        logger.info("Team %s updated by %s", team_id, actor.id)
        return serialize_team(team, include_requests=True)
