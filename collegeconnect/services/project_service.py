"""
collegeconnect.services.project_service — Project lifecycle
============================================================

Join requests and roster changes live in
:mod:`collegeconnect.services.membership` (``membership.PROJECT``).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy import Engine, update

from collegeconnect.constants import PROJECT_OWNER_ROLE
from collegeconnect.database.engine import get_session
from collegeconnect.database.models import Project, ProjectSkill, User
from collegeconnect.errors import NotFound, ValidationError
from collegeconnect.services import membership
from collegeconnect.services.access import Actor, ensure_owner
from collegeconnect.services.counters import sync_roster_size
from collegeconnect.services.serializers import serialize_project

logger = logging.getLogger(__name__)

KIND = membership.PROJECT

_UPDATABLE = frozenset({
    "title", "description", "status", "type", "domain",
    "team_size_required", "visibility", "is_open", "tags",
})


def _skill_rows(skills: Iterable[dict] | None) -> list[ProjectSkill]:
    rows = []
    for raw in skills or []:
        row = ProjectSkill(skill=raw["skill"].strip())
        if raw.get("level"):
            row.level = raw["level"]
        if raw.get("is_required") is not None:
            row.is_required = raw["is_required"]
        rows.append(row)
    return rows


def create_project(
    engine: Engine,
    actor: Actor,
    *,
    title: str,
    description: str,
    type: str,
    domain: str,
    team_size_required: int,
    required_skills: Iterable[dict] | None = None,
    owner_skills: list[str] | None = None,
    **details: Any,
) -> dict:
    """Create a project; the creator becomes its first active member."""
    if team_size_required < 1:
        raise ValidationError.for_field("teamSize.required", "Team size must be at least 1")
    with get_session(engine) as session:
        if session.get(User, actor.id) is None:
            raise NotFound("User not found")
        project = Project(
            title=title.strip(),
            description=description,
            owner_id=actor.id,
            type=type,
            domain=domain,
            team_size_required=team_size_required,
        )
        for key, value in details.items():
            if key in _UPDATABLE and value is not None:
                setattr(project, key, value)
        project.required_skills = _skill_rows(required_skills)
        session.add(project)
        session.flush()

        membership.insert_member(
            session, KIND, project, actor.id, PROJECT_OWNER_ROLE, owner_skills
        )
        sync_roster_size(session, KIND.member_model, KIND.parent_key, project)
        logger.info("Project %s created by %s", project.id, actor.id)
        return serialize_project(project, include_requests=True)


def get_project(engine: Engine, project_id: str, actor: Actor | None = None) -> dict:
    """Fetch and count a view.  Join requests are shown to managers only."""
    with get_session(engine) as session:
        bumped = session.execute(
            update(Project)
            .where(Project.id == project_id)
            .values(views=Project.views + 1)
            .execution_options(synchronize_session=False)
        ).rowcount
        if not bumped:
            raise NotFound("Project not found")
        project = session.get(Project, project_id, populate_existing=True)
        show_requests = actor is not None and membership.can_manage(actor, KIND, project)
        return serialize_project(project, include_requests=show_requests)


def update_project(engine: Engine, actor: Actor, project_id: str, **changes: Any) -> dict:
    with get_session(engine) as session:
        project = membership.load_entity(session, KIND, project_id)
        ensure_owner(actor, project.owner_id, "update this project")
        if changes.get("required_skills") is not None:
            project.required_skills = _skill_rows(changes.pop("required_skills"))
        for key, value in changes.items():
            if key in _UPDATABLE and value is not None:
                setattr(project, key, value)
        if project.team_size_required < 1:
            raise ValidationError.for_field("teamSize.required", "Team size must be at least 1")
        sync_roster_size(session, KIND.member_model, KIND.parent_key, project)
        logger.info("Project %s updated by %s", project_id, actor.id)
        return serialize_project(project, include_requests=True)
