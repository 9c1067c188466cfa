"""
collegeconnect.services.membership — Join requests & rosters
=============================================================

Teams and projects share one protocol, parameterised by :class:`RosterKind`:

    pending ──accept──▶ accepted   (requester added as an active member)
       └────reject──▶ rejected

Terminal states never change again; a rejected user may file a *new*
request.  Accepting flips the request and inserts/reactivates the member
row in the same transaction, so an accepted request always has an
active member behind it.

``team_size_current`` is recomputed from the active roster rows at the end
of every mutation (see :mod:`collegeconnect.services.counters`).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import Engine, delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from collegeconnect.constants import ACCEPTED_MEMBER_ROLE, utcnow
from collegeconnect.database.engine import get_session, is_unique_violation
from collegeconnect.database.models import (
    JoinRequestStatus,
    MemberStatus,
    NotificationType,
    Project,
    ProjectJoinRequest,
    ProjectMember,
    Team,
    TeamJoinRequest,
    TeamMember,
    User,
)
from collegeconnect.engine.related import RelatedEntity
from collegeconnect.engine.roster import available_spots
from collegeconnect.errors import Conflict, Forbidden, NotFound, ValidationError
from collegeconnect.services.access import Actor, is_owner_or_admin
from collegeconnect.services.counters import sync_roster_size
from collegeconnect.services.notification_service import create_notification
from collegeconnect.services.serializers import serialize_join_request, serialize_member

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RosterKind:
    """Everything that differs between the team and project rosters."""

    name: str
    model: type
    member_model: type
    request_model: type
    parent_key: str
    owner_attr: str
    title_attr: str
    member_key: str
    pending_key: str
    request_notification: NotificationType
    accepted_notification: NotificationType | None = None
    rejected_notification: NotificationType | None = None

    @property
    def label(self) -> str:
        return self.name.capitalize()

    def owner_of(self, entity) -> str:
        return getattr(entity, self.owner_attr)

    def title_of(self, entity) -> str:
        return getattr(entity, self.title_attr)

    def related(self, entity_id: str) -> RelatedEntity:
        if self.model is Team:
            return RelatedEntity.team(entity_id)
        return RelatedEntity.project(entity_id)


PROJECT = RosterKind(
    name="project",
    model=Project,
    member_model=ProjectMember,
    request_model=ProjectJoinRequest,
    parent_key="project_id",
    owner_attr="owner_id",
    title_attr="title",
    member_key="uq_project_members_project_user",
    pending_key="uq_project_join_requests_pending",
    request_notification=NotificationType.PROJECT_JOIN_REQUEST,
    accepted_notification=NotificationType.PROJECT_REQUEST_ACCEPTED,
    rejected_notification=NotificationType.PROJECT_REQUEST_REJECTED,
)

TEAM = RosterKind(
    name="team",
    model=Team,
    member_model=TeamMember,
    request_model=TeamJoinRequest,
    parent_key="team_id",
    owner_attr="leader_id",
    title_attr="name",
    member_key="uq_team_members_team_user",
    pending_key="uq_team_join_requests_pending",
    request_notification=NotificationType.TEAM_JOIN_REQUEST,
)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------
def can_manage(actor: Actor, kind: RosterKind, entity) -> bool:
    """Owner/leader or admin."""
    return is_owner_or_admin(actor, kind.owner_of(entity))


def _ensure_can_manage(actor: Actor | None, kind: RosterKind, entity, action: str) -> None:
    if actor is not None and not can_manage(actor, kind, entity):
        logger.warning(
            "Actor %s denied %s on %s %s", actor.id, action, kind.name, entity.id
        )
        raise Forbidden(f"Only the {kind.name} owner or an admin may {action}")


# ---------------------------------------------------------------------------
# Session-level building blocks
# ---------------------------------------------------------------------------
def load_entity(session: Session, kind: RosterKind, entity_id: str):
    entity = session.get(kind.model, entity_id)
    if entity is None:
        raise NotFound(f"{kind.label} not found")
    return entity


def require_user(session: Session, user_id: str) -> User:
    user = session.get(User, user_id)
    if user is None or not user.is_active:
        raise NotFound("User not found")
    return user


def _member_row(session: Session, kind: RosterKind, entity_id: str, user_id: str):
    return session.scalar(
        select(kind.member_model).where(
            getattr(kind.member_model, kind.parent_key) == entity_id,
            kind.member_model.user_id == user_id,
        )
    )


def _pending_request(session: Session, kind: RosterKind, entity_id: str, user_id: str):
    return session.scalar(
        select(kind.request_model.id).where(
            getattr(kind.request_model, kind.parent_key) == entity_id,
            kind.request_model.user_id == user_id,
            kind.request_model.status == JoinRequestStatus.PENDING.value,
        )
    )


def insert_member(
    session: Session,
    kind: RosterKind,
    entity,
    user_id: str,
    role: str,
    skills: list[str] | None,
    *,
    allow_existing: bool = False,
):
    """Insert or reactivate *user_id* on the roster; returns the row.

    An already-active row raises :class:`Conflict` unless *allow_existing*
    is set, in which case it is returned untouched.
    """
    require_user(session, user_id)
    member = _member_row(session, kind, entity.id, user_id)
    if member is not None and member.status == MemberStatus.ACTIVE.value:
        if allow_existing:
            return member
        raise Conflict(f"User is already a member of this {kind.name}")

    if member is None:
        member = kind.member_model(
            **{kind.parent_key: entity.id},
            user_id=user_id,
            role=role,
            skills=list(skills or []),
            joined_at=utcnow(),
            status=MemberStatus.ACTIVE.value,
        )
        session.add(member)
    else:
        member.role = role
        member.skills = list(skills or [])
        member.joined_at = utcnow()
        member.status = MemberStatus.ACTIVE.value

    try:
        session.flush()
    except IntegrityError as exc:
        if not is_unique_violation(exc, kind.member_model, kind.member_key):
            raise
        raise Conflict(f"User is already a member of this {kind.name}") from None
    return member


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------
def send_join_request(
    engine: Engine,
    kind: RosterKind,
    entity_id: str,
    user_id: str,
    *,
    message: str | None = None,
    skills: list[str] | None = None,
    experience: str | None = None,
) -> dict:
    """File a pending request to join and notify the owner/leader.

    Raises :class:`Conflict` when the user is already an active member or
    already has a pending request on this entity.
    """
    with get_session(engine) as session:
        entity = load_entity(session, kind, entity_id)
        require_user(session, user_id)

        member = _member_row(session, kind, entity_id, user_id)
        if member is not None and member.status == MemberStatus.ACTIVE.value:
            raise Conflict(f"You are already a member of this {kind.name}")

        if _pending_request(session, kind, entity_id, user_id) is not None:
            raise Conflict(f"You already have a pending request for this {kind.name}")

        request = kind.request_model(
            **{kind.parent_key: entity_id},
            user_id=user_id,
            message=message,
            skills=list(skills or []),
            experience=experience,
            requested_at=utcnow(),
            status=JoinRequestStatus.PENDING.value,
        )
        session.add(request)
        try:
            session.flush()
        except IntegrityError as exc:
            if not is_unique_violation(exc, kind.request_model, kind.pending_key):
                raise
            raise Conflict(
                f"You already have a pending request for this {kind.name}"
            ) from None

        create_notification(
            session,
            recipient_id=kind.owner_of(entity),
            sender_id=user_id,
            type=kind.request_notification,
            title=f"New join request for {kind.title_of(entity)}",
            message=message or f"Someone wants to join your {kind.name}",
            related=kind.related(entity_id),
        )
        logger.info(
            "Join request %s filed by %s on %s %s", request.id, user_id, kind.name, entity_id
        )
        return serialize_join_request(request)


def respond_to_join_request(
    engine: Engine,
    kind: RosterKind,
    entity_id: str,
    request_id: str,
    decision: str,
    response_message: str | None = None,
    *,
    actor: Actor | None = None,
) -> dict:
    """Accept or reject a pending request.

    The status change is a compare-and-swap on ``status = 'pending'``; a
    request that is already terminal raises :class:`Conflict`.  When
    *actor* is given it must be the owner/leader or an admin.
    """
    try:
        status = JoinRequestStatus(decision)
    except ValueError:
        status = None
    if status not in (JoinRequestStatus.ACCEPTED, JoinRequestStatus.REJECTED):
        raise ValidationError.for_field("status", "Status must be accepted or rejected")

    with get_session(engine) as session:
        entity = load_entity(session, kind, entity_id)
        _ensure_can_manage(actor, kind, entity, "respond to join requests")

        request = session.get(kind.request_model, request_id)
        if request is None or getattr(request, kind.parent_key) != entity_id:
            raise NotFound("Join request not found")

        swapped = session.execute(
            update(kind.request_model)
            .where(
                kind.request_model.id == request_id,
                kind.request_model.status == JoinRequestStatus.PENDING.value,
            )
            .values(
                status=status.value,
                responded_at=utcnow(),
                response_message=response_message,
            )
        ).rowcount
        if not swapped:
            session.refresh(request)
            logger.warning(
                "Join request %s on %s %s already %s",
                request_id, kind.name, entity_id, request.status,
            )
            raise Conflict(f"Join request has already been {request.status}")
        session.refresh(request)

        if status is JoinRequestStatus.ACCEPTED:
            insert_member(
                session, kind, entity, request.user_id,
                ACCEPTED_MEMBER_ROLE, request.skills, allow_existing=True,
            )

        notification_type = (
            kind.accepted_notification
            if status is JoinRequestStatus.ACCEPTED
            else kind.rejected_notification
        )
        if notification_type is not None:
            create_notification(
                session,
                recipient_id=request.user_id,
                sender_id=kind.owner_of(entity),
                type=notification_type,
                title=f"Your request to join {kind.title_of(entity)} was {status.value}",
                message=response_message or f"Your join request was {status.value}",
                related=kind.related(entity_id),
            )

        sync_roster_size(session, kind.member_model, kind.parent_key, entity)
        logger.info(
            "Join request %s on %s %s %s (size=%d)",
            request_id, kind.name, entity_id, status.value, entity.team_size_current,
        )
        return serialize_join_request(request)


def add_member(
    engine: Engine,
    kind: RosterKind,
    entity_id: str,
    user_id: str,
    role: str = ACCEPTED_MEMBER_ROLE,
    skills: list[str] | None = None,
    *,
    actor: Actor | None = None,
) -> dict:
    """Put *user_id* on the roster as an active member."""
    with get_session(engine) as session:
        entity = load_entity(session, kind, entity_id)
        _ensure_can_manage(actor, kind, entity, "add members")
        member = insert_member(session, kind, entity, user_id, role, skills)
        sync_roster_size(session, kind.member_model, kind.parent_key, entity)
        logger.info(
            "Added %s to %s %s as %s (size=%d)",
            user_id, kind.name, entity_id, role, entity.team_size_current,
        )
        return serialize_member(member)


def remove_member(
    engine: Engine,
    kind: RosterKind,
    entity_id: str,
    user_id: str,
    *,
    actor: Actor | None = None,
) -> dict:
    """Hard-delete the user's roster row.  Members may always remove themselves."""
    with get_session(engine) as session:
        entity = load_entity(session, kind, entity_id)
        if actor is not None and actor.id != user_id:
            _ensure_can_manage(actor, kind, entity, "remove members")

        removed = session.execute(
            delete(kind.member_model)
            .where(
                getattr(kind.member_model, kind.parent_key) == entity_id,
                kind.member_model.user_id == user_id,
            )
            .execution_options(synchronize_session="fetch")
        ).rowcount
        if not removed:
            raise NotFound(f"User is not a member of this {kind.name}")

        session.expire(entity, ["members"])
        current = sync_roster_size(session, kind.member_model, kind.parent_key, entity)
        logger.info("Removed %s from %s %s (size=%d)", user_id, kind.name, entity_id, current)
        return {
            "teamSize": {"current": current, "required": entity.team_size_required},
            "availableSpots": available_spots(entity.team_size_required, current),
        }
