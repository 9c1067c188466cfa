"""
collegeconnect.services.event_service — Events & registrations
===============================================================

``current_participants`` is a derived counter: every registration change
ends with :func:`~collegeconnect.services.counters.sync_participant_count`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import Engine, delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from collegeconnect.constants import as_utc, utcnow
from collegeconnect.database.engine import get_session, is_unique_violation
from collegeconnect.database.models import (
    Event,
    EventParticipant,
    EventStatus,
    ParticipantStatus,
    Team,
    User,
)
from collegeconnect.errors import Conflict, FieldError, NotFound, ValidationError
from collegeconnect.services.access import Actor, ensure_owner
from collegeconnect.services.counters import sync_participant_count
from collegeconnect.services.serializers import serialize_event

logger = logging.getLogger(__name__)

REGISTRATION_OPEN = frozenset({EventStatus.PUBLISHED.value, EventStatus.ONGOING.value})

_UPDATABLE = frozenset({
    "name", "description", "type", "organizer_type", "status", "venue",
    "city", "online_link", "location_type", "is_free", "max_participants", "tags",
})


def validate_schedule(
    start_date: datetime,
    end_date: datetime,
    registration_deadline: datetime,
) -> None:
    """Raise one :class:`ValidationError` listing every bad date."""
    start, end, deadline = as_utc(start_date), as_utc(end_date), as_utc(registration_deadline)
    errors: list[FieldError] = []
    if end < start:
        errors.append(FieldError("endDate", "End date must be after start date"))
    if deadline > start:
        errors.append(
            FieldError("registrationDeadline", "Registration deadline must be before start date")
        )
    if errors:
        raise ValidationError("Validation failed", errors)


def _load_event(session: Session, event_id: str) -> Event:
    event = session.get(Event, event_id)
    if event is None:
        raise NotFound("Event not found")
    return event


def create_event(
    engine: Engine,
    actor: Actor,
    *,
    name: str,
    description: str,
    type: str,
    start_date: datetime,
    end_date: datetime,
    registration_deadline: datetime,
    max_participants: int | None = None,
    tags: Iterable[str] | None = None,
    **details,
) -> dict:
    validate_schedule(start_date, end_date, registration_deadline)
    with get_session(engine) as session:
        organizer = session.get(User, actor.id)
        if organizer is None:
            raise NotFound("User not found")
        event = Event(
            name=name.strip(),
            description=description,
            type=type,
            organizer_id=organizer.id,
            organizer_name=organizer.name,
            start_date=start_date,
            end_date=end_date,
            registration_deadline=registration_deadline,
            max_participants=max_participants,
            tags=[t.strip().lower() for t in tags or [] if t.strip()],
        )
        for key, value in details.items():
            if key in _UPDATABLE and value is not None:
                setattr(event, key, value)
        session.add(event)
        sync_participant_count(session, event)
        logger.info("Event %s created by %s (%s)", event.id, actor.id, type)
        return serialize_event(event)


def get_event(engine: Engine, event_id: str) -> dict:
    """Fetch one event with its participant list and count the view."""
    with get_session(engine) as session:
        bumped = session.execute(
            update(Event)
            .where(Event.id == event_id)
            .values(views=Event.views + 1)
            .execution_options(synchronize_session=False)
        ).rowcount
        if not bumped:
            raise NotFound("Event not found")
        event = session.get(Event, event_id, populate_existing=True)
        return serialize_event(event, include_participants=True)


def update_event(engine: Engine, actor: Actor, event_id: str, **changes) -> dict:
    with get_session(engine) as session:
        event = _load_event(session, event_id)
        ensure_owner(actor, event.organizer_id, "update this event")
        for key in ("start_date", "end_date", "registration_deadline"):
            if changes.get(key) is not None:
                setattr(event, key, changes[key])
        validate_schedule(event.start_date, event.end_date, event.registration_deadline)
        for key, value in changes.items():
            if key in _UPDATABLE and value is not None:
                setattr(event, key, value)
        sync_participant_count(session, event)
        logger.info("Event %s updated by %s", event_id, actor.id)
        return serialize_event(event)


def register(
    engine: Engine,
    actor: Actor,
    event_id: str,
    team_id: str | None = None,
    *,
    now: datetime | None = None,
) -> dict:
    """Register the actor for an event.

    Raises :class:`Conflict` when registration is closed (status, deadline
    or capacity) or the actor is already registered.
    Raises :class:`NotFound` for an unknown actor or team.
    """
    now = now or utcnow()
    with get_session(engine) as session:
        event = _load_event(session, event_id)
        if event.status not in REGISTRATION_OPEN:
            raise Conflict(f"Registration is not open for a {event.status} event")
        if as_utc(event.registration_deadline) < as_utc(now):
            raise Conflict("Registration deadline has passed")
        user = session.get(User, actor.id)
        if user is None or not user.is_active:
            raise NotFound("User not found")
        if team_id is not None and session.get(Team, team_id) is None:
            raise NotFound("Team not found")

        already = session.scalar(
            select(EventParticipant.id).where(
                EventParticipant.event_id == event_id,
                EventParticipant.user_id == actor.id,
            )
        )
        if already is not None:
            raise Conflict("You are already registered for this event")
        if event.max_participants is not None and event.current_participants >= event.max_participants:
            raise Conflict("Event is full")

        session.add(EventParticipant(
            event_id=event_id,
            user_id=actor.id,
            registered_at=now,
            status=ParticipantStatus.REGISTERED.value,
            team_id=team_id,
        ))
        try:
            session.flush()
        except IntegrityError as exc:
            if not is_unique_violation(exc, EventParticipant, "uq_event_participants_event_user"):
                raise
            raise Conflict("You are already registered for this event") from None

        sync_participant_count(session, event)
        logger.info(
            "User %s registered for event %s (%d/%s)",
            actor.id, event_id, event.current_participants, event.max_participants,
        )
        return serialize_event(event)


def unregister(engine: Engine, actor: Actor, event_id: str) -> dict:
    """Drop the actor's participant row."""
    with get_session(engine) as session:
        event = _load_event(session, event_id)
        removed = session.execute(
            delete(EventParticipant)
            .where(
                EventParticipant.event_id == event_id,
                EventParticipant.user_id == actor.id,
            )
            .execution_options(synchronize_session="fetch")
        ).rowcount
        if not removed:
            raise NotFound("You are not registered for this event")
        sync_participant_count(session, event)
        logger.info("User %s unregistered from event %s", actor.id, event_id)
        return serialize_event(event)
