"""
collegeconnect.api.routes.events — Events & registration
=========================================================
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import Field

from collegeconnect.api.deps import EngineDep, PaginationDep
from collegeconnect.api.rate_limit import rate_limited_actor
from collegeconnect.api.responses import ok, paged
from collegeconnect.api.schemas import CamelModel
from collegeconnect.database.models import EventStatus, EventType, LocationType, OrganizerType
from collegeconnect.services import event_service, listing
from collegeconnect.services.access import Actor

router = APIRouter(prefix="/events", tags=["events"])


class EventDetails(CamelModel):
    organizer_type: OrganizerType | None = None
    location_type: LocationType | None = None
    venue: str | None = Field(default=None, max_length=200)
    city: str | None = Field(default=None, max_length=100)
    online_link: str | None = Field(default=None, max_length=500)
    is_free: bool | None = None
    max_participants: int | None = Field(default=None, ge=1)
    tags: list[str] | None = None
    status: EventStatus | None = None


class EventCreate(EventDetails):
    name: str = Field(min_length=5, max_length=200)
    description: str = Field(min_length=10, max_length=2000)
    type: EventType
    start_date: datetime
    end_date: datetime
    registration_deadline: datetime


class EventUpdate(EventDetails):
    name: str | None = Field(default=None, min_length=5, max_length=200)
    description: str | None = Field(default=None, min_length=10, max_length=2000)
    type: EventType | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    registration_deadline: datetime | None = None


class RegistrationIn(CamelModel):
    team: str | None = None


@router.get("")
def list_events(
    engine: EngineDep,
    pagination: PaginationDep,
    type: str | None = None,
    city: str | None = None,
    upcoming: bool = False,
    search: str | None = None,
):
    page = listing.list_events(
        engine, pagination, type=type, city=city, upcoming=upcoming, search=search
    )
    return paged(page)


@router.get("/{event_id}")
def get_event(event_id: str, engine: EngineDep):
    return ok(event_service.get_event(engine, event_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_event(body: EventCreate, engine: EngineDep, actor: Actor = Depends(rate_limited_actor)):
    event = event_service.create_event(engine, actor, **body.changes())
    return ok(event, "Event created successfully")


@router.put("/{event_id}")
def update_event(
    event_id: str,
    body: EventUpdate,
    engine: EngineDep,
    actor: Actor = Depends(rate_limited_actor),
):
    event = event_service.update_event(engine, actor, event_id, **body.changes())
    return ok(event, "Event updated successfully")


@router.post("/{event_id}/register")
def register(
    event_id: str,
    engine: EngineDep,
    body: RegistrationIn | None = None,
    actor: Actor = Depends(rate_limited_actor),
):
    team_id = body.team if body else None
    event = event_service.register(engine, actor, event_id, team_id)
    return ok(event, "Successfully registered for event")


@router.delete("/{event_id}/register")
def unregister(event_id: str, engine: EngineDep, actor: Actor = Depends(rate_limited_actor)):
    event = event_service.unregister(engine, actor, event_id)
    return ok(event, "Successfully unregistered from event")
