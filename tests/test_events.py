"""
tests/test_events.py — Event scheduling and registration
=========================================================
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from collegeconnect.constants import utcnow
from collegeconnect.errors import Conflict, Forbidden, NotFound, ValidationError
from collegeconnect.services import event_service, listing
from collegeconnect.services.access import Actor
from collegeconnect.services.listing import Pagination


@pytest.fixture
def organizer(make_user):
    return make_user("Organizer")


def _schedule(start_in: int = 10, length: int = 1, deadline_in: int = 5) -> dict:
    now = utcnow()
    return {
        "start_date": now + timedelta(days=start_in),
        "end_date": now + timedelta(days=start_in + length),
        "registration_deadline": now + timedelta(days=deadline_in),
    }


class TestSchedule:
    def test_create(self, db_engine, organizer):
        event = event_service.create_event(
            db_engine,
            organizer,
            name="Intro to Rust",
            description="Hands-on workshop for beginners.",
            type="workshop",
            max_participants=30,
            tags=[" Rust ", "systems"],
            city="Pune",
            status="published",
            **_schedule(),
        )
        assert event["organizer"]["id"] == organizer.id
        assert event["organizer"]["name"] == "Organizer"
        assert event["registration"] == {
            "isFree": True, "maxParticipants": 30, "currentParticipants": 0,
        }
        assert event["tags"] == ["rust", "systems"]
        assert event["location"]["city"] == "Pune"

    def test_every_bad_date_is_reported(self, db_engine, organizer):
        now = utcnow()
        with pytest.raises(ValidationError) as exc:
            event_service.create_event(
                db_engine,
                organizer,
                name="Backwards",
                description="Ends before it starts.",
                type="meetup",
                start_date=now + timedelta(days=5),
                end_date=now + timedelta(days=4),
                registration_deadline=now + timedelta(days=6),
            )
        assert {e.field for e in exc.value.errors} == {"endDate", "registrationDeadline"}

    def test_update_revalidates(self, db_engine, organizer, make_event):
        event_id = make_event(organizer)
        with pytest.raises(ValidationError):
            event_service.update_event(
                db_engine, organizer, event_id,
                registration_deadline=utcnow() + timedelta(days=30),
            )

    def test_only_organizer_updates(self, db_engine, organizer, make_event, make_user):
        event_id = make_event(organizer)
        with pytest.raises(Forbidden):
            event_service.update_event(db_engine, make_user(), event_id, name="Renamed event")

    def test_get_counts_views(self, db_engine, organizer, make_event):
        event_id = make_event(organizer)
        event_service.get_event(db_engine, event_id)
        assert event_service.get_event(db_engine, event_id)["views"] == 2


class TestRegistration:
    def test_register_and_unregister(self, db_engine, organizer, make_event, make_user):
        event_id = make_event(organizer, max_participants=2)
        attendee = make_user()

        registered = event_service.register(db_engine, attendee, event_id)
        assert registered["registration"]["currentParticipants"] == 1

        detail = event_service.get_event(db_engine, event_id)
        assert [p["user"] for p in detail["participants"]] == [attendee.id]

        left = event_service.unregister(db_engine, attendee, event_id)
        assert left["registration"]["currentParticipants"] == 0

    def test_duplicate_registration(self, db_engine, organizer, make_event, make_user):
        event_id = make_event(organizer)
        attendee = make_user()
        event_service.register(db_engine, attendee, event_id)
        with pytest.raises(Conflict, match="already registered"):
            event_service.register(db_engine, attendee, event_id)

    def test_unknown_team(self, db_engine, organizer, make_event, make_user):
        event_id = make_event(organizer)
        with pytest.raises(NotFound, match="Team not found"):
            event_service.register(db_engine, make_user(), event_id, team_id="no-such-team")
        assert event_service.get_event(db_engine, event_id)["participants"] == []

    def test_unknown_attendee(self, db_engine, organizer, make_event):
        event_id = make_event(organizer)
        with pytest.raises(NotFound, match="User not found"):
            event_service.register(db_engine, Actor(id="ghost", role="student"), event_id)
        assert event_service.get_event(db_engine, event_id)["participants"] == []

    def test_full_event(self, db_engine, organizer, make_event, make_user):
        event_id = make_event(organizer, max_participants=1)
        event_service.register(db_engine, make_user(), event_id)
        with pytest.raises(Conflict, match="Event is full"):
            event_service.register(db_engine, make_user(), event_id)

    def test_deadline_passed(self, db_engine, organizer, make_event, make_user):
        event_id = make_event(organizer)
        with pytest.raises(Conflict, match="deadline has passed"):
            event_service.register(
                db_engine, make_user(), event_id, now=utcnow() + timedelta(days=6)
            )

    def test_draft_event_is_closed(self, db_engine, organizer, make_event, make_user):
        event_id = make_event(organizer, status="draft")
        with pytest.raises(Conflict, match="not open"):
            event_service.register(db_engine, make_user(), event_id)

    def test_unregister_without_registration(self, db_engine, organizer, make_event, make_user):
        event_id = make_event(organizer)
        with pytest.raises(NotFound):
            event_service.unregister(db_engine, make_user(), event_id)


class TestEventListing:
    def test_upcoming_soonest_first(self, db_engine, organizer, make_event):
        now = utcnow()
        later = make_event(organizer, name="Later event")
        sooner = make_event(
            organizer,
            name="Sooner event",
            start_date=now + timedelta(days=2),
            end_date=now + timedelta(days=3),
            registration_deadline=now + timedelta(days=1),
        )
        make_event(
            organizer,
            name="Past event",
            start_date=now - timedelta(days=3),
            end_date=now - timedelta(days=2),
            registration_deadline=now - timedelta(days=4),
        )
        page = listing.list_events(db_engine, Pagination(), upcoming=True)
        assert [e["id"] for e in page.items] == [sooner, later]

    def test_drafts_are_not_listed(self, db_engine, organizer, make_event):
        make_event(organizer, status="draft")
        assert listing.list_events(db_engine, Pagination()).total == 0

    def test_type_and_search(self, db_engine, organizer, make_event):
        hack = make_event(organizer)
        make_event(organizer, name="Resume clinic", description="Bring your CV.", type="workshop")
        assert [e["id"] for e in listing.list_events(
            db_engine, Pagination(), type="hackathon"
        ).items] == [hack]
        assert listing.list_events(db_engine, Pagination(), search="resume cv").total == 1
