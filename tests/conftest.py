"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of collegeconnect.api.deps which
# validates the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)
os.environ.setdefault(
    "COLLEGECONNECT_CONFIG", str(Path(__file__).resolve().parent.parent / "config.yaml")
)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# SQLite doesn't support JSONB natively, but SQLAlchemy's JSON type works.
# We register a custom type compiler so SQLite renders JSONB as TEXT.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from collegeconnect.constants import utcnow  # noqa: E402
from collegeconnect.database.models import (  # noqa: E402
    Base,
    Event,
    EventStatus,
    EventType,
    Post,
    PostCategory,
    PostStatus,
    User,
)
from collegeconnect.services.access import Actor  # noqa: E402

_jsonb_sqlite_registered = False


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for PG JSONB type (idempotent).

    Also maps BigInteger → INTEGER so autoincrement works on SQLite.
    """
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy import BigInteger
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    @compiles(BigInteger, "sqlite")
    def _compile_bigint_as_integer(type_, compiler, **kw):
        return "INTEGER"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all CollegeConnect tables.

    JSONB columns are transparently mapped to TEXT for SQLite compatibility.
    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in the rate limiter).
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a transactional session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


# ---------------------------------------------------------------------------
# Seed-data factories.  Each opens and commits its own short session so
# service calls made afterwards see the rows.
# ---------------------------------------------------------------------------
@pytest.fixture
def make_user(db_engine: Engine):
    """Factory: ``make_user(name=..., role=...)`` → :class:`Actor` for the new row."""
    counter = {"n": 0}

    def _make(name: str | None = None, *, role: str = "student", college: str = "State University", **profile) -> Actor:
        counter["n"] += 1
        n = counter["n"]
        with Session(db_engine) as session:
            user = User(
                name=name or f"Student {n}",
                email=f"student{n}@example.edu",
                college=college,
                role=role,
                **profile,
            )
            session.add(user)
            session.commit()
            return Actor(id=user.id, role=role)

    return _make


@pytest.fixture
def make_post(db_engine: Engine):
    """Factory: insert a published post for *author* and return its id."""

    def _make(author: Actor, title: str = "Study group for finals", **fields) -> str:
        with Session(db_engine) as session:
            post = Post(
                title=title,
                content=fields.pop("content", "Anyone want to review data structures together?"),
                author_id=author.id,
                category=fields.pop("category", PostCategory.QUESTIONS.value),
                status=fields.pop("status", PostStatus.PUBLISHED.value),
                **fields,
            )
            session.add(post)
            session.commit()
            return post.id

    return _make


@pytest.fixture
def make_event(db_engine: Engine):
    """Factory: insert a published hackathon starting in ten days."""

    def _make(organizer: Actor, **fields) -> str:
        now = utcnow()
        with Session(db_engine) as session:
            event = Event(
                name=fields.pop("name", "Campus Hack Night"),
                description=fields.pop("description", "Twenty-four hours of building things."),
                type=fields.pop("type", EventType.HACKATHON.value),
                organizer_id=organizer.id,
                organizer_name="Organizer",
                start_date=fields.pop("start_date", now + timedelta(days=10)),
                end_date=fields.pop("end_date", now + timedelta(days=11)),
                registration_deadline=fields.pop("registration_deadline", now + timedelta(days=5)),
                status=fields.pop("status", EventStatus.PUBLISHED.value),
                **fields,
            )
            session.add(event)
            session.commit()
            return event.id

    return _make


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------
def make_token(sub: str, role: str = "student") -> str:
    """Create a bearer JWT for *sub* with the given role claim."""
    import jwt

    from collegeconnect.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode({"sub": sub, "role": role}, JWT_SECRET, algorithm=JWT_ALGORITHM)


def auth(actor: Actor) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(actor.id, actor.role)}"}


@pytest.fixture
def test_config():
    from collegeconnect.config import CollegeConnectConfig

    return CollegeConnectConfig(
        app_name="CollegeConnect Test",
        api_port=8000,
        default_page_limit=20,
        max_page_limit=100,
    )


@pytest.fixture
def client(db_engine, test_config):
    """TestClient whose handlers run against the in-memory SQLite engine."""
    from fastapi.testclient import TestClient

    from collegeconnect.api.deps import get_config, get_engine
    from collegeconnect.api.main import app

    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_config] = lambda: test_config

    yield TestClient(app, raise_server_exceptions=False)

    app.dependency_overrides.clear()
