"""
collegeconnect.services.listing — Filtered, sorted, paginated reads
====================================================================

Every ``list_*`` function is read-only: it opens its own session, builds
one ``SELECT`` from the given filters, counts the full filtered set and
returns a :class:`Page` of serialized rows.

Free-text search uses PostgreSQL full-text matching
(``to_tsvector @@ plainto_tsquery``) when the engine is PostgreSQL and
falls back to case-insensitive term matching elsewhere (SQLite in tests).
Every search term must match somewhere in the searched columns.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import (
    Engine,
    String,
    and_,
    case,
    column,
    exists,
    func,
    literal,
    or_,
    select,
    true,
)
from sqlalchemy.orm import Session, selectinload

from collegeconnect.constants import utcnow
from collegeconnect.database.models import (
    Comment,
    CommentStatus,
    Event,
    EventStatus,
    Notification,
    NotificationStatus,
    Post,
    PostStatus,
    PostTag,
    PostVote,
    Project,
    ProjectSkill,
    ProjectStatus,
    Team,
    TeamSkill,
    TeamStatus,
    User,
    Visibility,
    VoteDirection,
)
from collegeconnect.engine.scoring import VoteTally, popularity_score
from collegeconnect.services import engagement
from collegeconnect.services.serializers import (
    serialize_comment,
    serialize_event,
    serialize_notification,
    serialize_post,
    serialize_project,
    serialize_team,
    serialize_user,
    user_summary,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100

POST_SORTS = ("recent", "popular", "trending")


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------
def _positive_int(raw, default: int) -> int:
    """Parse *raw* as a positive int; anything else yields *default*."""
    if raw is None or isinstance(raw, bool):
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True, slots=True)
class Pagination:
    """1-based page plus page size.  Always valid once constructed."""

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_raw(
        cls,
        page=None,
        limit=None,
        *,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
    ) -> Pagination:
        """Build from untrusted query values.

        Non-numeric or non-positive values fall back to the defaults rather
        than failing; *limit* is capped at *max_limit*.
        """
        return cls(
            page=_positive_int(page, DEFAULT_PAGE),
            limit=min(_positive_int(limit, default_limit), max_limit),
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(slots=True)
class Page:
    items: list[dict] = field(default_factory=list)
    total: int = 0
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def meta(self) -> dict[str, int]:
        return {
            "count": self.count,
            "total": self.total,
            "page": self.page,
            "pages": self.pages,
        }


def paginate(session: Session, stmt, pagination: Pagination) -> tuple[Sequence, int]:
    """Run *stmt* for one page and return ``(rows, total)``.

    A page past the end yields no rows without querying for them, so an
    offset too large for the database never reaches it.
    """
    total = session.scalar(
        select(func.count()).select_from(stmt.order_by(None).subquery())
    ) or 0
    if pagination.offset >= total:
        return [], total
    rows = session.scalars(
        stmt.offset(pagination.offset).limit(pagination.limit)
    ).all()
    return rows, total


# ---------------------------------------------------------------------------
# Filter helpers
# ---------------------------------------------------------------------------
def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def contains_ci(column, term: str):
    """Case-insensitive substring match."""
    return column.ilike(f"%{_escape_like(term)}%", escape="\\")


def split_csv(raw: str | Iterable[str] | None, *, lower: bool = False) -> list[str]:
    """``"a, b,,c"`` → ``["a", "b", "c"]``; lists pass through trimmed."""
    if raw is None:
        return []
    parts = raw.split(",") if isinstance(raw, str) else list(raw)
    values = [p.strip() for p in parts if p and p.strip()]
    return [v.lower() for v in values] if lower else values


def text_search(session: Session, columns: Sequence, query: str):
    """Free-text predicate over *columns*, dialect-aware."""
    if session.get_bind().dialect.name == "postgresql":
        document = func.concat_ws(literal(" "), *columns)
        return func.to_tsvector("english", document).op("@@")(
            func.plainto_tsquery("english", query)
        )
    terms = query.split()
    if not terms:
        return true()
    return and_(*(or_(*(contains_ci(col, term) for col in columns)) for term in terms))


def json_list_contains_any(session: Session, json_list, values: Sequence[str]):
    """Some element of the JSON string list *json_list* contains any of *values*.

    Each element is matched on its own (case-insensitive substring), so a
    term never spans two elements or the JSON punctuation between them.
    """
    if session.get_bind().dialect.name == "postgresql":
        elements = func.jsonb_array_elements_text(json_list)
    else:
        elements = func.json_each(json_list)
    element = elements.table_valued(column("value", String), name="element")
    return exists(
        select(literal(1))
        .select_from(element)
        .where(or_(*(contains_ci(element.c.value, value) for value in values)))
    )


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------
def _vote_score():
    return (
        select(
            func.coalesce(
                func.sum(
                    case((PostVote.direction == VoteDirection.UP.value, 1), else_=-1)
                ),
                0,
            )
        )
        .where(PostVote.post_id == Post.id)
        .correlate(Post)
        .scalar_subquery()
    )


def list_posts(
    engine: Engine,
    pagination: Pagination,
    *,
    category: str | None = None,
    tags: str | Iterable[str] | None = None,
    author: str | None = None,
    search: str | None = None,
    sort_by: str | None = None,
    status: str = PostStatus.PUBLISHED.value,
    now: datetime | None = None,
) -> Page:
    """Posts listing: ``recent`` (default), ``popular`` or ``trending``."""
    now = now or utcnow()
    with Session(engine) as session:
        stmt = (
            select(Post)
            .where(Post.status == status)
            .options(selectinload(Post.author), selectinload(Post.tag_rows))
        )
        if category:
            stmt = stmt.where(Post.category == category)
        tag_list = split_csv(tags, lower=True)
        if tag_list:
            stmt = stmt.where(
                Post.id.in_(select(PostTag.post_id).where(PostTag.tag.in_(tag_list)))
            )
        if author:
            stmt = stmt.where(Post.author_id == author)
        if search:
            stmt = stmt.where(text_search(session, [Post.title, Post.content], search))

        if sort_by == "trending":
            return _trending_page(session, stmt, pagination, now)

        if sort_by == "popular":
            stmt = stmt.order_by(
                _vote_score().desc(), Post.comments_count.desc(), Post.created_at.desc()
            )
        else:
            stmt = stmt.order_by(Post.created_at.desc())

        rows, total = paginate(session, stmt, pagination)
        tallies = engagement.tallies_for(session, engagement.POST, [p.id for p in rows])
        items = [serialize_post(p, tallies.get(p.id), now=now) for p in rows]
        return Page(items, total, pagination.page, pagination.limit)


def _trending_page(session: Session, stmt, pagination: Pagination, now: datetime) -> Page:
    # popularityScore is never stored, so the whole filtered set is ranked here.
    posts = session.scalars(stmt.order_by(Post.created_at.desc())).all()
    tallies = engagement.tallies_for(session, engagement.POST, [p.id for p in posts])

    def score(post: Post) -> float:
        votes = tallies.get(post.id, VoteTally())
        return popularity_score(
            vote_count=votes.vote_count,
            comments_count=post.comments_count,
            views=post.views,
            created_at=post.created_at,
            now=now,
        )

    ranked = sorted(posts, key=score, reverse=True)
    window = ranked[pagination.offset:pagination.offset + pagination.limit]
    items = [serialize_post(p, tallies.get(p.id), now=now) for p in window]
    return Page(items, len(ranked), pagination.page, pagination.limit)


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------
def list_post_comments(engine: Engine, post_id: str, pagination: Pagination) -> Page:
    """Top-level active comments of a live post, oldest first."""
    with Session(engine) as session:
        engagement.load_votable(session, engagement.POST, post_id)
        stmt = (
            select(Comment)
            .where(
                Comment.post_id == post_id,
                Comment.parent_comment_id.is_(None),
                Comment.status == CommentStatus.ACTIVE.value,
            )
            .options(selectinload(Comment.author))
            .order_by(Comment.created_at.asc())
        )
        rows, total = paginate(session, stmt, pagination)
        tallies = engagement.tallies_for(session, engagement.COMMENT, [c.id for c in rows])
        items = [serialize_comment(c, tallies.get(c.id)) for c in rows]
        return Page(items, total, pagination.page, pagination.limit)


def list_replies(engine: Engine, comment_id: str, pagination: Pagination) -> Page:
    """Active replies to a comment, oldest first."""
    with Session(engine) as session:
        engagement.load_votable(session, engagement.COMMENT, comment_id)
        stmt = (
            select(Comment)
            .where(
                Comment.parent_comment_id == comment_id,
                Comment.status == CommentStatus.ACTIVE.value,
            )
            .options(selectinload(Comment.author))
            .order_by(Comment.created_at.asc())
        )
        rows, total = paginate(session, stmt, pagination)
        tallies = engagement.tallies_for(session, engagement.COMMENT, [c.id for c in rows])
        items = [serialize_comment(c, tallies.get(c.id)) for c in rows]
        return Page(items, total, pagination.page, pagination.limit)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
def _active_users():
    return select(User).where(User.is_active.is_(True)).order_by(User.created_at.desc())


def list_users(
    engine: Engine,
    pagination: Pagination,
    *,
    role: str | None = None,
    college: str | None = None,
    skills: str | Iterable[str] | None = None,
    search: str | None = None,
) -> Page:
    with Session(engine) as session:
        stmt = _active_users()
        if role:
            stmt = stmt.where(User.role == role)
        if college:
            stmt = stmt.where(contains_ci(User.college, college))
        skill_list = split_csv(skills)
        if skill_list:
            stmt = stmt.where(json_list_contains_any(session, User.skills, skill_list))
        if search:
            stmt = stmt.where(or_(contains_ci(User.name, search), contains_ci(User.email, search)))
        rows, total = paginate(session, stmt, pagination)
        return Page([serialize_user(u) for u in rows], total, pagination.page, pagination.limit)


def users_by_college(engine: Engine, college: str, pagination: Pagination) -> Page:
    return list_users(engine, pagination, college=college)


def search_users_by_skills(engine: Engine, skills: str | Iterable[str], limit: int) -> list[dict]:
    """Compact profiles of active users holding any of *skills*."""
    skill_list = split_csv(skills)
    if not skill_list:
        return []
    with Session(engine) as session:
        rows = session.scalars(
            _active_users()
            .where(json_list_contains_any(session, User.skills, skill_list))
            .limit(limit)
        ).all()
        return [{**user_summary(u), "skills": list(u.skills or [])} for u in rows]


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------
def list_events(
    engine: Engine,
    pagination: Pagination,
    *,
    type: str | None = None,
    city: str | None = None,
    upcoming: bool = False,
    search: str | None = None,
    status: str = EventStatus.PUBLISHED.value,
    now: datetime | None = None,
) -> Page:
    with Session(engine) as session:
        stmt = select(Event).where(Event.status == status)
        if type:
            stmt = stmt.where(Event.type == type)
        if city:
            stmt = stmt.where(contains_ci(Event.city, city))
        if search:
            stmt = stmt.where(text_search(session, [Event.name, Event.description], search))
        if upcoming:
            stmt = stmt.where(Event.start_date >= (now or utcnow())).order_by(
                Event.start_date.asc()
            )
        else:
            stmt = stmt.order_by(Event.start_date.desc())
        rows, total = paginate(session, stmt, pagination)
        return Page([serialize_event(e) for e in rows], total, pagination.page, pagination.limit)


# ---------------------------------------------------------------------------
# Projects & teams
# ---------------------------------------------------------------------------
OPEN_PROJECT_STATUSES = (ProjectStatus.PLANNING.value, ProjectStatus.ACTIVE.value)


def list_projects(
    engine: Engine,
    pagination: Pagination,
    *,
    type: str | None = None,
    domain: str | None = None,
    status: str | None = None,
    skill: str | None = None,
    search: str | None = None,
) -> Page:
    """Public projects; ``planning``/``active`` unless *status* narrows it."""
    with Session(engine) as session:
        stmt = (
            select(Project)
            .where(Project.visibility == Visibility.PUBLIC.value)
            .options(
                selectinload(Project.members),
                selectinload(Project.required_skills),
            )
            .order_by(Project.created_at.desc())
        )
        if status:
            stmt = stmt.where(Project.status == status)
        else:
            stmt = stmt.where(Project.status.in_(OPEN_PROJECT_STATUSES))
        if type:
            stmt = stmt.where(Project.type == type)
        if domain:
            stmt = stmt.where(Project.domain == domain)
        if skill:
            stmt = stmt.where(exists().where(
                ProjectSkill.project_id == Project.id,
                contains_ci(ProjectSkill.skill, skill),
            ))
        if search:
            stmt = stmt.where(
                text_search(session, [Project.title, Project.description], search)
            )
        rows, total = paginate(session, stmt, pagination)
        return Page(
            [serialize_project(p) for p in rows], total, pagination.page, pagination.limit
        )


def list_teams(
    engine: Engine,
    pagination: Pagination,
    *,
    event: str | None = None,
    skill: str | None = None,
    search: str | None = None,
    status: str = TeamStatus.FORMING.value,
) -> Page:
    """Public teams, ``forming`` by default."""
    with Session(engine) as session:
        stmt = (
            select(Team)
            .where(Team.status == status, Team.visibility == Visibility.PUBLIC.value)
            .options(selectinload(Team.members), selectinload(Team.required_skills))
            .order_by(Team.created_at.desc())
        )
        if event:
            stmt = stmt.where(Team.event_id == event)
        if skill:
            stmt = stmt.where(exists().where(
                TeamSkill.team_id == Team.id,
                contains_ci(TeamSkill.skill, skill),
            ))
        if search:
            stmt = stmt.where(text_search(session, [Team.name, Team.description], search))
        rows, total = paginate(session, stmt, pagination)
        return Page([serialize_team(t) for t in rows], total, pagination.page, pagination.limit)


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
def list_notifications(
    engine: Engine,
    recipient_id: str,
    pagination: Pagination,
    *,
    status: str | None = NotificationStatus.UNREAD.value,
    type: str | None = None,
    now: datetime | None = None,
) -> Page:
    """Newest first; ``status="all"`` (or ``None``) disables the status filter.

    Expired notifications are never listed.
    """
    with Session(engine) as session:
        stmt = (
            select(Notification)
            .where(
                Notification.recipient_id == recipient_id,
                Notification.expires_at > (now or utcnow()),
            )
            .order_by(Notification.created_at.desc())
        )
        if status and status != "all":
            stmt = stmt.where(Notification.status == status)
        if type:
            stmt = stmt.where(Notification.type == type)
        rows, total = paginate(session, stmt, pagination)
        return Page(
            [serialize_notification(n) for n in rows], total, pagination.page, pagination.limit
        )
