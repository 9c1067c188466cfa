"""
collegeconnect.database.models — SQLAlchemy 2.0 Data Models
============================================================

Embedded lists from the document model (votes, tags, members, join
requests, participants) are normalised into child tables.  Unique
constraints on those tables enforce the per-user invariants at the
storage layer instead of in read-modify-write application code.

Tables:
- users                 — Student / faculty / admin profiles
- posts, post_tags      — Discussion posts and their lowercase tags
- post_votes            — One row per (post, user); direction up|down
- comments              — Post comments with one level of replies
- comment_votes         — One row per (comment, user)
- comment_edits         — Append-only history of prior comment content
- events                — Hackathons, workshops, meetups …
- event_participants    — One row per (event, user)
- projects / teams      — Collaborative groups with a size target
- *_skills              — Required skills per project / team
- *_members             — Roster rows, one per (group, user)
- *_join_requests       — Join-request lifecycle (pending → terminal)
- notifications         — Stored in-app notifications
- rate_limit_events     — Sliding-window mutation throttle
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from collegeconnect.constants import DEFAULT_PROFILE_IMAGE, TEAM_MAX_SIZE_DEFAULT, utcnow


def new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all CollegeConnect ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class UserRole(enum.StrEnum):
    STUDENT = "student"
    FACULTY = "faculty"
    ADMIN = "admin"


class Visibility(enum.StrEnum):
    PUBLIC = "public"
    COLLEGE_ONLY = "college-only"
    PRIVATE = "private"


class PostCategory(enum.StrEnum):
    TECH = "tech"
    DESIGN = "design"
    BUSINESS = "business"
    PLACEMENT_PREP = "placement-prep"
    HACKATHONS = "hackathons"
    PROJECTS = "projects"
    GENERAL = "general"
    ANNOUNCEMENTS = "announcements"
    QUESTIONS = "questions"
    RESOURCES = "resources"


class PostStatus(enum.StrEnum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"
    DELETED = "deleted"


class PostType(enum.StrEnum):
    DISCUSSION = "discussion"
    QUESTION = "question"
    ANNOUNCEMENT = "announcement"
    RESOURCE = "resource"
    PROJECT_SHOWCASE = "project-showcase"


class VoteDirection(enum.StrEnum):
    UP = "up"
    DOWN = "down"

    @property
    def opposite(self) -> VoteDirection:
        return VoteDirection.DOWN if self is VoteDirection.UP else VoteDirection.UP


class CommentStatus(enum.StrEnum):
    ACTIVE = "active"
    DELETED = "deleted"
    HIDDEN = "hidden"


class EventType(enum.StrEnum):
    HACKATHON = "hackathon"
    CONFERENCE = "conference"
    WORKSHOP = "workshop"
    TECH_TALK = "tech-talk"
    COMPETITION = "competition"
    MEETUP = "meetup"
    WEBINAR = "webinar"
    SEMINAR = "seminar"
    TRAINING = "training"
    OTHER = "other"


class OrganizerType(enum.StrEnum):
    INDIVIDUAL = "individual"
    CLUB = "club"
    COLLEGE = "college"
    COMPANY = "company"


class LocationType(enum.StrEnum):
    ONLINE = "online"
    OFFLINE = "offline"
    HYBRID = "hybrid"


class EventStatus(enum.StrEnum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ParticipantStatus(enum.StrEnum):
    REGISTERED = "registered"
    CONFIRMED = "confirmed"
    ATTENDED = "attended"
    CANCELLED = "cancelled"


class ProjectStatus(enum.StrEnum):
    PLANNING = "planning"
    ACTIVE = "active"
    COMPLETED = "completed"
    ON_HOLD = "on-hold"
    CANCELLED = "cancelled"


class ProjectType(enum.StrEnum):
    WEB_DEVELOPMENT = "web-development"
    MOBILE_APP = "mobile-app"
    AI_ML = "ai-ml"
    DATA_SCIENCE = "data-science"
    IOT = "iot"
    BLOCKCHAIN = "blockchain"
    GAME_DEVELOPMENT = "game-development"
    DESIGN = "design"
    RESEARCH = "research"
    STARTUP = "startup"
    OPEN_SOURCE = "open-source"
    OTHER = "other"


class ProjectDomain(enum.StrEnum):
    EDUCATION = "education"
    HEALTHCARE = "healthcare"
    FINANCE = "finance"
    E_COMMERCE = "e-commerce"
    SOCIAL_MEDIA = "social-media"
    PRODUCTIVITY = "productivity"
    ENTERTAINMENT = "entertainment"
    GAMING = "gaming"
    SUSTAINABILITY = "sustainability"
    AGRICULTURE = "agriculture"
    TRANSPORTATION = "transportation"
    OTHER = "other"


class TeamStatus(enum.StrEnum):
    FORMING = "forming"
    ACTIVE = "active"
    COMPLETED = "completed"
    DISBANDED = "disbanded"


class SkillLevel(enum.StrEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class MemberStatus(enum.StrEnum):
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"
    LEFT = "left"


class JoinRequestStatus(enum.StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class NotificationType(enum.StrEnum):
    POST_COMMENT = "post_comment"
    POST_UPVOTE = "post_upvote"
    POST_MENTION = "post_mention"
    PROJECT_JOIN_REQUEST = "project_join_request"
    PROJECT_REQUEST_ACCEPTED = "project_request_accepted"
    PROJECT_REQUEST_REJECTED = "project_request_rejected"
    EVENT_REMINDER = "event_reminder"
    EVENT_REGISTRATION = "event_registration"
    TEAM_INVITATION = "team_invitation"
    TEAM_JOIN_REQUEST = "team_join_request"
    BADGE_EARNED = "badge_earned"
    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"
    SYSTEM_ANNOUNCEMENT = "system_announcement"
    PROFILE_VIEW = "profile_view"
    CONNECTION_REQUEST = "connection_request"
    MESSAGE_RECEIVED = "message_received"
    PROJECT_UPDATE = "project_update"
    EVENT_UPDATE = "event_update"
    MODERATION_ACTION = "moderation_action"
    VERIFICATION_STATUS = "verification_status"


class NotificationStatus(enum.StrEnum):
    UNREAD = "unread"
    READ = "read"
    ARCHIVED = "archived"


class NotificationPriority(enum.StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class RelatedKind(enum.StrEnum):
    """Variants of a notification's related entity."""
    POST = "post"
    COMMENT = "comment"
    PROJECT = "project"
    EVENT = "event"
    USER = "user"
    TEAM = "team"
    BADGE = "badge"
    SYSTEM = "system"


def _timestamp(**kwargs) -> Mapped[datetime]:
    return mapped_column(DateTime(timezone=True), default=utcnow, **kwargs)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserRole.STUDENT.value
    )

    # Academic
    college: Mapped[str] = mapped_column(String(100), nullable=False)
    course: Mapped[str | None] = mapped_column(String(100), default=None)
    year: Mapped[str | None] = mapped_column(String(20), default=None)
    semester: Mapped[str | None] = mapped_column(String(20), default=None)

    # Profile
    bio: Mapped[str | None] = mapped_column(Text, default=None)
    skills: Mapped[list | None] = mapped_column(JSONB, default=list)
    interests: Mapped[list | None] = mapped_column(JSONB, default=list)
    social_links: Mapped[dict | None] = mapped_column(JSONB, default=dict)
    profile_image: Mapped[str] = mapped_column(String(500), default=DEFAULT_PROFILE_IMAGE)

    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = _timestamp()
    updated_at: Mapped[datetime] = _timestamp(onupdate=utcnow)

    __table_args__ = (
        Index("ix_users_college", "college"),
        Index("ix_users_role", "role"),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------
class Post(Base):
    __tablename__ = "posts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    category: Mapped[str] = mapped_column(String(30), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PostStatus.PUBLISHED.value
    )
    visibility: Mapped[str] = mapped_column(String(20), default=Visibility.PUBLIC.value)
    post_type: Mapped[str] = mapped_column(String(30), default=PostType.DISCUSSION.value)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False)
    is_sticky: Mapped[bool] = mapped_column(Boolean, default=False)

    # Monotonic counter; derived count maintained by services.counters
    views: Mapped[int] = mapped_column(Integer, default=0)
    comments_count: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = _timestamp()
    updated_at: Mapped[datetime] = _timestamp(onupdate=utcnow)

    author: Mapped[User] = relationship()
    tag_rows: Mapped[list[PostTag]] = relationship(
        back_populates="post", cascade="all, delete-orphan", order_by="PostTag.tag"
    )
    comments: Mapped[list[Comment]] = relationship(
        primaryjoin="and_(Post.id == Comment.post_id, Comment.parent_comment_id.is_(None))",
        order_by="Comment.created_at",
        viewonly=True,
    )

    __table_args__ = (
        Index("ix_posts_author", "author_id"),
        Index("ix_posts_category", "category"),
        Index("ix_posts_status_created", "status", "created_at"),
    )

    @property
    def tags(self) -> list[str]:
        return [row.tag for row in self.tag_rows]

    def __repr__(self) -> str:
        return f"<Post id={self.id} title={self.title!r} status={self.status}>"


class PostTag(Base):
    __tablename__ = "post_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False
    )
    tag: Mapped[str] = mapped_column(String(50), nullable=False)

    post: Mapped[Post] = relationship(back_populates="tag_rows")

    __table_args__ = (
        UniqueConstraint("post_id", "tag", name="uq_post_tags_post_tag"),
        Index("ix_post_tags_tag", "tag"),
    )


class PostVote(Base):
    """A user's single vote on a post.

    The unique (post_id, user_id) pair makes "upvoted and downvoted at the
    same time" unrepresentable; switching sides flips ``direction``.
    """
    __tablename__ = "post_votes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    direction: Mapped[str] = mapped_column(String(4), nullable=False)
    created_at: Mapped[datetime] = _timestamp()

    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="uq_post_votes_post_user"),
        Index("ix_post_votes_post_direction", "post_id", "direction"),
    )

    def __repr__(self) -> str:
        return f"<PostVote post={self.post_id} user={self.user_id} {self.direction}>"


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------
class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    post_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False
    )
    parent_comment_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("comments.id", ondelete="CASCADE"), nullable=True
    )
    replies_count: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=CommentStatus.ACTIVE.value
    )
    is_edited: Mapped[bool] = mapped_column(Boolean, default=False)
    last_edited_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = _timestamp()
    updated_at: Mapped[datetime] = _timestamp(onupdate=utcnow)

    author: Mapped[User] = relationship()
    replies: Mapped[list[Comment]] = relationship(
        order_by="Comment.created_at", viewonly=True
    )
    edits: Mapped[list[CommentEdit]] = relationship(
        back_populates="comment",
        cascade="all, delete-orphan",
        order_by="CommentEdit.edited_at",
    )

    __table_args__ = (
        Index("ix_comments_post_created", "post_id", "created_at"),
        Index("ix_comments_parent", "parent_comment_id"),
        Index("ix_comments_author", "author_id"),
    )

    def __repr__(self) -> str:
        return f"<Comment id={self.id} post={self.post_id} status={self.status}>"


class CommentVote(Base):
    __tablename__ = "comment_votes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    comment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("comments.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    direction: Mapped[str] = mapped_column(String(4), nullable=False)
    created_at: Mapped[datetime] = _timestamp()

    __table_args__ = (
        UniqueConstraint("comment_id", "user_id", name="uq_comment_votes_comment_user"),
        Index("ix_comment_votes_comment_direction", "comment_id", "direction"),
    )

    def __repr__(self) -> str:
        return f"<CommentVote comment={self.comment_id} user={self.user_id} {self.direction}>"


class CommentEdit(Base):
    """Append-only snapshot of a comment's content before an edit."""
    __tablename__ = "comment_edits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    comment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("comments.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    edited_at: Mapped[datetime] = _timestamp()

    comment: Mapped[Comment] = relationship(back_populates="edits")


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------
class Event(Base):
    __tablename__ = "events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(30), nullable=False)

    organizer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    organizer_name: Mapped[str] = mapped_column(String(100), nullable=False)
    organizer_type: Mapped[str] = mapped_column(
        String(20), default=OrganizerType.INDIVIDUAL.value
    )

    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    registration_deadline: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    location_type: Mapped[str] = mapped_column(String(20), default=LocationType.OFFLINE.value)
    venue: Mapped[str | None] = mapped_column(String(200), default=None)
    city: Mapped[str | None] = mapped_column(String(100), default=None)
    online_link: Mapped[str | None] = mapped_column(String(500), default=None)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=EventStatus.DRAFT.value
    )

    # Registration sub-record
    is_free: Mapped[bool] = mapped_column(Boolean, default=True)
    max_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_participants: Mapped[int] = mapped_column(Integer, default=0)

    tags: Mapped[list | None] = mapped_column(JSONB, default=list)
    views: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = _timestamp()
    updated_at: Mapped[datetime] = _timestamp(onupdate=utcnow)

    participants: Mapped[list[EventParticipant]] = relationship(
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="EventParticipant.registered_at",
    )

    __table_args__ = (
        Index("ix_events_organizer", "organizer_id"),
        Index("ix_events_status_start", "status", "start_date"),
        Index("ix_events_city", "city"),
    )

    def __repr__(self) -> str:
        return f"<Event id={self.id} name={self.name!r} status={self.status}>"


class EventParticipant(Base):
    __tablename__ = "event_participants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    registered_at: Mapped[datetime] = _timestamp()
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ParticipantStatus.REGISTERED.value
    )
    team_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("teams.id", ondelete="SET NULL"), nullable=True
    )

    event: Mapped[Event] = relationship(back_populates="participants")

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_participants_event_user"),
    )


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------
class Project(Base):
    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    owner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ProjectStatus.PLANNING.value
    )
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    domain: Mapped[str] = mapped_column(String(30), nullable=False)

    team_size_required: Mapped[int] = mapped_column(Integer, nullable=False)
    team_size_current: Mapped[int] = mapped_column(Integer, default=0)

    visibility: Mapped[str] = mapped_column(String(20), default=Visibility.PUBLIC.value)
    is_open: Mapped[bool] = mapped_column(Boolean, default=True)
    tags: Mapped[list | None] = mapped_column(JSONB, default=list)
    views: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = _timestamp()
    updated_at: Mapped[datetime] = _timestamp(onupdate=utcnow)

    required_skills: Mapped[list[ProjectSkill]] = relationship(
        cascade="all, delete-orphan", order_by="ProjectSkill.id"
    )
    members: Mapped[list[ProjectMember]] = relationship(
        cascade="all, delete-orphan", order_by="ProjectMember.joined_at"
    )
    join_requests: Mapped[list[ProjectJoinRequest]] = relationship(
        cascade="all, delete-orphan", order_by="ProjectJoinRequest.requested_at"
    )

    __table_args__ = (
        Index("ix_projects_owner", "owner_id"),
        Index("ix_projects_status", "status"),
        Index("ix_projects_type_domain", "type", "domain"),
    )

    def __repr__(self) -> str:
        return f"<Project id={self.id} title={self.title!r} status={self.status}>"


class ProjectSkill(Base):
    __tablename__ = "project_skills"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    skill: Mapped[str] = mapped_column(String(100), nullable=False)
    level: Mapped[str] = mapped_column(String(20), default=SkillLevel.INTERMEDIATE.value)
    is_required: Mapped[bool] = mapped_column(Boolean, default=True)


class ProjectMember(Base):
    __tablename__ = "project_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(100), nullable=False)
    skills: Mapped[list | None] = mapped_column(JSONB, default=list)
    joined_at: Mapped[datetime] = _timestamp()
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=MemberStatus.ACTIVE.value
    )

    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_members_project_user"),
    )


class ProjectJoinRequest(Base):
    __tablename__ = "project_join_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    message: Mapped[str | None] = mapped_column(Text, default=None)
    skills: Mapped[list | None] = mapped_column(JSONB, default=list)
    experience: Mapped[str | None] = mapped_column(Text, default=None)
    requested_at: Mapped[datetime] = _timestamp()
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=JoinRequestStatus.PENDING.value
    )
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    response_message: Mapped[str | None] = mapped_column(Text, default=None)

    __table_args__ = (
        # At most one pending request per (project, user)
        Index(
            "uq_project_join_requests_pending",
            "project_id",
            "user_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
        Index("ix_project_join_requests_project", "project_id", "status"),
    )


# ---------------------------------------------------------------------------
# Teams
# ---------------------------------------------------------------------------
class Team(Base):
    __tablename__ = "teams"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    leader_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    event_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TeamStatus.FORMING.value
    )

    team_size_required: Mapped[int] = mapped_column(Integer, nullable=False)
    team_size_max: Mapped[int] = mapped_column(Integer, default=TEAM_MAX_SIZE_DEFAULT)
    team_size_current: Mapped[int] = mapped_column(Integer, default=0)

    visibility: Mapped[str] = mapped_column(String(20), default=Visibility.PUBLIC.value)
    tags: Mapped[list | None] = mapped_column(JSONB, default=list)
    views: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = _timestamp()
    updated_at: Mapped[datetime] = _timestamp(onupdate=utcnow)

    required_skills: Mapped[list[TeamSkill]] = relationship(
        cascade="all, delete-orphan", order_by="TeamSkill.id"
    )
    members: Mapped[list[TeamMember]] = relationship(
        cascade="all, delete-orphan", order_by="TeamMember.joined_at"
    )
    join_requests: Mapped[list[TeamJoinRequest]] = relationship(
        cascade="all, delete-orphan", order_by="TeamJoinRequest.requested_at"
    )

    __table_args__ = (
        Index("ix_teams_leader", "leader_id"),
        Index("ix_teams_event", "event_id"),
        Index("ix_teams_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Team id={self.id} name={self.name!r} status={self.status}>"


class TeamSkill(Base):
    __tablename__ = "team_skills"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    skill: Mapped[str] = mapped_column(String(100), nullable=False)
    level: Mapped[str] = mapped_column(String(20), default=SkillLevel.INTERMEDIATE.value)
    is_required: Mapped[bool] = mapped_column(Boolean, default=True)


class TeamMember(Base):
    __tablename__ = "team_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(100), nullable=False)
    skills: Mapped[list | None] = mapped_column(JSONB, default=list)
    joined_at: Mapped[datetime] = _timestamp()
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=MemberStatus.ACTIVE.value
    )

    __table_args__ = (
        UniqueConstraint("team_id", "user_id", name="uq_team_members_team_user"),
    )


class TeamJoinRequest(Base):
    __tablename__ = "team_join_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    team_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    message: Mapped[str | None] = mapped_column(Text, default=None)
    skills: Mapped[list | None] = mapped_column(JSONB, default=list)
    experience: Mapped[str | None] = mapped_column(Text, default=None)
    requested_at: Mapped[datetime] = _timestamp()
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=JoinRequestStatus.PENDING.value
    )
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    response_message: Mapped[str | None] = mapped_column(Text, default=None)

    __table_args__ = (
        Index(
            "uq_team_join_requests_pending",
            "team_id",
            "user_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
        Index("ix_team_join_requests_team", "team_id", "status"),
    )


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
class Notification(Base):
    """Stored in-app notification.

    ``related_type``/``related_id`` is the persisted form of
    :class:`~collegeconnect.engine.related.RelatedEntity`; use the
    ``related`` property rather than reading the columns directly.
    """
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    recipient_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    sender_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    type: Mapped[str] = mapped_column(String(40), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(String(500), nullable=False)
    related_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    related_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=NotificationStatus.UNREAD.value
    )
    priority: Mapped[str] = mapped_column(
        String(10), default=NotificationPriority.MEDIUM.value
    )
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = _timestamp()

    __table_args__ = (
        Index("ix_notifications_recipient_status", "recipient_id", "status"),
        Index("ix_notifications_recipient_created", "recipient_id", "created_at"),
        Index("ix_notifications_related", "related_type", "related_id"),
        Index("ix_notifications_expires", "expires_at"),
    )

    @property
    def related(self):
        from collegeconnect.engine.related import RelatedEntity

        return RelatedEntity.from_columns(self.related_type, self.related_id)

    def __repr__(self) -> str:
        return f"<Notification id={self.id} type={self.type} status={self.status}>"


# ---------------------------------------------------------------------------
# RateLimitEvent — durable mutation events for per-actor throttling
# ---------------------------------------------------------------------------
class RateLimitEvent(Base):
    __tablename__ = "rate_limit_events"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    actor_id: Mapped[str] = mapped_column(String(64), nullable=False)
    timestamp: Mapped[datetime] = _timestamp(nullable=False)

    __table_args__ = (
        Index("ix_rate_limit_actor_ts", "actor_id", timestamp.desc()),
    )

    def __repr__(self) -> str:
        return f"<RateLimitEvent actor={self.actor_id!r} ts={self.timestamp}>"
