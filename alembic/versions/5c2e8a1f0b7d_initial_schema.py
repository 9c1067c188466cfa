"""Initial schema: users, posts, comments, events, projects, teams, notifications

Revision ID: 5c2e8a1f0b7d
Revises:
Create Date: 2026-10-19 10:12:41.118305

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5c2e8a1f0b7d'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _serial() -> sa.Column:
    return sa.Column("id", sa.Integer, primary_key=True, autoincrement=True)


def _fk(name: str, target: str, *, nullable: bool = False, ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(
        name, sa.String(36), sa.ForeignKey(target, ondelete=ondelete), nullable=nullable
    )


def _ts(name: str, *, nullable: bool = True) -> sa.Column:
    return sa.Column(
        name, sa.DateTime(timezone=True), nullable=nullable, server_default=sa.func.now()
    )


def _jsonb(name: str, default: str = "[]") -> sa.Column:
    return sa.Column(name, postgresql.JSONB, nullable=True, server_default=default)


def _pending_only() -> sa.TextClause:
    return sa.text("status = 'pending'")


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        _id(),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="student"),
        sa.Column("college", sa.String(100), nullable=False),
        sa.Column("course", sa.String(100)),
        sa.Column("year", sa.String(20)),
        sa.Column("semester", sa.String(20)),
        sa.Column("bio", sa.Text),
        _jsonb("skills"),
        _jsonb("interests"),
        _jsonb("social_links", "{}"),
        sa.Column("profile_image", sa.String(500)),
        sa.Column("is_verified", sa.Boolean, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean, server_default=sa.true()),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_users_college", "users", ["college"])
    op.create_index("ix_users_role", "users", ["role"])

    # --- posts ---
    op.create_table(
        "posts",
        _id(),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        _fk("author_id", "users.id"),
        sa.Column("category", sa.String(30), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="published"),
        sa.Column("visibility", sa.String(20), server_default="public"),
        sa.Column("post_type", sa.String(30), server_default="discussion"),
        sa.Column("is_featured", sa.Boolean, server_default=sa.false()),
        sa.Column("is_sticky", sa.Boolean, server_default=sa.false()),
        sa.Column("views", sa.Integer, server_default="0"),
        sa.Column("comments_count", sa.Integer, server_default="0"),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_posts_author", "posts", ["author_id"])
    op.create_index("ix_posts_category", "posts", ["category"])
    op.create_index("ix_posts_status_created", "posts", ["status", "created_at"])

    op.create_table(
        "post_tags",
        _serial(),
        _fk("post_id", "posts.id"),
        sa.Column("tag", sa.String(50), nullable=False),
        sa.UniqueConstraint("post_id", "tag", name="uq_post_tags_post_tag"),
    )
    op.create_index("ix_post_tags_tag", "post_tags", ["tag"])

    op.create_table(
        "post_votes",
        _serial(),
        _fk("post_id", "posts.id"),
        _fk("user_id", "users.id"),
        sa.Column("direction", sa.String(4), nullable=False),
        _ts("created_at"),
        sa.UniqueConstraint("post_id", "user_id", name="uq_post_votes_post_user"),
    )
    op.create_index("ix_post_votes_post_direction", "post_votes", ["post_id", "direction"])

    # --- comments ---
    op.create_table(
        "comments",
        _id(),
        sa.Column("content", sa.Text, nullable=False),
        _fk("author_id", "users.id"),
        _fk("post_id", "posts.id"),
        _fk("parent_comment_id", "comments.id", nullable=True),
        sa.Column("replies_count", sa.Integer, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("is_edited", sa.Boolean, server_default=sa.false()),
        sa.Column("last_edited_at", sa.DateTime(timezone=True)),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_comments_post_created", "comments", ["post_id", "created_at"])
    op.create_index("ix_comments_parent", "comments", ["parent_comment_id"])
    op.create_index("ix_comments_author", "comments", ["author_id"])

    op.create_table(
        "comment_votes",
        _serial(),
        _fk("comment_id", "comments.id"),
        _fk("user_id", "users.id"),
        sa.Column("direction", sa.String(4), nullable=False),
        _ts("created_at"),
        sa.UniqueConstraint("comment_id", "user_id", name="uq_comment_votes_comment_user"),
    )
    op.create_index(
        "ix_comment_votes_comment_direction", "comment_votes", ["comment_id", "direction"]
    )

    op.create_table(
        "comment_edits",
        _serial(),
        _fk("comment_id", "comments.id"),
        sa.Column("content", sa.Text, nullable=False),
        _ts("edited_at"),
    )

    # --- events ---
    op.create_table(
        "events",
        _id(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("type", sa.String(30), nullable=False),
        _fk("organizer_id", "users.id"),
        sa.Column("organizer_name", sa.String(100), nullable=False),
        sa.Column("organizer_type", sa.String(20), server_default="individual"),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("registration_deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location_type", sa.String(20), server_default="offline"),
        sa.Column("venue", sa.String(200)),
        sa.Column("city", sa.String(100)),
        sa.Column("online_link", sa.String(500)),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("is_free", sa.Boolean, server_default=sa.true()),
        sa.Column("max_participants", sa.Integer),
        sa.Column("current_participants", sa.Integer, server_default="0"),
        _jsonb("tags"),
        sa.Column("views", sa.Integer, server_default="0"),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_events_organizer", "events", ["organizer_id"])
    op.create_index("ix_events_status_start", "events", ["status", "start_date"])
    op.create_index("ix_events_city", "events", ["city"])

    # --- projects ---
    op.create_table(
        "projects",
        _id(),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        _fk("owner_id", "users.id"),
        sa.Column("status", sa.String(20), nullable=False, server_default="planning"),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("domain", sa.String(30), nullable=False),
        sa.Column("team_size_required", sa.Integer, nullable=False),
        sa.Column("team_size_current", sa.Integer, server_default="0"),
        sa.Column("visibility", sa.String(20), server_default="public"),
        sa.Column("is_open", sa.Boolean, server_default=sa.true()),
        _jsonb("tags"),
        sa.Column("views", sa.Integer, server_default="0"),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_projects_owner", "projects", ["owner_id"])
    op.create_index("ix_projects_status", "projects", ["status"])
    op.create_index("ix_projects_type_domain", "projects", ["type", "domain"])

    # --- teams ---
    op.create_table(
        "teams",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        _fk("leader_id", "users.id"),
        _fk("event_id", "events.id"),
        sa.Column("status", sa.String(20), nullable=False, server_default="forming"),
        sa.Column("team_size_required", sa.Integer, nullable=False),
        sa.Column("team_size_max", sa.Integer, server_default="5"),
        sa.Column("team_size_current", sa.Integer, server_default="0"),
        sa.Column("visibility", sa.String(20), server_default="public"),
        _jsonb("tags"),
        sa.Column("views", sa.Integer, server_default="0"),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_teams_leader", "teams", ["leader_id"])
    op.create_index("ix_teams_event", "teams", ["event_id"])
    op.create_index("ix_teams_status", "teams", ["status"])

    op.create_table(
        "event_participants",
        _serial(),
        _fk("event_id", "events.id"),
        _fk("user_id", "users.id"),
        _ts("registered_at"),
        sa.Column("status", sa.String(20), nullable=False, server_default="registered"),
        _fk("team_id", "teams.id", nullable=True, ondelete="SET NULL"),
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_participants_event_user"),
    )

    # --- rosters (same shape for projects and teams) ---
    for parent, fk in (("project", "project_id"), ("team", "team_id")):
        parents = f"{parent}s"
        op.create_table(
            f"{parent}_skills",
            _serial(),
            _fk(fk, f"{parents}.id"),
            sa.Column("skill", sa.String(100), nullable=False),
            sa.Column("level", sa.String(20), server_default="intermediate"),
            sa.Column("is_required", sa.Boolean, server_default=sa.true()),
        )
        op.create_table(
            f"{parent}_members",
            _serial(),
            _fk(fk, f"{parents}.id"),
            _fk("user_id", "users.id"),
            sa.Column("role", sa.String(100), nullable=False),
            _jsonb("skills"),
            _ts("joined_at"),
            sa.Column("status", sa.String(20), nullable=False, server_default="active"),
            sa.UniqueConstraint(fk, "user_id", name=f"uq_{parent}_members_{parent}_user"),
        )
        op.create_table(
            f"{parent}_join_requests",
            _id(),
            _fk(fk, f"{parents}.id"),
            _fk("user_id", "users.id"),
            sa.Column("message", sa.Text),
            _jsonb("skills"),
            sa.Column("experience", sa.Text),
            _ts("requested_at"),
            sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
            sa.Column("responded_at", sa.DateTime(timezone=True)),
            sa.Column("response_message", sa.Text),
        )
        # At most one pending request per (parent, user)
        op.create_index(
            f"uq_{parent}_join_requests_pending",
            f"{parent}_join_requests",
            [fk, "user_id"],
            unique=True,
            postgresql_where=_pending_only(),
        )
        op.create_index(
            f"ix_{parent}_join_requests_{parent}",
            f"{parent}_join_requests",
            [fk, "status"],
        )

    # --- notifications ---
    op.create_table(
        "notifications",
        _id(),
        _fk("recipient_id", "users.id"),
        _fk("sender_id", "users.id", nullable=True, ondelete="SET NULL"),
        sa.Column("type", sa.String(40), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.String(500), nullable=False),
        sa.Column("related_type", sa.String(20)),
        sa.Column("related_id", sa.String(36)),
        sa.Column("status", sa.String(20), nullable=False, server_default="unread"),
        sa.Column("priority", sa.String(10), server_default="medium"),
        sa.Column("read_at", sa.DateTime(timezone=True)),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        _ts("created_at"),
    )
    op.create_index(
        "ix_notifications_recipient_status", "notifications", ["recipient_id", "status"]
    )
    op.create_index(
        "ix_notifications_recipient_created", "notifications", ["recipient_id", "created_at"]
    )
    op.create_index("ix_notifications_related", "notifications", ["related_type", "related_id"])
    op.create_index("ix_notifications_expires", "notifications", ["expires_at"])

    # --- rate_limit_events ---
    op.create_table(
        "rate_limit_events",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("actor_id", sa.String(64), nullable=False),
        _ts("timestamp", nullable=False),
    )
    op.create_index(
        "ix_rate_limit_actor_ts", "rate_limit_events",
        ["actor_id", sa.text("timestamp DESC")],
    )


def downgrade() -> None:
    op.drop_table("rate_limit_events")
    op.drop_table("notifications")
    for parent in ("team", "project"):
        op.drop_table(f"{parent}_join_requests")
        op.drop_table(f"{parent}_members")
        op.drop_table(f"{parent}_skills")
    op.drop_table("event_participants")
    op.drop_table("teams")
    op.drop_table("projects")
    op.drop_table("events")
    op.drop_table("comment_edits")
    op.drop_table("comment_votes")
    op.drop_table("comments")
    op.drop_table("post_votes")
    op.drop_table("post_tags")
    op.drop_table("posts")
    op.drop_table("users")
