"""
tests/test_posts_comments.py — Post lifecycle, comments, replies & edit history
================================================================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from collegeconnect.database.models import Notification, Post
from collegeconnect.errors import Forbidden, NotFound, ValidationError
from collegeconnect.services import comment_service, post_service


@pytest.fixture
def author(make_user):
    return make_user("Ravi")


@pytest.fixture
def post(db_engine, author):
    return post_service.create_post(
        db_engine,
        author,
        title="Best resources for system design?",
        content="Looking for books and courses before placement season.",
        category="placement-prep",
        tags=["Interviews", " system-design ", "interviews"],
    )


class TestPosts:
    def test_create_normalizes_tags(self, post, author):
        assert post["tags"] == ["interviews", "system-design"]
        assert post["author"]["id"] == author.id
        assert post["status"] == "published"
        assert post["voteCount"] == 0
        assert post["commentsCount"] == 0

    def test_inactive_author_cannot_post(self, db_engine, make_user):
        ghost = make_user(is_active=False)
        with pytest.raises(NotFound, match="User not found"):
            post_service.create_post(
                db_engine, ghost, title="Hello there", content="Is anyone here?",
                category="general",
            )

    def test_each_read_counts_a_view(self, db_engine, post):
        post_service.get_post(db_engine, post["id"])
        second = post_service.get_post(db_engine, post["id"])
        assert second["views"] == 2

    def test_missing_post(self, db_engine):
        with pytest.raises(NotFound):
            post_service.get_post(db_engine, "missing")

    def test_update_by_author(self, db_engine, post, author):
        updated = post_service.update_post(
            db_engine, author, post["id"], title="System design resources", tags=["design"]
        )
        assert updated["title"] == "System design resources"
        assert updated["tags"] == ["design"]

    def test_update_by_stranger(self, db_engine, post, make_user):
        with pytest.raises(Forbidden):
            post_service.update_post(db_engine, make_user(), post["id"], title="Hijacked title")

    def test_admin_may_delete(self, db_engine, post, make_user):
        post_service.delete_post(db_engine, make_user(role="admin"), post["id"])
        # Soft-deleted posts stay readable by id.
        assert post_service.get_post(db_engine, post["id"])["status"] == "deleted"

    def test_deleted_post_cannot_be_updated(self, db_engine, post, author):
        post_service.delete_post(db_engine, author, post["id"])
        with pytest.raises(NotFound):
            post_service.update_post(db_engine, author, post["id"], title="Back again")


class TestComments:
    def test_comment_updates_count_and_notifies_author(self, db_engine, post, author, make_user):
        commenter = make_user()
        comment = comment_service.create_comment(
            db_engine, commenter, post["id"], "Designing Data-Intensive Applications."
        )
        assert comment["post"] == post["id"]
        assert comment["parentComment"] is None

        fetched = post_service.get_post(db_engine, post["id"])
        assert fetched["commentsCount"] == 1
        assert [c["id"] for c in fetched["comments"]] == [comment["id"]]

        with Session(db_engine) as session:
            inbox = session.scalars(
                select(Notification).where(Notification.recipient_id == author.id)
            ).all()
        assert [n.type for n in inbox] == ["post_comment"]
        assert inbox[0].related_id == post["id"]

    def test_own_comment_does_not_notify(self, db_engine, post, author):
        comment_service.create_comment(db_engine, author, post["id"], "Bumping this.")
        with Session(db_engine) as session:
            assert session.scalars(select(Notification)).all() == []

    def test_reply_counts_on_parent_not_post(self, db_engine, post, author, make_user):
        parent = comment_service.create_comment(db_engine, author, post["id"], "Top level")
        reply = comment_service.create_comment(
            db_engine, make_user(), post["id"], "A reply", parent["id"]
        )
        assert reply["parentComment"] == parent["id"]

        fetched = post_service.get_post(db_engine, post["id"])
        assert fetched["commentsCount"] == 1
        assert fetched["comments"][0]["repliesCount"] == 1

    def test_replies_are_one_level_deep(self, db_engine, post, author):
        parent = comment_service.create_comment(db_engine, author, post["id"], "Top level")
        reply = comment_service.create_comment(
            db_engine, author, post["id"], "Reply", parent["id"]
        )
        with pytest.raises(ValidationError) as exc:
            comment_service.create_comment(
                db_engine, author, post["id"], "Reply to reply", reply["id"]
            )
        assert exc.value.errors[0].field == "parentComment"

    def test_parent_must_belong_to_post(self, db_engine, post, author, make_post):
        other_post = make_post(author, title="Unrelated thread")
        parent = comment_service.create_comment(db_engine, author, other_post, "Elsewhere")
        with pytest.raises(NotFound, match="Parent comment not found"):
            comment_service.create_comment(
                db_engine, author, post["id"], "Wrong thread", parent["id"]
            )

    def test_cannot_comment_on_deleted_post(self, db_engine, post, author):
        post_service.delete_post(db_engine, author, post["id"])
        with pytest.raises(NotFound):
            comment_service.create_comment(db_engine, author, post["id"], "Too late")

    def test_edit_keeps_history(self, db_engine, post, author):
        comment = comment_service.create_comment(db_engine, author, post["id"], "v1")
        comment_service.update_comment(db_engine, author, comment["id"], "v2")
        edited = comment_service.update_comment(db_engine, author, comment["id"], "v3")

        assert edited["content"] == "v3"
        assert edited["isEdited"] is True
        assert edited["lastEditedAt"] is not None
        history = comment_service.comment_history(db_engine, comment["id"])
        assert [h["content"] for h in history] == ["v1", "v2"]

    def test_unchanged_edit_is_not_recorded(self, db_engine, post, author):
        comment = comment_service.create_comment(db_engine, author, post["id"], "same")
        unchanged = comment_service.update_comment(db_engine, author, comment["id"], "same")
        assert unchanged["isEdited"] is False
        assert comment_service.comment_history(db_engine, comment["id"]) == []

    def test_stranger_cannot_edit(self, db_engine, post, author, make_user):
        comment = comment_service.create_comment(db_engine, author, post["id"], "Mine")
        with pytest.raises(Forbidden):
            comment_service.update_comment(db_engine, make_user(), comment["id"], "Yours")

    def test_soft_delete_hides_comment_from_post(self, db_engine, post, author):
        keep = comment_service.create_comment(db_engine, author, post["id"], "Keep")
        drop = comment_service.create_comment(db_engine, author, post["id"], "Drop")
        comment_service.delete_comment(db_engine, author, drop["id"])

        fetched = post_service.get_post(db_engine, post["id"])
        assert [c["id"] for c in fetched["comments"]] == [keep["id"]]
        assert fetched["commentsCount"] == 2
        with Session(db_engine) as session:
            assert session.get(Post, post["id"]).comments_count == 2
