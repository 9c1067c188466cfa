"""
tests/test_engagement.py — Post & comment voting
=================================================
Each user holds at most one vote per post/comment; switching sides moves
the vote rather than adding a second one.
"""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from collegeconnect.database.models import PostVote, VoteDirection
from collegeconnect.errors import AlreadyVoted, NotFound
from collegeconnect.services import comment_service, engagement, post_service


@pytest.fixture
def author(make_user):
    return make_user("Asha")


@pytest.fixture
def post_id(make_post, author):
    return make_post(author)


def _vote_rows(engine, post_id: str) -> int:
    with Session(engine) as session:
        return session.scalar(
            select(func.count(PostVote.id)).where(PostVote.post_id == post_id)
        )


class TestPostVotes:
    def test_upvote_counts(self, db_engine, post_id, make_user):
        voter = make_user()
        votes = engagement.upvote(db_engine, engagement.POST, post_id, voter.id)
        assert votes.to_dict() == {"upvotes": 1, "downvotes": 0, "voteCount": 1}

    def test_repeat_upvote_is_rejected(self, db_engine, post_id, make_user):
        voter = make_user()
        engagement.upvote(db_engine, engagement.POST, post_id, voter.id)
        with pytest.raises(AlreadyVoted, match="already upvoted this post"):
            engagement.upvote(db_engine, engagement.POST, post_id, voter.id)
        assert _vote_rows(db_engine, post_id) == 1

    def test_downvote_replaces_upvote(self, db_engine, post_id, make_user):
        voter = make_user()
        engagement.upvote(db_engine, engagement.POST, post_id, voter.id)
        votes = engagement.downvote(db_engine, engagement.POST, post_id, voter.id)

        assert (votes.upvotes, votes.downvotes, votes.vote_count) == (0, 1, -1)
        assert _vote_rows(db_engine, post_id) == 1
        with Session(db_engine) as session:
            assert engagement.user_vote(
                session, engagement.POST, post_id, voter.id
            ) is VoteDirection.DOWN

    def test_upvote_replaces_downvote(self, db_engine, post_id, make_user):
        voter = make_user()
        engagement.downvote(db_engine, engagement.POST, post_id, voter.id)
        votes = engagement.upvote(db_engine, engagement.POST, post_id, voter.id)
        assert (votes.upvotes, votes.downvotes) == (1, 0)

    def test_several_voters(self, db_engine, post_id, make_user):
        u1, u2, u3 = make_user(), make_user(), make_user()
        engagement.upvote(db_engine, engagement.POST, post_id, u1.id)
        engagement.upvote(db_engine, engagement.POST, post_id, u2.id)
        votes = engagement.downvote(db_engine, engagement.POST, post_id, u3.id)
        assert votes.to_dict() == {"upvotes": 2, "downvotes": 1, "voteCount": 1}

    def test_remove_vote_is_idempotent(self, db_engine, post_id, make_user):
        voter = make_user()
        engagement.upvote(db_engine, engagement.POST, post_id, voter.id)

        first = engagement.remove_vote(db_engine, engagement.POST, post_id, voter.id)
        second = engagement.remove_vote(db_engine, engagement.POST, post_id, voter.id)

        assert first == second
        assert first.vote_count == 0
        assert _vote_rows(db_engine, post_id) == 0

    def test_remove_then_vote_again(self, db_engine, post_id, make_user):
        voter = make_user()
        engagement.upvote(db_engine, engagement.POST, post_id, voter.id)
        engagement.remove_vote(db_engine, engagement.POST, post_id, voter.id)
        votes = engagement.upvote(db_engine, engagement.POST, post_id, voter.id)
        assert votes.upvotes == 1

    def test_unknown_voter(self, db_engine, post_id):
        with pytest.raises(NotFound, match="User not found"):
            engagement.upvote(db_engine, engagement.POST, post_id, "no-such-user")
        assert _vote_rows(db_engine, post_id) == 0

    def test_unknown_post(self, db_engine, make_user):
        with pytest.raises(NotFound, match="Post not found"):
            engagement.upvote(db_engine, engagement.POST, "missing", make_user().id)

    def test_deleted_post_cannot_be_voted(self, db_engine, post_id, author, make_user):
        post_service.delete_post(db_engine, author, post_id)
        with pytest.raises(NotFound):
            engagement.downvote(db_engine, engagement.POST, post_id, make_user().id)

    def test_votes_show_up_on_post(self, db_engine, post_id, make_user):
        engagement.upvote(db_engine, engagement.POST, post_id, make_user().id)
        engagement.upvote(db_engine, engagement.POST, post_id, make_user().id)
        post = post_service.get_post(db_engine, post_id)
        assert post["voteCount"] == 2
        assert post["upvotes"] == 2


class TestCommentVotes:
    def test_comment_vote_cycle(self, db_engine, post_id, author, make_user):
        comment = comment_service.create_comment(
            db_engine, author, post_id, "Count me in for Thursday."
        )
        voter = make_user()

        up = engagement.upvote(db_engine, engagement.COMMENT, comment["id"], voter.id)
        down = engagement.downvote(db_engine, engagement.COMMENT, comment["id"], voter.id)
        cleared = engagement.remove_vote(db_engine, engagement.COMMENT, comment["id"], voter.id)

        assert up.vote_count == 1
        assert down.vote_count == -1
        assert cleared.vote_count == 0

    def test_repeat_comment_downvote(self, db_engine, post_id, author, make_user):
        comment = comment_service.create_comment(db_engine, author, post_id, "Same here.")
        voter = make_user()
        engagement.downvote(db_engine, engagement.COMMENT, comment["id"], voter.id)
        with pytest.raises(AlreadyVoted, match="already downvoted this comment"):
            engagement.downvote(db_engine, engagement.COMMENT, comment["id"], voter.id)

    def test_deleted_comment(self, db_engine, post_id, author, make_user):
        comment = comment_service.create_comment(db_engine, author, post_id, "Oops.")
        comment_service.delete_comment(db_engine, author, comment["id"])
        with pytest.raises(NotFound, match="Comment not found"):
            engagement.upvote(db_engine, engagement.COMMENT, comment["id"], make_user().id)

    def test_tallies_for_batches(self, db_engine, post_id, author, make_user):
        c1 = comment_service.create_comment(db_engine, author, post_id, "First")
        c2 = comment_service.create_comment(db_engine, author, post_id, "Second")
        c3 = comment_service.create_comment(db_engine, author, post_id, "Third")
        voter = make_user()
        engagement.upvote(db_engine, engagement.COMMENT, c1["id"], voter.id)
        engagement.downvote(db_engine, engagement.COMMENT, c2["id"], voter.id)

        with Session(db_engine) as session:
            tallies = engagement.tallies_for(
                session, engagement.COMMENT, [c1["id"], c2["id"], c3["id"]]
            )
        assert tallies[c1["id"]].vote_count == 1
        assert tallies[c2["id"]].vote_count == -1
        assert c3["id"] not in tallies


class TestConcurrentVotes:
    """A vote that passes the pre-check but collides on insert."""

    def test_duplicate_insert_is_already_voted(self, db_engine, post_id, make_user, monkeypatch):
        voter = make_user()
        engagement.upvote(db_engine, engagement.POST, post_id, voter.id)
        # The pre-check misses the committed vote, as under a concurrent request.
        monkeypatch.setattr(engagement, "user_vote", lambda *args: None)

        with pytest.raises(AlreadyVoted, match="already upvoted this post"):
            engagement.upvote(db_engine, engagement.POST, post_id, voter.id)

        assert _vote_rows(db_engine, post_id) == 1
        with Session(db_engine) as session:
            assert engagement.tally(session, engagement.POST, post_id).upvotes == 1

    def test_duplicate_comment_insert(self, db_engine, post_id, author, make_user, monkeypatch):
        comment = comment_service.create_comment(db_engine, author, post_id, "Racing")
        voter = make_user()
        engagement.downvote(db_engine, engagement.COMMENT, comment["id"], voter.id)
        monkeypatch.setattr(engagement, "user_vote", lambda *args: None)

        with pytest.raises(AlreadyVoted, match="already downvoted this comment"):
            engagement.downvote(db_engine, engagement.COMMENT, comment["id"], voter.id)

    def test_other_integrity_errors_propagate(self, db_engine, post_id, make_user, monkeypatch):
        voter = make_user()
        engagement.upvote(db_engine, engagement.POST, post_id, voter.id)
        monkeypatch.setattr(engagement, "user_vote", lambda *args: None)
        monkeypatch.setattr(engagement, "is_unique_violation", lambda *args: False)

        with pytest.raises(IntegrityError):
            engagement.upvote(db_engine, engagement.POST, post_id, voter.id)
        assert _vote_rows(db_engine, post_id) == 1
