"""
tests/test_rate_limit.py — Mutation Rate Limiting Tests
========================================================
Mutating endpoints are limited per authenticated user (100 per 15 minutes
by default) and answer 429 with a ``Retry-After`` header once exceeded.
"""

from __future__ import annotations

import pytest
from sqlalchemy.orm import Session

from collegeconnect.api.rate_limit import MutationRateLimiter, get_rate_limiter
from collegeconnect.database.models import RateLimitEvent


# ---------------------------------------------------------------------------
# Unit tests for the MutationRateLimiter core (DB-backed)
# ---------------------------------------------------------------------------
class TestMutationRateLimiter:
    """Test the sliding-window rate limiter in isolation (DB-backed)."""

    @pytest.fixture(autouse=True)
    def _limiter(self, db_engine):
        self.limiter = MutationRateLimiter(max_requests=5, window_seconds=60, engine=db_engine)
        self.engine = db_engine

    def test_allows_requests_within_limit(self):
        for _ in range(5):
            allowed, _ = self.limiter.check("user1")
            assert allowed
            self.limiter.record("user1")

    def test_blocks_after_limit_exceeded(self):
        limiter = MutationRateLimiter(max_requests=3, window_seconds=60, engine=self.engine)
        for _ in range(3):
            limiter.record("user1")

        allowed, info = limiter.check("user1")
        assert not allowed
        assert info["remaining"] == 0
        assert 0 < info["reset"] <= 61

    def test_separate_users_have_separate_limits(self):
        limiter = MutationRateLimiter(max_requests=2, window_seconds=60, engine=self.engine)
        limiter.record("user1")
        limiter.record("user1")

        assert not limiter.check("user1")[0]
        assert limiter.check("user2")[0]

    def test_remaining_count_decreases(self):
        _, info = self.limiter.check("user1")
        assert info["remaining"] == 5

        assert self.limiter.record("user1")["remaining"] == 4
        _, info = self.limiter.check("user1")
        assert info["remaining"] == 4

    def test_old_events_fall_out_of_the_window(self):
        limiter = MutationRateLimiter(max_requests=1, window_seconds=0, engine=self.engine)
        limiter.record("user1")
        allowed, _ = limiter.check("user1")
        assert allowed
        with Session(self.engine) as session:
            assert session.query(RateLimitEvent).count() == 0

    def test_reset_clears_specific_user(self):
        limiter = MutationRateLimiter(max_requests=2, window_seconds=60, engine=self.engine)
        limiter.record("user1")
        limiter.record("user1")
        limiter.record("user2")

        limiter.reset("user1")

        assert limiter.check("user1")[0]
        assert limiter.check("user2")[1]["remaining"] == 1

    def test_reset_all(self):
        self.limiter.record("user1")
        self.limiter.record("user2")
        self.limiter.reset()
        with Session(self.engine) as session:
            assert session.query(RateLimitEvent).count() == 0


# ---------------------------------------------------------------------------
# Integration tests with FastAPI TestClient
# ---------------------------------------------------------------------------
class TestRateLimitDependency:
    """Test the rate limiter dependency end-to-end via TestClient."""

    @pytest.fixture
    def limited(self, client, db_engine):
        from collegeconnect.api.main import app

        limiter = MutationRateLimiter(max_requests=3, window_seconds=60, engine=db_engine)
        app.dependency_overrides[get_rate_limiter] = lambda: limiter
        return client, limiter

    @pytest.fixture
    def voter(self, make_user):
        return make_user("Voter")

    @pytest.fixture
    def post_id(self, make_user, make_post):
        return make_post(make_user("Author"))

    def test_reads_are_not_limited(self, limited, voter, post_id):
        from conftest import auth

        test_client, limiter = limited
        for _ in range(3):
            limiter.record(voter.id)
        for _ in range(5):
            resp = test_client.get("/api/notifications/count", headers=auth(voter))
            assert resp.status_code == 200

    def test_returns_429_after_limit(self, limited, voter, post_id):
        from conftest import auth

        test_client, limiter = limited
        for _ in range(3):
            limiter.record(voter.id)

        resp = test_client.post(f"/api/posts/{post_id}/upvote", headers=auth(voter))
        assert resp.status_code == 429
        assert "Retry-After" in resp.headers
        body = resp.json()
        assert body["success"] is False
        assert body["message"] == "Too many requests from this user, please try again later."

    def test_each_mutation_is_counted(self, limited, voter, post_id):
        from conftest import auth

        test_client, limiter = limited
        assert test_client.post(f"/api/posts/{post_id}/upvote", headers=auth(voter)).status_code == 200
        assert limiter.check(voter.id)[1]["remaining"] == 2

    def test_users_have_separate_limits(self, limited, voter, post_id, make_user):
        from conftest import auth

        test_client, limiter = limited
        for _ in range(3):
            limiter.record(voter.id)

        other = make_user()
        assert test_client.post(f"/api/posts/{post_id}/upvote", headers=auth(voter)).status_code == 429
        assert test_client.post(f"/api/posts/{post_id}/upvote", headers=auth(other)).status_code == 200

    def test_unauthenticated_mutation_gets_401(self, limited, post_id):
        test_client, _ = limited
        resp = test_client.post(f"/api/posts/{post_id}/upvote")
        assert resp.status_code == 401
