"""
tests/test_listing.py — Pagination, filters and sort orders
============================================================
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import update
from sqlalchemy.orm import Session

from collegeconnect.constants import utcnow
from collegeconnect.database.models import Post
from collegeconnect.services import engagement, listing, membership, post_service, project_service
from collegeconnect.services.listing import Page, Pagination


class TestPagination:
    @pytest.mark.parametrize(
        ("page", "limit", "expected"),
        [
            (None, None, (1, 20)),
            ("3", "5", (3, 5)),
            ("0", "-4", (1, 20)),
            ("abc", "1e3", (1, 20)),
            ("2", "500", (2, 100)),
        ],
    )
    def test_from_raw_is_lenient(self, page, limit, expected):
        p = Pagination.from_raw(page, limit)
        assert (p.page, p.limit) == expected

    def test_offset(self):
        assert Pagination(page=3, limit=10).offset == 20

    def test_meta(self):
        page = Page(items=[{}, {}], total=25, page=2, limit=10)
        assert page.meta() == {"count": 2, "total": 25, "page": 2, "pages": 3}

    def test_empty_meta(self):
        assert Page([], 0, 1, 20).meta() == {"count": 0, "total": 0, "page": 1, "pages": 0}

    def test_split_csv(self):
        assert listing.split_csv("a, b,,c ") == ["a", "b", "c"]
        assert listing.split_csv(["X", " y "], lower=True) == ["x", "y"]
        assert listing.split_csv(None) == []


def _age(engine, post_id: str, days: float) -> None:
    with Session(engine) as session:
        session.execute(
            update(Post)
            .where(Post.id == post_id)
            .values(created_at=utcnow() - timedelta(days=days))
        )
        session.commit()


class TestPostListing:
    @pytest.fixture
    def author(self, make_user):
        return make_user()

    def test_pages_cover_every_post_once(self, db_engine, author, make_post):
        ids = {make_post(author, title=f"Thread number {i}") for i in range(7)}
        seen = []
        for number in (1, 2, 3):
            page = listing.list_posts(db_engine, Pagination(page=number, limit=3))
            assert page.total == 7
            assert page.pages == 3
            seen.extend(item["id"] for item in page.items)
        assert sorted(seen) == sorted(ids)

    def test_page_past_the_end_is_empty(self, db_engine, author, make_post):
        make_post(author)
        page = listing.list_posts(db_engine, Pagination(page=5, limit=10))
        assert page.items == []
        assert page.total == 1

    def test_huge_page_number(self, db_engine, author, make_post):
        make_post(author)
        page = listing.list_posts(db_engine, Pagination.from_raw("99999999999999999999", "10"))
        assert page.items == []
        assert (page.total, page.pages) == (1, 1)
        trending = listing.list_posts(
            db_engine, Pagination.from_raw("99999999999999999999", "10"), sort_by="trending"
        )
        assert trending.items == []

    def test_recent_is_newest_first(self, db_engine, author, make_post):
        old, new = make_post(author, title="Older"), make_post(author, title="Newer")
        _age(db_engine, old, 3)
        page = listing.list_posts(db_engine, Pagination())
        assert [p["id"] for p in page.items] == [new, old]

    def test_deleted_and_draft_posts_are_hidden(self, db_engine, author, make_post):
        live = make_post(author)
        make_post(author, status="draft")
        gone = make_post(author)
        post_service.delete_post(db_engine, author, gone)
        page = listing.list_posts(db_engine, Pagination())
        assert [p["id"] for p in page.items] == [live]

    def test_filters(self, db_engine, author, make_user):
        other = make_user()
        tech = post_service.create_post(
            db_engine, author, title="Rust vs Go", content="Which should I learn first?",
            category="tech", tags=["rust", "go"],
        )
        post_service.create_post(
            db_engine, other, title="Logo critique", content="Feedback on my club logo please.",
            category="design", tags=["branding"],
        )

        by_category = listing.list_posts(db_engine, Pagination(), category="tech")
        by_tag = listing.list_posts(db_engine, Pagination(), tags="GO, python")
        by_author = listing.list_posts(db_engine, Pagination(), author=author.id)
        by_search = listing.list_posts(db_engine, Pagination(), search="rust learn")
        no_match = listing.list_posts(db_engine, Pagination(), search="rust logo")

        for page in (by_category, by_tag, by_author, by_search):
            assert [p["id"] for p in page.items] == [tech["id"]]
        assert no_match.total == 0

    def test_popular_orders_by_net_votes(self, db_engine, author, make_post, make_user):
        quiet, loved, hated = make_post(author), make_post(author), make_post(author)
        voters = [make_user() for _ in range(3)]
        for v in voters:
            engagement.upvote(db_engine, engagement.POST, loved, v.id)
        engagement.downvote(db_engine, engagement.POST, hated, voters[0].id)

        page = listing.list_posts(db_engine, Pagination(), sort_by="popular")
        assert [p["id"] for p in page.items] == [loved, quiet, hated]

    def test_trending_rewards_fresh_activity(self, db_engine, author, make_post, make_user):
        stale = make_post(author, title="Old but voted")
        fresh = make_post(author, title="Brand new")
        _age(db_engine, stale, 30)
        engagement.upvote(db_engine, engagement.POST, stale, make_user().id)

        page = listing.list_posts(db_engine, Pagination(), sort_by="trending")
        assert [p["id"] for p in page.items] == [fresh, stale]
        assert page.items[0]["popularityScore"] == pytest.approx(7.0, abs=0.01)
        assert page.items[1]["popularityScore"] == pytest.approx(1.0)

    def test_trending_pages(self, db_engine, author, make_post):
        for i in range(5):
            make_post(author, title=f"Trend {i}")
        page = listing.list_posts(db_engine, Pagination(page=2, limit=2), sort_by="trending")
        assert page.total == 5
        assert page.count == 2


class TestOtherListings:
    def test_comments_and_replies(self, db_engine, make_user, make_post):
        from collegeconnect.services import comment_service

        author = make_user()
        post_id = make_post(author)
        top = comment_service.create_comment(db_engine, author, post_id, "Top")
        comment_service.create_comment(db_engine, author, post_id, "Reply", top["id"])
        hidden = comment_service.create_comment(db_engine, author, post_id, "Hidden")
        comment_service.delete_comment(db_engine, author, hidden["id"])

        comments = listing.list_post_comments(db_engine, post_id, Pagination())
        replies = listing.list_replies(db_engine, top["id"], Pagination())
        assert [c["id"] for c in comments.items] == [top["id"]]
        assert [r["content"] for r in replies.items] == ["Reply"]

    def test_users_by_skill_and_college(self, db_engine, make_user):
        py = make_user("Pia", skills=["Python", "SQL"], college="North Campus")
        make_user("Jon", skills=["Java"], college="South Campus")
        make_user("Quit", skills=["Python"], is_active=False)

        found = listing.search_users_by_skills(db_engine, "python", 10)
        assert [u["id"] for u in found] == [py.id]
        assert found[0]["skills"] == ["Python", "SQL"]

        college = listing.users_by_college(db_engine, "north", Pagination())
        assert [u["id"] for u in college.items] == [py.id]

    def test_skill_match_stays_within_one_skill(self, db_engine, make_user):
        make_user("Pia", skills=["Python", "SQL"])
        assert listing.search_users_by_skills(db_engine, ['n", "S'], 10) == []
        assert listing.search_users_by_skills(db_engine, ["\"Python\""], 10) == []
        assert listing.list_users(db_engine, Pagination(), skills=['n", "S']).total == 0

    def test_non_ascii_skill(self, db_engine, make_user):
        chef = make_user("Chef", skills=["Café management", "Crème brûlée"])
        found = listing.search_users_by_skills(db_engine, "café", 10)
        assert [u["id"] for u in found] == [chef.id]
        listed = listing.list_users(db_engine, Pagination(), skills="brûlée")
        assert [u["id"] for u in listed.items] == [chef.id]

    def test_blank_skill_search(self, db_engine):
        assert listing.search_users_by_skills(db_engine, " , ", 10) == []

    def test_projects_default_to_open_statuses(self, db_engine, make_user):
        owner = make_user()
        open_project = project_service.create_project(
            db_engine, owner, title="Open one", description="Still recruiting people.",
            type="ai-ml", domain="healthcare", team_size_required=3,
            required_skills=[{"skill": "PyTorch"}],
        )
        done = project_service.create_project(
            db_engine, owner, title="Done one", description="Shipped last semester.",
            type="ai-ml", domain="healthcare", team_size_required=3,
        )
        project_service.update_project(db_engine, owner, done["id"], status="completed")

        default = listing.list_projects(db_engine, Pagination())
        completed = listing.list_projects(db_engine, Pagination(), status="completed")
        by_skill = listing.list_projects(db_engine, Pagination(), skill="torch")

        assert [p["id"] for p in default.items] == [open_project["id"]]
        assert [p["id"] for p in completed.items] == [done["id"]]
        assert [p["id"] for p in by_skill.items] == [open_project["id"]]

    def test_teams_by_event(self, db_engine, make_user, make_event):
        from collegeconnect.services import team_service

        leader = make_user()
        first, second = make_event(leader), make_event(leader, name="Second hackathon")
        team = team_service.create_team(
            db_engine, leader, name="Alpha", description="Team for the first event.",
            event_id=first, team_size_required=3,
        )
        team_service.create_team(
            db_engine, leader, name="Beta", description="Team for the second event.",
            event_id=second, team_size_required=3,
        )
        page = listing.list_teams(db_engine, Pagination(), event=first)
        assert [t["id"] for t in page.items] == [team["id"]]

    def test_member_counts_in_listing(self, db_engine, make_user):
        owner = make_user()
        project = project_service.create_project(
            db_engine, owner, title="Counting", description="Roster size in listings.",
            type="other", domain="other", team_size_required=4,
        )
        membership.add_member(db_engine, membership.PROJECT, project["id"], make_user().id)
        listed = listing.list_projects(db_engine, Pagination()).items[0]
        assert listed["teamSize"] == {"current": 2, "required": 4}
        assert listed["availableSpots"] == 2
