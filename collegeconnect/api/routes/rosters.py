"""
collegeconnect.api.routes.rosters — Join-request & member endpoints
====================================================================

Projects and teams share one membership workflow, so the endpoints are
built once per :class:`~collegeconnect.services.membership.RosterKind`
and mounted under each parent router.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from collegeconnect.api.deps import EngineDep
from collegeconnect.api.rate_limit import rate_limited_actor
from collegeconnect.api.responses import ok
from collegeconnect.api.schemas import JoinRequestIn, JoinResponseIn, MemberIn
from collegeconnect.services import membership
from collegeconnect.services.access import Actor


def roster_router(kind: membership.RosterKind) -> APIRouter:
    router = APIRouter()
    noun = kind.name

    @router.post("/{entity_id}/join-requests", status_code=status.HTTP_201_CREATED)
    def send_join_request(
        entity_id: str,
        body: JoinRequestIn,
        engine: EngineDep,
        actor: Actor = Depends(rate_limited_actor),
    ):
        request = membership.send_join_request(
            engine,
            kind,
            entity_id,
            actor.id,
            message=body.message,
            skills=body.skills,
            experience=body.experience,
        )
        return ok(request, "Join request sent successfully")

    @router.put("/{entity_id}/join-requests/{request_id}")
    def respond_to_join_request(
        entity_id: str,
        request_id: str,
        body: JoinResponseIn,
        engine: EngineDep,
        actor: Actor = Depends(rate_limited_actor),
    ):
        request = membership.respond_to_join_request(
            engine,
            kind,
            entity_id,
            request_id,
            body.status,
            body.response_message,
            actor=actor,
        )
        return ok(request, f"Join request {request['status']} successfully")

    @router.post("/{entity_id}/members", status_code=status.HTTP_201_CREATED)
    def add_member(
        entity_id: str,
        body: MemberIn,
        engine: EngineDep,
        actor: Actor = Depends(rate_limited_actor),
    ):
        member = membership.add_member(
            engine, kind, entity_id, body.user, body.role, body.skills, actor=actor
        )
        return ok(member, f"Member added to {noun} successfully")

    @router.delete("/{entity_id}/members/{user_id}")
    def remove_member(
        entity_id: str,
        user_id: str,
        engine: EngineDep,
        actor: Actor = Depends(rate_limited_actor),
    ):
        roster = membership.remove_member(engine, kind, entity_id, user_id, actor=actor)
        return ok(roster, f"Member removed from {noun} successfully")

    return router
