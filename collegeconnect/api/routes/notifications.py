"""
collegeconnect.api.routes.notifications — The caller's inbox
=============================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from collegeconnect.api.deps import EngineDep, PaginationDep, get_current_actor
from collegeconnect.api.rate_limit import rate_limited_actor
from collegeconnect.api.responses import ok, paged
from collegeconnect.api.schemas import CamelModel
from collegeconnect.services import listing, notification_service
from collegeconnect.services.access import Actor

router = APIRouter(prefix="/notifications", tags=["notifications"])


class MarkReadIn(CamelModel):
    notification_ids: list[str] | None = None


@router.get("")
def list_notifications(
    engine: EngineDep,
    pagination: PaginationDep,
    status: str = "unread",
    type: str | None = None,
    actor: Actor = Depends(get_current_actor),
):
    """``status=all`` lists read and archived notifications too."""
    return paged(listing.list_notifications(engine, actor.id, pagination, status=status, type=type))


@router.get("/count")
def unread_count(engine: EngineDep, actor: Actor = Depends(get_current_actor)):
    return ok({"unread": notification_service.unread_count(engine, actor.id)})


@router.put("/read")
def mark_read(
    engine: EngineDep,
    body: MarkReadIn | None = None,
    actor: Actor = Depends(rate_limited_actor),
):
    ids = body.notification_ids if body else None
    updated = notification_service.mark_read(engine, actor, ids)
    return ok({"updated": updated}, "Notifications marked as read")


@router.put("/{notification_id}/archive")
def archive(notification_id: str, engine: EngineDep, actor: Actor = Depends(rate_limited_actor)):
    notification = notification_service.archive(engine, actor, notification_id)
    return ok(notification, "Notification archived")
