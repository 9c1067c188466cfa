"""
collegeconnect.services.notification_service — Stored notifications
====================================================================

Notifications are rows only; nothing here delivers them.  Producers call
:func:`create_notification` with their own session so the notification
commits (or rolls back) together with the change that caused it.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import Engine, func, select, update
from sqlalchemy.orm import Session

from collegeconnect.constants import NOTIFICATION_TTL_DAYS, utcnow
from collegeconnect.database.engine import get_session
from collegeconnect.database.models import (
    Notification,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
)
from collegeconnect.engine.related import RelatedEntity
from collegeconnect.errors import NotFound
from collegeconnect.services.access import Actor, ensure_owner
from collegeconnect.services.serializers import serialize_notification

logger = logging.getLogger(__name__)


def create_notification(
    session: Session,
    *,
    recipient_id: str,
    type: NotificationType,
    title: str,
    message: str,
    sender_id: str | None = None,
    related: RelatedEntity | None = None,
    priority: NotificationPriority = NotificationPriority.MEDIUM,
    expires_at: datetime | None = None,
) -> Notification:
    """Add a notification to *session*.  ``expires_at`` defaults to 30 days out."""
    related_type, related_id = related.to_columns() if related else (None, None)
    now = utcnow()
    notification = Notification(
        recipient_id=recipient_id,
        sender_id=sender_id,
        type=NotificationType(type).value,
        title=title[:200],
        message=message[:500],
        related_type=related_type,
        related_id=related_id,
        priority=NotificationPriority(priority).value,
        created_at=now,
        expires_at=expires_at or now + timedelta(days=NOTIFICATION_TTL_DAYS),
    )
    session.add(notification)
    logger.debug("Queued %s notification for %s", notification.type, recipient_id)
    return notification


def unread_count(engine: Engine, user_id: str) -> int:
    """Unread, unexpired notifications for *user_id*."""
    with Session(engine) as session:
        return session.scalar(
            select(func.count(Notification.id)).where(
                Notification.recipient_id == user_id,
                Notification.status == NotificationStatus.UNREAD.value,
                Notification.expires_at > utcnow(),
            )
        ) or 0


def mark_read(engine: Engine, actor: Actor, notification_ids: list[str] | None = None) -> int:
    """Mark the actor's unread notifications read (all, or only *notification_ids*)."""
    with get_session(engine) as session:
        stmt = (
            update(Notification)
            .where(
                Notification.recipient_id == actor.id,
                Notification.status == NotificationStatus.UNREAD.value,
            )
            .values(status=NotificationStatus.READ.value, read_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if notification_ids:
            stmt = stmt.where(Notification.id.in_(notification_ids))
        updated = session.execute(stmt).rowcount
    logger.info("Marked %d notification(s) read for %s", updated, actor.id)
    return updated


def archive(engine: Engine, actor: Actor, notification_id: str) -> dict:
    with get_session(engine) as session:
        notification = session.get(Notification, notification_id)
        if notification is None:
            raise NotFound("Notification not found")
        ensure_owner(actor, notification.recipient_id, "archive this notification")
        notification.status = NotificationStatus.ARCHIVED.value
        session.flush()
        logger.info("Archived notification %s", notification_id)
        return serialize_notification(notification)
