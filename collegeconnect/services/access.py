"""
collegeconnect.services.access — Actor identity & ownership checks
===================================================================

The API boundary turns a verified bearer token into an :class:`Actor`;
services only ever see this value object.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from collegeconnect.database.models import UserRole
from collegeconnect.errors import Forbidden

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Actor:
    """An already-authenticated caller."""

    id: str
    role: str = UserRole.STUDENT.value

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


def is_owner_or_admin(actor: Actor, owner_id: str) -> bool:
    return actor.is_admin or actor.id == owner_id


def ensure_owner(actor: Actor, owner_id: str, action: str) -> None:
    """Raise :class:`Forbidden` unless *actor* owns the resource or is admin."""
    if not is_owner_or_admin(actor, owner_id):
        logger.warning("Actor %s denied: %s (owner %s)", actor.id, action, owner_id)
        raise Forbidden(f"Not authorized to {action}")


def ensure_admin(actor: Actor, action: str) -> None:
    if not actor.is_admin:
        logger.warning("Actor %s denied admin action: %s", actor.id, action)
        raise Forbidden(f"Only admins may {action}")
