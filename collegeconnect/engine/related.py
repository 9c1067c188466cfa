"""
collegeconnect.engine.related — Notification related-entity union
==================================================================

A notification may point at one post, comment, project, event, user,
team or badge, or at nothing in particular (``system``).  The variant and
its identifier travel together as a :class:`RelatedEntity`; the
``notifications`` table stores it as a ``related_type``/``related_id``
column pair.
"""

from __future__ import annotations

from dataclasses import dataclass

from collegeconnect.database.models import RelatedKind
from collegeconnect.errors import ValidationError


@dataclass(frozen=True, slots=True)
class RelatedEntity:
    kind: RelatedKind
    id: str | None = None

    def __post_init__(self) -> None:
        if self.kind is RelatedKind.SYSTEM:
            if self.id is not None:
                raise ValidationError.for_field(
                    "relatedEntity.id", "System notifications carry no entity id"
                )
        elif not self.id:
            raise ValidationError.for_field(
                "relatedEntity.id", f"A {self.kind.value} reference requires an id"
            )

    # -- constructors --------------------------------------------------------
    @classmethod
    def post(cls, post_id: str) -> RelatedEntity:
        return cls(RelatedKind.POST, post_id)

    @classmethod
    def comment(cls, comment_id: str) -> RelatedEntity:
        return cls(RelatedKind.COMMENT, comment_id)

    @classmethod
    def project(cls, project_id: str) -> RelatedEntity:
        return cls(RelatedKind.PROJECT, project_id)

    @classmethod
    def team(cls, team_id: str) -> RelatedEntity:
        return cls(RelatedKind.TEAM, team_id)

    @classmethod
    def event(cls, event_id: str) -> RelatedEntity:
        return cls(RelatedKind.EVENT, event_id)

    @classmethod
    def user(cls, user_id: str) -> RelatedEntity:
        return cls(RelatedKind.USER, user_id)

    @classmethod
    def system(cls) -> RelatedEntity:
        return cls(RelatedKind.SYSTEM)

    @classmethod
    def from_columns(cls, kind: str | None, entity_id: str | None) -> RelatedEntity | None:
        """Rebuild from the stored column pair; ``None`` when nothing is stored."""
        if kind is None:
            return None
        return cls(RelatedKind(kind), entity_id)

    @classmethod
    def from_dict(cls, raw: dict | None) -> RelatedEntity | None:
        if not raw:
            return None
        kind = raw.get("type")
        try:
            related_kind = RelatedKind(kind)
        except ValueError:
            raise ValidationError.for_field(
                "relatedEntity.type", f"Unknown related entity type: {kind!r}"
            ) from None
        return cls(related_kind, raw.get("id"))

    # -- persistence ---------------------------------------------------------
    def to_columns(self) -> tuple[str, str | None]:
        return self.kind.value, self.id

    def to_dict(self) -> dict[str, str | None]:
        return {"type": self.kind.value, "id": self.id}
