"""
collegeconnect.api.schemas — Shared request-body building blocks
=================================================================

Request bodies use camelCase on the wire (``postType``,
``parentComment``) and snake_case in Python.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from collegeconnect.database.models import SkillLevel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def changes(self) -> dict:
        """Fields the client actually sent, snake_case."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class SkillIn(CamelModel):
    skill: str = Field(min_length=1, max_length=100)
    level: SkillLevel = SkillLevel.INTERMEDIATE
    is_required: bool = True


class JoinRequestIn(CamelModel):
    message: str | None = Field(default=None, max_length=500)
    skills: list[str] = Field(default_factory=list)
    experience: str | None = Field(default=None, max_length=1000)


class JoinResponseIn(CamelModel):
    status: str
    response_message: str | None = Field(default=None, max_length=500)


class MemberIn(CamelModel):
    user: str = Field(min_length=1)
    role: str = Field(default="Member", min_length=1, max_length=100)
    skills: list[str] = Field(default_factory=list)
