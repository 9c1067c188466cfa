"""
collegeconnect.api.responses — Response envelope helpers
=========================================================

Every response body has the shape::

    {"success": bool, "message"?: str, "data"?: ..., "errors"?: [...]}

List responses additionally carry ``count``, ``total``, ``page`` and
``pages``.
"""

from __future__ import annotations

from typing import Any

from collegeconnect.errors import FieldError
from collegeconnect.services.listing import Page


def ok(data: Any = None, message: str | None = None) -> dict:
    body: dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def paged(page: Page) -> dict:
    return {"success": True, **page.meta(), "data": page.items}


def failure(message: str, errors: list[FieldError] | None = None, **extra: Any) -> dict:
    body: dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = [e.to_dict() for e in errors]
    body.update(extra)
    return body
