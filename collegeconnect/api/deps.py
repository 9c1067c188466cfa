"""
collegeconnect.api.deps — FastAPI dependency injection
=======================================================

Identity is consumed, never issued: callers present an HS256 bearer token
whose ``sub`` claim is the user id and ``role`` claim the user's role.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import Depends, Header, HTTPException, status
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine

from collegeconnect.config import CollegeConnectConfig, load_config
from collegeconnect.database.engine import create_db_engine
from collegeconnect.database.models import UserRole
from collegeconnect.services.access import Actor
from collegeconnect.services.listing import Pagination

_WEAK_SECRETS = frozenset({
    "collegeconnect-dev-secret-change-me",
    "change-me",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"


def _load_jwt_secret() -> str:
    """Load and validate JWT_SECRET from the environment.

    Raises RuntimeError at import time if the secret is missing, blank,
    too short (< 32 chars), or a known weak default.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Please set a strong, unique secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> CollegeConnectConfig:
    return load_config()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status.HTTP_401_UNAUTHORIZED,
        detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_actor(
    authorization: Annotated[str | None, Header()] = None,
) -> Actor:
    """Validate the bearer token and return the caller.  401 otherwise."""
    if not authorization or not authorization.startswith("Bearer "):
        raise _unauthorized("Not authorized, no token")
    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except InvalidTokenError:
        raise _unauthorized("Not authorized, token failed")
    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("Not authorized, token failed")
    role = payload.get("role") or UserRole.STUDENT.value
    if role not in {r.value for r in UserRole}:
        raise _unauthorized("Not authorized, token failed")
    return Actor(id=str(user_id), role=role)


def get_optional_actor(
    authorization: Annotated[str | None, Header()] = None,
) -> Actor | None:
    """Like :func:`get_current_actor` but anonymous callers get ``None``."""
    if not authorization:
        return None
    return get_current_actor(authorization)


EngineDep = Annotated[Engine, Depends(get_engine)]
ConfigDep = Annotated[CollegeConnectConfig, Depends(get_config)]


def get_pagination(
    config: ConfigDep,
    page: str | None = None,
    limit: str | None = None,
) -> Pagination:
    """Lenient ``?page=&limit=``: bad values fall back to the defaults."""
    return Pagination.from_raw(
        page,
        limit,
        default_limit=config.default_page_limit,
        max_limit=config.max_page_limit,
    )


PaginationDep = Annotated[Pagination, Depends(get_pagination)]
