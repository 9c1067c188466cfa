"""
collegeconnect.api.main — FastAPI application entry point
==========================================================

Run with::

    uvicorn collegeconnect.api.main:app --reload --port 8000

or ``python -m collegeconnect``.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

load_dotenv()

from collegeconnect.api.deps import get_config, get_engine  # noqa: E402
from collegeconnect.api.responses import failure  # noqa: E402
from collegeconnect.api.routes.comments import router as comments_router  # noqa: E402
from collegeconnect.api.routes.events import router as events_router  # noqa: E402
from collegeconnect.api.routes.notifications import router as notifications_router  # noqa: E402
from collegeconnect.api.routes.posts import router as posts_router  # noqa: E402
from collegeconnect.api.routes.projects import router as projects_router  # noqa: E402
from collegeconnect.api.routes.teams import router as teams_router  # noqa: E402
from collegeconnect.api.routes.users import router as users_router  # noqa: E402
from collegeconnect.errors import CollegeConnectError, FieldError, ValidationError  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env with safe defaults.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the DB engine."""
    engine = get_engine()
    logger.info("CollegeConnect API started — engine ready (%s)", engine.url.database)
    yield
    logger.info("CollegeConnect API shutting down")


app = FastAPI(
    title="CollegeConnect API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error → envelope mapping
# ---------------------------------------------------------------------------
def _field_name(loc: tuple) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "request"


@app.exception_handler(CollegeConnectError)
async def handle_domain_error(request: Request, exc: CollegeConnectError):
    errors = exc.errors if isinstance(exc, ValidationError) else None
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=failure(exc.message, errors))


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError):
    errors = [FieldError(_field_name(tuple(e["loc"])), e["msg"]) for e in exc.errors()]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=failure("Validation failed", errors),
    )


@app.exception_handler(StarletteHTTPException)
async def handle_http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=failure(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def handle_unexpected(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    extra = {"error": str(exc)} if get_config().expose_error_details else {}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=failure("Server error", **extra),
    )


# Mount routers
app.include_router(posts_router, prefix="/api")
app.include_router(comments_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(events_router, prefix="/api")
app.include_router(projects_router, prefix="/api")
app.include_router(teams_router, prefix="/api")
app.include_router(notifications_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "OK", "message": "CollegeConnect API is running"}
