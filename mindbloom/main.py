"""FastAPI application — the Mindbloom game API.

Wires together:
- the /api/v1 router tree (health, levels, sessions, children)
- CORS for the browser game client (origins from settings)
- an access log that records route templates, never concrete ids
- one error envelope for every failure (ApiResponse with ok=False)

Game services are built from settings when the app is created; a broken
level catalog degrades to the built-in levels instead of failing startup.

Run with: uvicorn mindbloom.main:app --reload

Tier 3 orchestration module: imports from config (Tier 2), deps (Tier 2),
schemas (Tier 1) and the session package for its domain errors.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from mindbloom.config import Settings, get_settings
from mindbloom.schemas import ApiError, ApiResponse
from mindbloom.session.controller import SessionStateError
from mindbloom.session.service import SessionNotFound

logger = logging.getLogger("mindbloom")


# ---------------------------------------------------------------------------
# Access log (raw ASGI)
# ---------------------------------------------------------------------------


def _route_template(scope: Scope) -> str:
    """The matching route's path template, or the raw path if none matches.

    Session and child ids live in the URL. Logging the template keeps
    them out of the access log. Routes are matched against the app's
    full route table, so included routers keep their /api/v1 prefix.
    """
    app = scope.get("app")
    partial = None
    for route in getattr(getattr(app, "router", None), "routes", ()):
        match, _ = route.matches(scope)
        if match is Match.FULL:
            return route.path
        if match is Match.PARTIAL and partial is None:
            partial = route.path
    return partial or scope.get("path", "?")


class AccessLogMiddleware:
    """One INFO line per HTTP request: method, route, status, duration.

    Raw ASGI so responses pass through unbuffered. Bodies, query strings
    and client addresses are never logged.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        template = _route_template(scope)
        started = time.monotonic()
        status = 0

        async def capture_status(message: Message) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, capture_status)
        finally:
            logger.info(
                "%s %s %d %.1fms",
                scope.get("method", "?"),
                template,
                status,
                (time.monotonic() - started) * 1000,
            )


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------


def _envelope(status_code: int, code: str, message: str) -> JSONResponse:
    body = ApiResponse(ok=False, error=ApiError(code=code, message=message))
    return JSONResponse(status_code=status_code, content=body.model_dump())


# Domain exception → (status, code, fixed message or None to use str(exc)).
DOMAIN_ERRORS: dict[type[Exception], tuple[int, str, str | None]] = {
    SessionNotFound: (404, "SESSION_NOT_FOUND", "Session not found or expired."),
    SessionStateError: (409, "INVALID_TRANSITION", None),
}


def _domain_error(request: Request, exc: Exception) -> JSONResponse:
    for exc_type, (status_code, code, message) in DOMAIN_ERRORS.items():
        if isinstance(exc, exc_type):
            return _envelope(status_code, code, message or str(exc))
    return _unexpected_error(request, exc)


def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Passes prebuilt envelopes (the 503s from deps.py) through untouched."""
    if isinstance(exc.detail, dict) and "ok" in exc.detail:
        return JSONResponse(status_code=exc.status_code, content=exc.detail)
    return _envelope(exc.status_code, "HTTP_ERROR", str(exc.detail))


def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reports the first offending field as ``loc -> part: message``."""
    errors = exc.errors()
    if not errors:
        return _envelope(422, "VALIDATION_ERROR", "Request validation failed.")
    first = errors[0]
    where = " -> ".join(str(part) for part in first.get("loc", ()))
    what = first.get("msg", "Validation error")
    return _envelope(422, "VALIDATION_ERROR", f"{where}: {what}" if where else what)


def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Last resort. The traceback goes to the log, never to the client."""
    logger.error(
        "Unhandled exception on %s %s", request.method, request.url.path,
        exc_info=exc,
    )
    return _envelope(500, "INTERNAL_ERROR", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def _build_router() -> APIRouter:
    from mindbloom.api.children import router as children_router
    from mindbloom.api.levels import router as levels_router
    from mindbloom.api.sessions import router as sessions_router

    v1 = APIRouter(prefix="/api/v1")

    @v1.get("/health")
    async def health() -> dict[str, Any]:
        return ApiResponse(ok=True, data={"status": "healthy"}).model_dump()

    v1.include_router(levels_router, prefix="/levels", tags=["levels"])
    v1.include_router(sessions_router, prefix="/sessions", tags=["sessions"])
    v1.include_router(children_router, prefix="/children", tags=["children"])
    return v1


def _wire_game_services(settings: Settings) -> None:
    # Local import: deps pulls in every hook and service module.
    from mindbloom.api import deps

    deps.init_services(settings)


def create_app() -> FastAPI:
    """Builds the application from the current settings."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    application = FastAPI(
        title="Mindbloom",
        description="Skill mini-games with behavioural scoring for caregivers",
        version="0.1.0",
    )

    # Last added runs first: CORS has to see preflights before anything else.
    application.add_middleware(AccessLogMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(StarletteHTTPException, _http_error)
    application.add_exception_handler(RequestValidationError, _validation_error)
    for exc_type in DOMAIN_ERRORS:
        application.add_exception_handler(exc_type, _domain_error)
    application.add_exception_handler(Exception, _unexpected_error)

    application.include_router(_build_router())
    _wire_game_services(settings)
    return application


app = create_app()
