"""
FastAPI server for the Mood Relay service.

This module implements the REST endpoints for profile updates, mood
submissions and match discovery, and mounts the Socket.IO transport that
relays private messages between online users.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from loguru import logger
from pydantic import BaseModel, Field

from . import __version__
from .config import Settings, get_settings
from .errors import StoreError
from .geo import parse_search_point
from .logs import setup_logging
from .matching import MatchService
from .models import MatchRecord, User
from .presence import PresenceRegistry
from .sockets import create_socket_server
from .store import SubmissionStore


# API Request/Response Schemas
class UserUpdate(BaseModel):
    """Payload for profile updates. Omitted fields are stored empty."""

    user_id: str = Field(..., description="Stable client-generated identifier")
    username: str = Field("", description="Display name")
    avatar: str = Field("", description="Avatar URI or encoded image")


class MoodSubmit(BaseModel):
    """Payload for mood submissions."""

    user_id: str
    mood_level: int
    lat: float = Field(..., allow_inf_nan=False, description="Latitude in decimal degrees")
    lon: float = Field(..., allow_inf_nan=False, description="Longitude in decimal degrees")
    tag: str | None = Field(None, description="Optional free-text label")


class StatusResponse(BaseModel):
    """Plain acknowledgement for write endpoints."""

    status: str = "success"


class SubmitResponse(StatusResponse):
    """Acknowledgement carrying the generated submission id."""

    submission_id: str


class MatchesResponse(BaseModel):
    """Match listing, newest first."""

    matches: list[MatchRecord]


def create_app(
    store: SubmissionStore | None = None, settings: Settings | None = None
) -> FastAPI:
    """
    Create a FastAPI application backed by the given store.

    Args:
        store: The SubmissionStore to use; built from settings when omitted
        settings: Runtime settings; defaults to the environment

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    store = store or SubmissionStore(
        settings.database_url, timeout=settings.store_timeout_seconds
    )
    matcher = MatchService(
        store, max_radius_km=settings.max_radius_km, limit=settings.match_limit
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Configure logging and create the schema before serving."""
        setup_logging(settings.log_level)
        await store.create_schema()
        logger.info("Mood Relay {} ready", __version__)
        yield
        await store.dispose()

    app = FastAPI(
        title="Mood Relay",
        description="Mood matching and private messaging service",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        """Report store failures as 500 with the raw message."""
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report malformed requests with the same error body shape."""
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        return JSONResponse(status_code=422, content={"error": problems})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Report HTTP errors such as unknown routes or users as {error}."""
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.get("/")
    async def root() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "mood-relay"}

    @app.post("/api/v1/user/update")
    async def update_user(payload: UserUpdate) -> StatusResponse:
        """Create or fully replace a user profile."""
        await store.upsert_user(payload.user_id, payload.username, payload.avatar)
        return StatusResponse()

    @app.get("/api/v1/user/{user_id}")
    async def get_user(user_id: str) -> User:
        """Read back a user profile."""
        user = await store.get_user(user_id)
        if user is None:
            raise HTTPException(status_code=404, detail="Unknown user")
        return user

    @app.post("/api/v1/mood/submit")
    async def submit_mood(payload: MoodSubmit) -> SubmitResponse:
        """Record a mood reading at a location."""
        submission = await store.insert_submission(
            payload.user_id, payload.mood_level, payload.lat, payload.lon, tag=payload.tag
        )
        return SubmitResponse(submission_id=submission.submission_id)

    @app.get("/api/v1/mood/matches")
    async def get_matches(
        mood: int = Query(..., description="Mood level to match"),
        user_id: str = Query(..., description="Requesting user, excluded from results"),
        search_lat: str | None = Query(None),
        search_lon: str | None = Query(None),
    ) -> MatchesResponse:
        """
        List other users' submissions with the same mood, newest first.

        When both search_lat and search_lon parse as numbers, only rows within
        the configured radius of that point are returned.
        """
        search_point = parse_search_point(search_lat, search_lon)
        matches = await matcher.find_matches(mood, user_id, search_point)
        return MatchesResponse(matches=matches)

    return app


def create_asgi_app(
    store: SubmissionStore | None = None,
    registry: PresenceRegistry | None = None,
    settings: Settings | None = None,
) -> socketio.ASGIApp:
    """Wrap the REST application with the Socket.IO transport."""
    settings = settings or get_settings()
    registry = registry or PresenceRegistry()
    sio = create_socket_server(registry, settings.cors_origins)
    return socketio.ASGIApp(sio, other_asgi_app=create_app(store, settings))


app = create_asgi_app()


def main() -> None:
    """Main entry point for the server."""
    import uvicorn

    settings = get_settings()
    setup_logging(settings.log_level)
    uvicorn.run(
        "mood_relay.server:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
