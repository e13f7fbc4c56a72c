"""
Submission storage for the Mood Relay service.

This module persists user profiles and mood submissions in a relational store
through SQLAlchemy's async engine. Every operation is a single statement with
no surrounding multi-statement transaction, and every failure (including a
call exceeding the configured timeout) surfaces as a StoreError.
"""

import asyncio
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy import (
    Column,
    DateTime,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
    select,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from .config import DEFAULT_MATCH_LIMIT
from .errors import StoreError
from .models import MatchRecord, MoodSubmission, User

T = TypeVar("T")

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("user_id", String, primary_key=True),
    Column("username", Text),
    Column("avatar", Text),
)

# user_id is not a foreign key; submissions may precede a profile.
submissions = Table(
    "submissions",
    metadata,
    Column("submission_id", String, primary_key=True),
    Column("user_id", String, nullable=False),
    Column("mood_level", Integer, nullable=False),
    Column("lat", Float, nullable=False),
    Column("lon", Float, nullable=False),
    Column("tag", Text),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)


def _utcnow() -> datetime:
    """Current UTC time as a naive datetime, as stored by SQLite."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SubmissionStore:
    """
    Relational store for user profiles and mood submissions.

    Args:
        database_url: SQLAlchemy async URL (e.g. ``sqlite+aiosqlite:///mood.db``)
        timeout: Upper bound in seconds for a single store call
        clock: Source of submission timestamps
    """

    def __init__(
        self,
        database_url: str,
        timeout: float = 10.0,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._engine: AsyncEngine = create_async_engine(database_url, future=True)
        self._timeout = timeout
        self._clock = clock

    async def _run(self, operation: str, call: Awaitable[T]) -> T:
        """Await a store call under the timeout, mapping failures to StoreError."""
        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            logger.error("Store {} timed out after {}s", operation, self._timeout)
            raise StoreError(f"{operation} timed out") from e
        except SQLAlchemyError as e:
            logger.error("Store {} failed: {}", operation, e)
            raise StoreError(str(e)) from e

    async def create_schema(self) -> None:
        """Create the users and submissions tables if they do not exist."""

        async def _create() -> None:
            async with self._engine.begin() as conn:
                await conn.run_sync(metadata.create_all)

        await self._run("create_schema", _create())
        logger.info("Database schema ready")

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self._engine.dispose()

    async def upsert_user(self, user_id: str, username: str, avatar: str) -> None:
        """
        Insert or fully replace the profile row for user_id.

        Last write wins; there is no partial patch.
        """
        values = {"user_id": user_id, "username": username, "avatar": avatar}

        async def _upsert() -> None:
            async with self._engine.begin() as conn:
                insert = _dialect_insert(conn.dialect.name)
                stmt = insert(users).values(**values)
                stmt = stmt.on_conflict_do_update(
                    index_elements=[users.c.user_id],
                    set_={"username": username, "avatar": avatar},
                )
                await conn.execute(stmt)

        await self._run("upsert_user", _upsert())

    async def get_user(self, user_id: str) -> User | None:
        """Read back a profile, or None if user_id never set one."""

        async def _get() -> User | None:
            async with self._engine.connect() as conn:
                result = await conn.execute(
                    select(users).where(users.c.user_id == user_id)
                )
                row = result.mappings().first()
            if row is None:
                return None
            return User(
                user_id=row["user_id"],
                username=row["username"] or "",
                avatar=row["avatar"] or "",
            )

        return await self._run("get_user", _get())

    async def insert_submission(
        self,
        user_id: str,
        mood_level: int,
        lat: float,
        lon: float,
        tag: str | None = None,
    ) -> MoodSubmission:
        """
        Record a new mood submission.

        Returns:
            The stored submission, including its generated id and timestamp
        """
        submission = MoodSubmission(
            submission_id=str(uuid.uuid4()),
            user_id=user_id,
            mood_level=mood_level,
            lat=lat,
            lon=lon,
            tag=tag,
            created_at=self._clock(),
        )

        async def _insert() -> None:
            async with self._engine.begin() as conn:
                await conn.execute(submissions.insert().values(**submission.model_dump()))

        await self._run("insert_submission", _insert())
        return submission

    async def query_same_mood(
        self, mood_level: int, exclude_user_id: str, limit: int = DEFAULT_MATCH_LIMIT
    ) -> list[MatchRecord]:
        """
        Fetch submissions with the given mood level, newest first.

        Only submitters with a profile row are returned (inner join), the
        excluded user never appears, and at most `limit` rows come back.
        """
        stmt = (
            select(
                submissions.c.user_id,
                users.c.username,
                users.c.avatar,
                submissions.c.lat,
                submissions.c.lon,
                submissions.c.created_at,
            )
            .select_from(
                submissions.join(users, submissions.c.user_id == users.c.user_id)
            )
            .where(
                submissions.c.mood_level == mood_level,
                submissions.c.user_id != exclude_user_id,
            )
            .order_by(submissions.c.created_at.desc())
            .limit(limit)
        )

        async def _query() -> list[MatchRecord]:
            async with self._engine.connect() as conn:
                result = await conn.execute(stmt)
                return [MatchRecord.model_validate(dict(row)) for row in result.mappings()]

        return await self._run("query_same_mood", _query())


def _dialect_insert(dialect_name: str) -> Callable[..., Any]:
    """Pick the dialect-specific insert construct that supports ON CONFLICT."""
    if dialect_name == "postgresql":
        return postgresql.insert
    if dialect_name == "sqlite":
        return sqlite.insert
    raise StoreError(f"Unsupported database dialect: {dialect_name}")
