from datetime import datetime, timedelta

import pytest
import pytest_asyncio

from mood_relay.presence import PresenceRegistry
from mood_relay.store import SubmissionStore


class TickingClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, 0)) -> None:
        self._next = start

    def __call__(self) -> datetime:
        now = self._next
        self._next += timedelta(seconds=1)
        return now


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'mood.db'}"


@pytest_asyncio.fixture
async def store(database_url):
    store = SubmissionStore(database_url, clock=TickingClock())
    await store.create_schema()
    try:
        yield store
    finally:
        await store.dispose()


@pytest.fixture
def registry() -> PresenceRegistry:
    return PresenceRegistry()
