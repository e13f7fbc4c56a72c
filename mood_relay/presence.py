"""
Presence tracking for realtime channels.

The registry maps a user identifier to the set of live channels (Socket.IO
session ids) currently bound to it. A user may hold several channels at once,
one per device or tab; a channel belongs to at most one user. All mutation
happens under a single asyncio lock.
"""

import asyncio

from loguru import logger


class PresenceRegistry:
    """In-process mapping of user ids to live channel handles."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._channels: dict[str, set[str]] = {}
        self._owners: dict[str, str] = {}

    async def register(self, user_id: str, channel: str) -> None:
        """Bind a channel to user_id, moving it away from any previous user."""
        async with self._lock:
            previous = self._owners.get(channel)
            if previous == user_id:
                return
            if previous is not None:
                self._discard(previous, channel)
            self._owners[channel] = user_id
            self._channels.setdefault(user_id, set()).add(channel)
        logger.info("Channel {} registered for user {}", channel, user_id)

    async def unregister(self, channel: str) -> str | None:
        """
        Remove a channel from whichever user it belongs to.

        Returns:
            The user id the channel was bound to, or None if it was unknown
        """
        async with self._lock:
            user_id = self._owners.pop(channel, None)
            if user_id is not None:
                self._discard(user_id, channel)
        if user_id is not None:
            logger.info("Channel {} unregistered from user {}", channel, user_id)
        return user_id

    async def channels_for(self, user_id: str) -> set[str]:
        """Snapshot of the channels bound to user_id, possibly empty."""
        async with self._lock:
            return set(self._channels.get(user_id, ()))

    def _discard(self, user_id: str, channel: str) -> None:
        """Drop channel from user_id's set; caller holds the lock."""
        channels = self._channels.get(user_id)
        if channels is None:
            return
        channels.discard(channel)
        if not channels:
            del self._channels[user_id]
