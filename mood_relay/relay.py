"""
Private message relay.

Messages are forwarded live to every channel registered for the target user
and are never stored. A target with no channels gets nothing and the sender is
not told. A failing channel is logged and skipped so the remaining channels
still receive the message.
"""

from collections.abc import Awaitable, Callable

from loguru import logger

from .models import PrivateMessageEvent
from .presence import PresenceRegistry

Deliver = Callable[[str, PrivateMessageEvent], Awaitable[None]]


class RelayService:
    """
    Forwards private messages to a user's live channels.

    Args:
        registry: Presence registry resolving user ids to channels
        deliver: Coroutine sending one event to one channel
    """

    def __init__(self, registry: PresenceRegistry, deliver: Deliver) -> None:
        self._registry = registry
        self._deliver = deliver

    async def relay_private_message(
        self, sender_id: str, sender_name: str, target_user_id: str, text: str
    ) -> int:
        """
        Forward a message to all of the target user's live channels.

        Returns:
            Number of channels the message was delivered to
        """
        channels = await self._registry.channels_for(target_user_id)
        if not channels:
            logger.debug("User {} offline, dropping message from {}", target_user_id, sender_id)
            return 0

        event = PrivateMessageEvent(
            text=text, sender_name=sender_name, sender_id=sender_id, is_self=False
        )
        delivered = 0
        for channel in sorted(channels):
            try:
                await self._deliver(channel, event)
            except Exception as e:
                logger.warning("Delivery to channel {} failed: {}", channel, e)
                continue
            delivered += 1

        logger.debug(
            "Relayed message from {} to {} on {} channel(s)",
            sender_id,
            target_user_id,
            delivered,
        )
        return delivered
