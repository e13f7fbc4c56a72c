"""
Socket.IO transport for private messaging.

Clients announce who they are with `register_socket`, send with
`send_private_message` and receive `receive_private_message` events on every
connection registered under their user id.
"""

from typing import Any

import socketio
from loguru import logger

from .errors import ValidationError
from .models import PrivateMessageEvent, parse_private_message
from .presence import PresenceRegistry
from .relay import RelayService

RECEIVE_EVENT = "receive_private_message"


class MessagingNamespace(socketio.AsyncNamespace):
    """Namespace binding connections to the presence registry and relay."""

    def __init__(self, registry: PresenceRegistry, namespace: str = "/") -> None:
        super().__init__(namespace)
        self.registry = registry
        self.relay = RelayService(registry, self.deliver)

    async def deliver(self, sid: str, event: PrivateMessageEvent) -> None:
        """Emit one receive event to a single connection."""
        await self.emit(RECEIVE_EVENT, event.model_dump(by_alias=True), to=sid)

    async def on_connect(self, sid: str, environ: dict, auth: Any = None) -> None:
        """Accept every connection; identity arrives with register_socket."""
        logger.info("Socket connected: {}", sid)

    async def on_disconnect(self, sid: str, *args: Any) -> None:
        """Drop the connection from presence."""
        await self.registry.unregister(sid)
        logger.info("Socket disconnected: {}", sid)

    async def on_register_socket(self, sid: str, user_id: Any) -> None:
        """Bind this connection to a user id."""
        if not user_id or not isinstance(user_id, (str, int)):
            logger.warning("Ignoring register_socket from {} without a user id", sid)
            return
        await self.registry.register(str(user_id), sid)

    async def on_send_private_message(self, sid: str, data: Any) -> int:
        """Relay a message; the ack carries the number of channels reached."""
        try:
            message = parse_private_message(data)
        except ValidationError as e:
            logger.warning("Ignoring malformed private message from {}: {}", sid, e)
            return 0

        return await self.relay.relay_private_message(
            sender_id=message.sender_id,
            sender_name=message.sender_name,
            target_user_id=message.target_user_id,
            text=message.text,
        )


def create_socket_server(
    registry: PresenceRegistry, cors_origins: list[str] | str = "*"
) -> socketio.AsyncServer:
    """Build the Socket.IO server with the messaging namespace registered."""
    origins = "*" if cors_origins == ["*"] else cors_origins
    sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=origins)
    sio.register_namespace(MessagingNamespace(registry))
    return sio
