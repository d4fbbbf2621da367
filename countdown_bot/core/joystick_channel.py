"""
JoystickTV gateway channel.

Connects to the JoystickTV bot gateway (ActionCable over websockets),
subscribes to the GatewayChannel, turns inbound frames into normalized
ChatMessage / Tip events and sends chat back through the same socket.
"""

import asyncio
import base64
import inspect
import json
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Union

import websockets

from ..lib.connection import (
    AuthenticationError,
    ConnectionAdapter,
    ConnectionError,
    NotConnectedError,
    ProtocolError,
    SendError,
)
from .events import ChatMessage, EventTypes, Tip

logger = logging.getLogger(__name__)


GATEWAY_IDENTIFIER = json.dumps({"channel": "GatewayChannel"}, separators=(",", ":"))
SUBPROTOCOL = "actioncable-v1-json"


def build_access_token(client_id: str, client_secret: str) -> str:
    """Basic-auth style token the gateway expects in the connect URL."""
    raw = f"{client_id}:{client_secret}".encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def parse_gateway_message(message: Dict[str, Any]) -> Union[ChatMessage, Tip, None]:
    """
    Normalize the ``message`` payload of a gateway frame.

    Args:
        message: Decoded ``message`` object of an ActionCable frame

    Returns:
        ChatMessage for new chat lines, Tip for tip stream events,
        None for anything the bot doesn't care about

    Raises:
        ProtocolError: If a tip's metadata or amount can't be read
    """
    if message.get("event") == "StreamEvent" and message.get("type") == "Tipped":
        metadata = message.get("metadata") or {}
        if isinstance(metadata, str):
            try:
                metadata = json.loads(metadata)
            except json.JSONDecodeError as e:
                raise ProtocolError(f"Tip metadata is not JSON: {e}")
        if not isinstance(metadata, dict):
            raise ProtocolError(f"Tip metadata is not an object: {metadata!r}")

        how_much = metadata.get("how_much")
        if isinstance(how_much, bool):
            raise ProtocolError(f"Tip amount is not a number: {how_much!r}")
        try:
            amount = float(how_much)
        except (TypeError, ValueError):
            raise ProtocolError(f"Tip amount is not a number: {how_much!r}")

        return Tip(channel_id=message.get("channelId"), amount=amount)

    if message.get("type") == "new_message":
        author = message.get("author") or {}
        return ChatMessage(
            channel_id=message.get("channelId"),
            text=str(message.get("text") or ""),
            author_is_moderator=bool(author.get("isModerator")),
            author_is_owner=bool(author.get("isStreamer")),
            author=author.get("username"),
        )

    return None


class JoystickChannel(ConnectionAdapter):
    """
    ActionCable client for the JoystickTV bot gateway.

    The channel counts as connected once the gateway confirms the
    subscription; frames received before that are ignored.

    Args:
        api_host: Gateway websocket URL (e.g. "wss://joystick.tv/cable")
        client_id: Bot application client id
        client_secret: Bot application client secret
        gateway_identifier: Subscription identifier (JSON string)
        retry: Reconnect attempts after the socket drops (-1 = forever)
        retry_delay: Seconds between reconnect attempts
    """

    def __init__(
        self,
        api_host: str,
        client_id: str,
        client_secret: str,
        gateway_identifier: str = GATEWAY_IDENTIFIER,
        retry: int = 0,
        retry_delay: float = 1.0,
    ):
        super().__init__(logger)
        self.api_host = api_host
        self.gateway_identifier = gateway_identifier
        self.retry = retry
        self.retry_delay = retry_delay
        self._access_token = build_access_token(client_id, client_secret)

        # Connection state
        self._ws = None
        self._running = False
        self._receive_task: Optional[asyncio.Task] = None
        self._handlers: Dict[str, List[Callable]] = defaultdict(list)

    @property
    def url(self) -> str:
        return f"{self.api_host}?token={self._access_token}"

    # ========================================================================
    # Connection lifecycle
    # ========================================================================

    async def connect(self) -> None:
        """
        Open the socket, subscribe to the gateway and start receiving.

        Raises:
            ConnectionError: If the socket can't be opened
        """
        if self._ws is not None:
            self.logger.warning("Already connected to gateway")
            return

        self.logger.info(f"Connecting to gateway: {self.api_host}")
        try:
            self._ws = await websockets.connect(self.url, subprotocols=[SUBPROTOCOL])
            await self._ws.send(json.dumps({
                "command": "subscribe",
                "identifier": self.gateway_identifier,
            }))
        except Exception as e:
            self._ws = None
            raise ConnectionError(f"Failed to connect to gateway: {e}") from e

        self._running = True
        self._receive_task = asyncio.create_task(self._receive_loop())
        self.logger.info("Connection has opened, waiting for subscription")

    async def disconnect(self) -> None:
        """Close the socket and stop receiving."""
        self._running = False

        task, self._receive_task = self._receive_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        await self._close_socket()
        self.logger.info("Connection has closed")

    async def reconnect(self) -> None:
        """
        Reconnect, retrying up to ``retry`` times (-1 = forever).

        Raises:
            ConnectionError: If every attempt failed
        """
        await self._close_socket()

        attempt = 0
        while True:
            attempt += 1
            await asyncio.sleep(self.retry_delay)
            try:
                await self.connect()
                return
            except ConnectionError as e:
                self.logger.warning(f"Reconnect attempt {attempt} failed: {e}")
                if self.retry >= 0 and attempt > self.retry:
                    raise

    async def _close_socket(self) -> None:
        was_connected = self._is_connected
        self._is_connected = False

        ws, self._ws = self._ws, None
        if ws is not None:
            try:
                await ws.close()
            except Exception as e:
                self.logger.debug(f"Error closing socket: {e}")

        if was_connected:
            await self._emit(EventTypes.DISCONNECT, None)

    # ========================================================================
    # Events
    # ========================================================================

    def on_event(self, event: str, callback: Callable) -> None:
        self._handlers[event].append(callback)
        self.logger.debug(f"Registered handler for event: {event}")

    def off_event(self, event: str, callback: Callable) -> None:
        if callback in self._handlers.get(event, []):
            self._handlers[event].remove(callback)

    async def _emit(self, event: str, payload: Any) -> None:
        """Call every handler for ``event``; a failing handler doesn't stop the rest."""
        for handler in list(self._handlers.get(event, [])):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                self.logger.error(f"Error in {event} handler: {e}", exc_info=True)

    # ========================================================================
    # Sending
    # ========================================================================

    async def send_message(self, content: str, **metadata) -> None:
        """
        Send a chat message to a channel.

        Args:
            content: Message text
            channel_id: Target channel (required keyword)

        Raises:
            NotConnectedError: If the subscription isn't confirmed
            SendError: If the socket write fails
        """
        if not self._is_connected or self._ws is None:
            raise NotConnectedError("Gateway subscription not confirmed")

        frame = {
            "command": "message",
            "identifier": self.gateway_identifier,
            "data": json.dumps({
                "action": "send_message",
                "text": content,
                "channelId": metadata.get("channel_id"),
            }),
        }
        try:
            await self._ws.send(json.dumps(frame))
        except Exception as e:
            raise SendError(f"Failed to send chat: {e}") from e
        self.logger.debug(f"Sent chat message: {content}")

    # ========================================================================
    # Receiving
    # ========================================================================

    async def _receive_loop(self) -> None:
        """Background loop to receive and process gateway frames."""
        while self._running and self._ws is not None:
            try:
                raw = await self._ws.recv()
            except asyncio.CancelledError:
                raise
            except websockets.exceptions.ConnectionClosed:
                self.logger.warning("Gateway connection closed")
                break

            try:
                await self.handle_frame(raw)
            except ProtocolError as e:
                self.logger.debug(f"Ignoring malformed frame: {e}")
            except AuthenticationError as e:
                self.logger.error(str(e))

        if not self._running:
            return

        # Connection dropped underneath us
        self._receive_task = None
        await self._close_socket()
        if self.retry != 0:
            try:
                await self.reconnect()
            except ConnectionError as e:
                self.logger.error(f"Giving up on gateway: {e}")
                self._running = False

    async def handle_frame(self, raw: Union[str, bytes]) -> None:
        """
        Process one raw gateway frame.

        Raises:
            ProtocolError: If the frame or its payload is malformed
            AuthenticationError: If the gateway rejected the subscription
        """
        try:
            frame = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise ProtocolError(f"Frame is not JSON: {e}")
        if not isinstance(frame, dict):
            raise ProtocolError(f"Frame is not an object: {frame!r}")

        frame_type = frame.get("type")
        if frame_type == "ping" or frame_type == "welcome":
            return
        if frame_type == "confirm_subscription":
            self.logger.info("Confirmed gateway subscription")
            self._is_connected = True
            await self._emit(EventTypes.CONNECT, None)
            return
        if frame_type == "reject_subscription":
            raise AuthenticationError("Gateway rejected the subscription")

        if not self._is_connected:
            return

        message = frame.get("message")
        if not isinstance(message, dict):
            return

        event = parse_gateway_message(message)
        if isinstance(event, Tip):
            await self._emit(EventTypes.TIP, event)
        elif isinstance(event, ChatMessage):
            await self._emit(EventTypes.CHAT_MESSAGE, event)
