"""
Outbound chat for the countdown engine.

ChatSender.send() never blocks and never raises: messages go onto a queue
that a single worker task drains in order through the transport. Delivery
failures are logged and dropped.
"""

import asyncio
import logging
from typing import Optional

from ..lib.connection import ConnectionAdapter, NotConnectedError


logger = logging.getLogger(__name__)


class ChatSender:
    """
    Fire-and-forget chat delivery over a ConnectionAdapter.

    Args:
        transport: Connection used to deliver messages
        max_queue: Maximum number of undelivered messages kept
    """

    def __init__(self, transport: ConnectionAdapter, max_queue: int = 100):
        self.transport = transport
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue)
        self._task: Optional[asyncio.Task] = None

        # Statistics
        self._stats = {
            "queued": 0,
            "sent": 0,
            "failed": 0,
            "dropped": 0,
        }

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def send(self, channel_id: Optional[str], text: str) -> None:
        """
        Queue a chat message for delivery.

        Args:
            channel_id: Target channel
            text: Message text (empty text is ignored)
        """
        if not text:
            return
        if channel_id is None:
            logger.warning(f"No channel for chat message, dropping: {text!r}")
            self._stats["dropped"] += 1
            return

        try:
            self._queue.put_nowait((channel_id, text))
            self._stats["queued"] += 1
        except asyncio.QueueFull:
            self._stats["dropped"] += 1
            logger.warning(f"Chat queue full, dropping message to {channel_id}: {text!r}")

    async def start(self) -> None:
        """Start the delivery worker."""
        if self.running:
            logger.warning("Chat sender already running")
            return
        self._task = asyncio.create_task(self._send_loop())
        logger.debug("Chat sender started")

    async def stop(self) -> None:
        """Stop the delivery worker. Undelivered messages are discarded."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.debug("Chat sender stopped")

    async def flush(self) -> None:
        """Wait until every queued message has been handled."""
        await self._queue.join()

    def get_stats(self) -> dict:
        return self._stats.copy()

    async def _send_loop(self) -> None:
        while True:
            channel_id, text = await self._queue.get()
            try:
                await self._deliver(channel_id, text)
            finally:
                self._queue.task_done()

    async def _deliver(self, channel_id: str, text: str) -> bool:
        """
        Send one message through the transport.

        Returns:
            True if sent, False if it failed (already logged)
        """
        try:
            await self.transport.send_message(text, channel_id=channel_id)
            self._stats["sent"] += 1
            return True
        except NotConnectedError:
            self._stats["failed"] += 1
            logger.warning("No gateway connection available yet; cannot send chat")
        except Exception as e:
            self._stats["failed"] += 1
            logger.error(f"Failed to send chat to {channel_id}: {e}")
        return False
