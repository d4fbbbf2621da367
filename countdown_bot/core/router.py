"""
Core event router for the countdown bot.

The router sits between the gateway channel and the countdown engine:
- Chat messages that start with the command prefix are permission-checked,
  then handed to the engine
- Tip events are handed to the engine's tip handler
- Everything else is ignored

Commands from authors who are neither moderators nor the channel owner are
dropped without any reply, so nothing about the countdown leaks to them.
"""

import logging
from typing import Dict

from ..lib.connection import ConnectionAdapter
from ..plugins.countdown import CountdownEngine, is_command
from .events import ChatMessage, EventTypes, Tip


logger = logging.getLogger(__name__)


class CommandRouter:
    """
    Routes normalized platform events to the countdown engine.

    Args:
        engine: Countdown engine that executes commands and tips
    """

    def __init__(self, engine: CountdownEngine):
        self.engine = engine
        self._channel = None
        self._running = False

        # Statistics
        self._stats = {
            "commands_routed": 0,
            "commands_denied": 0,
            "tips_applied": 0,
            "tips_ignored": 0,
        }

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def start(self, channel: ConnectionAdapter) -> bool:
        """
        Register with the channel's event callbacks.

        Returns:
            True if started, False if already running
        """
        if self._running:
            logger.warning("Router already running")
            return False

        channel.on_event(EventTypes.CHAT_MESSAGE, self.handle_chat_message)
        channel.on_event(EventTypes.TIP, self.handle_tip)
        self._channel = channel
        self._running = True
        logger.info("Command router started")
        return True

    def stop(self) -> bool:
        """
        Unregister from the channel.

        Returns:
            True if stopped, False if it was not running
        """
        if not self._running:
            return False

        self._channel.off_event(EventTypes.CHAT_MESSAGE, self.handle_chat_message)
        self._channel.off_event(EventTypes.TIP, self.handle_tip)
        self._channel = None
        self._running = False
        logger.info("Command router stopped")
        return True

    # ========================================================================
    # Event handlers
    # ========================================================================

    def handle_chat_message(self, message: ChatMessage) -> None:
        """Permission gate, then command dispatch."""
        if not is_command(message.text):
            return

        if not message.is_privileged:
            self._stats["commands_denied"] += 1
            logger.debug(
                f"Dropping countdown command from non-privileged author "
                f"{message.author or '<unknown>'} in {message.channel_id}"
            )
            return

        self._stats["commands_routed"] += 1
        self.engine.handle_command(message.channel_id, message.text)

    def handle_tip(self, tip: Tip) -> None:
        if self.engine.apply_tip(tip.channel_id, tip.amount):
            self._stats["tips_applied"] += 1
        else:
            self._stats["tips_ignored"] += 1

    def get_stats(self) -> Dict[str, int]:
        """
        Get routing statistics.

        Returns:
            Dict with commands_routed, commands_denied, tips_applied, tips_ignored
        """
        return self._stats.copy()
