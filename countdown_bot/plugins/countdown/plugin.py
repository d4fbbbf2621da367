"""
plugins/countdown/plugin.py

Countdown engine: the single shared countdown driven by chat commands,
the per-second ticker and tip events.

Commands:
    #countdown start <duration> | <per_token> | <message>
    #countdown start <duration> | <message>
    #countdown start <duration>
    #countdown add <duration>
    #countdown set <duration>
    #countdown stop
    #countdown status

Chat output is one line per accepted command and one line when the
countdown finishes. Every state change (but not status) is
broadcast to overlay subscribers.
"""

import logging
import math
from typing import Any, Callable, Dict, Optional

from .commands import (
    USAGE,
    USAGE_ADD,
    USAGE_SET,
    parse_command,
    parse_duration_argument,
    parse_start_arguments,
)
from .countdown import (
    MAX_DURATION_SECONDS,
    CountdownSnapshot,
    CountdownState,
    format_duration,
)
from .errors import CountdownError, StateError, ValidationError
from .overlay import OverlayPublisher
from .scheduler import TickScheduler


NO_COUNTDOWN_TO_ADD = (
    "No active countdown to add time to. "
    "Start one with #countdown start duration | per_token | message."
)
NO_COUNTDOWN_TO_STOP = "No active countdown to stop."
NO_COUNTDOWN = "No active countdown."


class CountdownEngine:
    """
    Owns the countdown state and implements the command state machine.

    States:
        Idle - no ticker
        Running - ticker active, one decrement per interval

    All mutations are synchronous, so on a single event loop the chat
    handler, ticker and tip handler can never interleave inside one.

    Args:
        sender: Object with ``send(channel_id, text)``; must not raise.
        publisher: Broadcast hub for snapshots (created if omitted).
        config: Optional configuration dictionary.
        scheduler_factory: Builds the ticker; receives ``interval`` and ``on_tick``.
    """

    # Plugin metadata
    NAMESPACE = "countdown"
    VERSION = "1.0.0"
    DESCRIPTION = "Chat-driven countdown with tip extensions"

    def __init__(
        self,
        sender: Any,
        publisher: Optional[OverlayPublisher] = None,
        config: Optional[Dict[str, Any]] = None,
        scheduler_factory: Callable[..., TickScheduler] = TickScheduler,
    ):
        self.sender = sender
        self.publisher = publisher or OverlayPublisher()
        self.config = config or {}
        self.scheduler_factory = scheduler_factory
        self.logger = logging.getLogger(f"plugin.{self.NAMESPACE}")

        # Configuration with defaults
        self.tick_interval = self.config.get("tick_interval", 1.0)
        self.default_per_token_seconds = self.config.get("default_per_token_seconds", 1)
        self.default_finish_message = self.config.get(
            "default_finish_message", "Countdown finished"
        )

        self._state = CountdownState(
            per_token_increment_seconds=self.default_per_token_seconds
        )
        self._ticker: Optional[TickScheduler] = None

        self._verbs = {
            "start": self.start,
            "add": self.add,
            "set": self.set,
            "stop": self.stop,
            "status": self.status,
        }

        self.logger.debug(
            f"{self.NAMESPACE} engine v{self.VERSION} ready: {self.DESCRIPTION}"
        )

    # =========================================================================
    # State access
    # =========================================================================

    @property
    def running(self) -> bool:
        """True while a countdown is ticking."""
        return self._state.running

    @property
    def remaining_seconds(self) -> int:
        """Seconds left on the current (or last) countdown."""
        return self._state.remaining_seconds

    @property
    def state(self) -> CountdownState:
        """The live state object. Treat as read-only."""
        return self._state

    def get_snapshot(self) -> CountdownSnapshot:
        """Current state as an immutable snapshot."""
        return self._state.snapshot()

    # =========================================================================
    # Command dispatch
    # =========================================================================

    def handle_command(self, channel_id: str, text: str) -> bool:
        """
        Parse and execute a chat command.

        Permission checks are the caller's job; this runs whatever it is given.

        Args:
            channel_id: Channel the command came from (replies go there).
            text: Raw chat text.

        Returns:
            False if the text is not a countdown command (nothing happened),
            True otherwise, whether or not the command was accepted.
        """
        command = parse_command(text)
        if command is None:
            return False

        handler = self._verbs.get(command.verb)
        try:
            if handler is None:
                raise ValidationError(USAGE)
            if command.verb in ("stop", "status"):
                handler(channel_id)
            else:
                handler(channel_id, command.argument_text)
        except CountdownError as e:
            self.logger.debug(
                f"Rejected '{command.verb}' in {channel_id}: {e}"
            )
            self._send(channel_id, str(e))
        return True

    def start(self, channel_id: str, argument_text: str) -> None:
        """
        Handle ``start``: validate everything, then (re)start the countdown.

        Raises:
            ValidationError: On any malformed argument; nothing is changed.
        """
        args = parse_start_arguments(
            argument_text, default_per_token=self.default_per_token_seconds
        )
        self.start_countdown(
            channel_id,
            args.seconds,
            finish_message=args.finish_message,
            per_token_increment_seconds=args.per_token_increment_seconds,
        )

    def add(self, channel_id: str, argument_text: str) -> None:
        """
        Handle ``add``: extend the running countdown.

        Raises:
            ValidationError: If the duration is invalid.
            StateError: If no countdown is running.
        """
        seconds = parse_duration_argument(argument_text, USAGE_ADD)
        if not self._state.running:
            raise StateError(NO_COUNTDOWN_TO_ADD)

        self._state.remaining_seconds = min(
            MAX_DURATION_SECONDS, max(0, self._state.remaining_seconds + seconds)
        )
        self._state.touch()
        self.logger.info(
            f"Added {seconds}s to countdown in {channel_id} "
            f"({self._state.remaining_seconds}s left)"
        )
        self._send(channel_id, f"Countdown updated: {self._state.formatted_remaining}")
        self._broadcast()

    def set(self, channel_id: str, argument_text: str) -> None:
        """
        Handle ``set``: overwrite the remaining time, or start a new
        countdown when idle.

        Raises:
            ValidationError: If the duration is invalid.
        """
        seconds = parse_duration_argument(argument_text, USAGE_SET)
        if not self._state.running:
            self.start_countdown(channel_id, seconds)
            return

        self._state.remaining_seconds = seconds
        self._state.touch()
        self.logger.info(f"Countdown in {channel_id} set to {seconds}s")
        self._send(channel_id, f"Countdown set: {self._state.formatted_remaining}")
        self._broadcast()

    def stop(self, channel_id: str) -> None:
        """
        Handle ``stop``: cancel the running countdown.

        Raises:
            StateError: If no countdown is running.
        """
        if not self._state.running:
            raise StateError(NO_COUNTDOWN_TO_STOP)

        self._cancel_ticker()
        self._state.touch()
        self.logger.info(
            f"Countdown stopped in {channel_id} "
            f"with {self._state.remaining_seconds}s left"
        )
        self._send(channel_id, "Countdown stopped")
        self._broadcast()

    def status(self, channel_id: str) -> None:
        """Handle ``status``: report remaining time. Read-only, no broadcast."""
        if not self._state.running:
            self._send(channel_id, NO_COUNTDOWN)
            return
        self._send(channel_id, f"Countdown: {self._state.formatted_remaining}")

    # =========================================================================
    # Countdown lifecycle
    # =========================================================================

    def start_countdown(
        self,
        channel_id: str,
        seconds: int,
        finish_message: str = "",
        per_token_increment_seconds: Optional[float] = None,
    ) -> None:
        """
        Replace any current countdown with a new one.

        A zero duration finishes immediately: the finish message is sent,
        the new state is broadcast and the engine stays idle.

        Args:
            channel_id: Channel the countdown belongs to.
            seconds: Starting duration (negative values are clamped to 0).
            finish_message: Chat text for T-0 (default message if empty).
            per_token_increment_seconds: Seconds per tip unit (default if None
                or invalid).
        """
        self._cancel_ticker()

        per_token = per_token_increment_seconds
        if per_token is None or not math.isfinite(per_token) or per_token < 0:
            per_token = self.default_per_token_seconds

        state = self._state
        state.remaining_seconds = min(MAX_DURATION_SECONDS, max(0, int(seconds)))
        state.channel_id = channel_id
        state.finish_message = finish_message or self.default_finish_message
        state.per_token_increment_seconds = per_token
        state.touch()

        if state.remaining_seconds <= 0:
            self.logger.info(f"Zero-length countdown in {channel_id} finished immediately")
            self._send(channel_id, state.finish_message)
            self._broadcast()
            return

        state.running = True
        self._ticker = self.scheduler_factory(
            interval=self.tick_interval, on_tick=self._on_tick
        )
        self._ticker.start()

        self.logger.info(
            f"Countdown started in {channel_id}: {state.remaining_seconds}s "
            f"({per_token}s per token)"
        )
        # Announce once; per-second progress is the overlay's job
        self._send(channel_id, f"Countdown started: {state.formatted_remaining}")
        self._broadcast()

    def tick(self) -> None:
        """
        Apply one decrement. Finishes the countdown when it reaches zero.
        """
        state = self._state
        if not state.running:
            return

        state.remaining_seconds = max(0, state.remaining_seconds - 1)
        state.touch()

        if state.remaining_seconds <= 0:
            self._cancel_ticker()
            self.logger.info(f"Countdown finished in {state.channel_id}")
            self._send(state.channel_id, state.finish_message)
            self._broadcast()
            return

        self._broadcast()

    def apply_tip(self, channel_id: str, amount: Any) -> bool:
        """
        Extend the running countdown by ``amount`` tip units.

        Ignored unless a countdown is running in the same channel, the
        per-token increment is positive and the amount is a finite positive
        number. Never sends chat.

        Args:
            channel_id: Channel the tip arrived in.
            amount: Tip value (tokens).

        Returns:
            True if the countdown was extended.
        """
        state = self._state
        if not state.running or channel_id != state.channel_id:
            return False
        if not state.per_token_increment_seconds > 0:
            return False

        try:
            tokens = float(amount)
        except (TypeError, ValueError):
            self.logger.debug(f"Ignoring tip with malformed amount: {amount!r}")
            return False
        if not math.isfinite(tokens) or tokens <= 0:
            self.logger.debug(f"Ignoring tip with unusable amount: {amount!r}")
            return False

        product = tokens * state.per_token_increment_seconds
        if not math.isfinite(product):
            self.logger.debug(f"Ignoring tip too large to apply: {amount!r}")
            return False

        added = int(min(product, MAX_DURATION_SECONDS))
        state.remaining_seconds = min(
            MAX_DURATION_SECONDS, max(0, state.remaining_seconds + added)
        )
        state.touch()
        self.logger.info(
            f"Tip of {tokens:g} in {channel_id} added {added}s "
            f"({state.remaining_seconds}s left)"
        )
        self._broadcast()
        return True

    async def shutdown(self) -> None:
        """Stop the ticker, if any. State is not persisted."""
        ticker, self._ticker = self._ticker, None
        self._state.running = False
        if ticker is not None:
            await ticker.stop()
        self.logger.info(f"{self.NAMESPACE} engine shut down")

    # =========================================================================
    # Internals
    # =========================================================================

    def _on_tick(self, ticker: TickScheduler) -> None:
        """Ticker callback; ticks from a replaced or cancelled ticker are dropped."""
        if ticker is not self._ticker:
            self.logger.debug("Dropping tick from stale ticker")
            return
        self.tick()

    def _cancel_ticker(self) -> None:
        """Cancel the current ticker and mark the countdown idle."""
        ticker, self._ticker = self._ticker, None
        if ticker is not None:
            ticker.cancel()
        self._state.running = False

    def _broadcast(self) -> None:
        self.publisher.publish(self._state.snapshot())

    def _send(self, channel_id: Optional[str], text: str) -> None:
        try:
            self.sender.send(channel_id, text)
        except Exception as e:
            self.logger.error(f"Chat sender failed: {e}", exc_info=True)
