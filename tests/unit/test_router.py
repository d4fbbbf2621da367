"""
Unit tests for CommandRouter: permission gate and event dispatch.
"""

import pytest

from countdown_bot.core.events import ChatMessage, EventTypes, Tip
from countdown_bot.core.router import CommandRouter
from countdown_bot.plugins.countdown import CountdownEngine


class _IdleTicker:
    def __init__(self, interval=1.0, on_tick=None):
        self.on_tick = on_tick

    def start(self):
        pass

    def cancel(self):
        pass

    async def stop(self):
        pass


@pytest.fixture
def engine(recording_sender):
    return CountdownEngine(recording_sender, scheduler_factory=_IdleTicker)


@pytest.fixture
def router(engine, fake_connection):
    router = CommandRouter(engine)
    router.start(fake_connection)
    return router


def chat(text, moderator=False, owner=False, channel_id="chan-1"):
    return ChatMessage(
        channel_id=channel_id,
        text=text,
        author_is_moderator=moderator,
        author_is_owner=owner,
        author="someone",
    )


# ============================================================================
# Permission Gate
# ============================================================================

class TestPermissionGate:
    """Only moderators and the channel owner may run commands."""

    def test_moderator_allowed(self, router, engine, recording_sender):
        router.handle_chat_message(chat("#countdown start 5", moderator=True))

        assert engine.running is True
        assert recording_sender.messages == [("chan-1", "Countdown started: 5s")]

    def test_owner_allowed(self, router, engine):
        router.handle_chat_message(chat("#countdown start 5", owner=True))
        assert engine.running is True

    def test_viewer_dropped_silently(self, router, engine, recording_sender):
        """No state change and no reply for regular viewers."""
        router.handle_chat_message(chat("#countdown start 5"))

        assert engine.running is False
        assert recording_sender.messages == []
        assert router.get_stats()["commands_denied"] == 1

    def test_viewer_status_dropped(self, router, engine, recording_sender):
        """Even read-only commands are gated."""
        router.handle_chat_message(chat("#countdown start 5", owner=True))
        recording_sender.messages.clear()

        router.handle_chat_message(chat("#countdown status"))

        assert recording_sender.messages == []

    @pytest.mark.parametrize("owner_started", [True, False])
    def test_viewer_stop_changes_nothing(self, router, engine, recording_sender, owner_started):
        """A viewer's stop: no chat, no broadcast, no state change, running or idle."""
        if owner_started:
            router.handle_chat_message(chat("#countdown start 10 | 2 | Done", owner=True))
        recording_sender.messages.clear()
        snapshots = []
        engine.publisher.subscribe(snapshots.append)
        running = engine.running
        remaining = engine.remaining_seconds

        router.handle_chat_message(chat("#countdown stop"))

        assert engine.running is running
        assert engine.running is owner_started
        assert engine.remaining_seconds == remaining
        assert recording_sender.messages == []
        assert snapshots == []

    def test_regular_chat_ignored(self, router, recording_sender):
        router.handle_chat_message(chat("hello everyone", moderator=True))

        assert recording_sender.messages == []
        stats = router.get_stats()
        assert stats["commands_routed"] == 0
        assert stats["commands_denied"] == 0


# ============================================================================
# Event Dispatch
# ============================================================================

class TestDispatch:
    """Events flow from the connection to the engine."""

    @pytest.mark.asyncio
    async def test_chat_event_routed(self, router, engine, fake_connection):
        await fake_connection.emit(
            EventTypes.CHAT_MESSAGE, chat("#countdown start 1m", moderator=True)
        )

        assert engine.remaining_seconds == 60
        assert router.get_stats()["commands_routed"] == 1

    @pytest.mark.asyncio
    async def test_tip_event_routed(self, router, engine, fake_connection):
        engine.handle_command("chan-1", "#countdown start 10 | 2 | Done")

        await fake_connection.emit(EventTypes.TIP, Tip(channel_id="chan-1", amount=3))

        assert engine.remaining_seconds == 16
        assert router.get_stats()["tips_applied"] == 1

    @pytest.mark.asyncio
    async def test_tip_without_countdown_counted_as_ignored(self, router, fake_connection):
        await fake_connection.emit(EventTypes.TIP, Tip(channel_id="chan-1", amount=3))
        assert router.get_stats()["tips_ignored"] == 1

    @pytest.mark.asyncio
    async def test_stop_unregisters(self, router, engine, fake_connection):
        assert router.stop() is True

        await fake_connection.emit(
            EventTypes.CHAT_MESSAGE, chat("#countdown start 5", owner=True)
        )

        assert engine.running is False
        assert router.stop() is False

    def test_start_twice(self, router, fake_connection):
        assert router.start(fake_connection) is False
        assert len(fake_connection.handlers[EventTypes.CHAT_MESSAGE]) == 1
