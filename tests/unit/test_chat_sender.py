"""
Unit tests for ChatSender: queued, fire-and-forget delivery.
"""

import pytest

from countdown_bot.core.chat_sender import ChatSender
from countdown_bot.lib.connection import SendError


class TestChatSender:
    """Tests for send/flush/stop."""

    @pytest.mark.asyncio
    async def test_messages_delivered_in_order(self, fake_connection):
        sender = ChatSender(fake_connection)
        await sender.start()

        sender.send("chan-1", "first")
        sender.send("chan-1", "second")
        sender.send("chan-2", "third")
        await sender.flush()
        await sender.stop()

        assert fake_connection.sent == [
            ("chan-1", "first"),
            ("chan-1", "second"),
            ("chan-2", "third"),
        ]
        assert sender.get_stats()["sent"] == 3

    @pytest.mark.asyncio
    async def test_not_connected_is_logged_and_dropped(self, fake_connection, caplog):
        """Sending before the gateway is ready never raises."""
        fake_connection._is_connected = False
        sender = ChatSender(fake_connection)
        await sender.start()

        sender.send("chan-1", "hello")
        await sender.flush()
        await sender.stop()

        assert fake_connection.sent == []
        assert sender.get_stats()["failed"] == 1
        assert "No gateway connection available yet" in caplog.text

    @pytest.mark.asyncio
    async def test_send_error_does_not_stop_worker(self, fake_connection):
        sender = ChatSender(fake_connection)
        await sender.start()

        fake_connection.fail_with = SendError("socket closed")
        sender.send("chan-1", "lost")
        await sender.flush()
        fake_connection.fail_with = None
        sender.send("chan-1", "kept")
        await sender.flush()
        await sender.stop()

        assert fake_connection.sent == [("chan-1", "kept")]
        assert sender.get_stats()["failed"] == 1

    def test_empty_text_ignored(self, fake_connection):
        sender = ChatSender(fake_connection)
        sender.send("chan-1", "")
        assert sender.get_stats()["queued"] == 0

    def test_missing_channel_dropped(self, fake_connection):
        sender = ChatSender(fake_connection)
        sender.send(None, "hello")
        assert sender.get_stats()["dropped"] == 1

    def test_full_queue_drops(self, fake_connection):
        """send() doesn't block when the queue is full."""
        sender = ChatSender(fake_connection, max_queue=1)

        sender.send("chan-1", "one")
        sender.send("chan-1", "two")

        stats = sender.get_stats()
        assert stats["queued"] == 1
        assert stats["dropped"] == 1

    @pytest.mark.asyncio
    async def test_stop_without_start(self, fake_connection):
        sender = ChatSender(fake_connection)
        await sender.stop()
        assert sender.running is False

    @pytest.mark.asyncio
    async def test_start_twice(self, fake_connection):
        sender = ChatSender(fake_connection)
        await sender.start()
        task = sender._task
        await sender.start()

        assert sender._task is task
        await sender.stop()
