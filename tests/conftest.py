"""
Global pytest configuration and fixtures for countdown bot tests

Provides:
- Marker registration
- Fake connection adapter (records sends, drives events)
- Recording chat sender
"""

import inspect

import pytest

from countdown_bot.lib.connection import ConnectionAdapter, NotConnectedError


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom settings"""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "plugin: Plugin tests")
    config.addinivalue_line("markers", "core: Core infrastructure tests")


# ============================================================================
# Fake Connection
# ============================================================================

class FakeConnection(ConnectionAdapter):
    """In-memory ConnectionAdapter: records sends, lets tests emit events."""

    def __init__(self, connected=True):
        super().__init__()
        self._is_connected = connected
        self.sent = []
        self.handlers = {}
        self.fail_with = None

    async def connect(self):
        self._is_connected = True

    async def disconnect(self):
        self._is_connected = False

    async def send_message(self, content, **metadata):
        if not self._is_connected:
            raise NotConnectedError("not connected")
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((metadata.get("channel_id"), content))

    def on_event(self, event, callback):
        self.handlers.setdefault(event, []).append(callback)

    def off_event(self, event, callback):
        if callback in self.handlers.get(event, []):
            self.handlers[event].remove(callback)

    async def reconnect(self):
        await self.connect()

    async def emit(self, event, payload):
        for handler in list(self.handlers.get(event, [])):
            result = handler(payload)
            if inspect.isawaitable(result):
                await result


@pytest.fixture
def fake_connection():
    """Connected fake transport"""
    return FakeConnection()


# ============================================================================
# Recording Sender
# ============================================================================

class RecordingSender:
    """Synchronous ChatSender stand-in"""

    def __init__(self):
        self.messages = []

    def send(self, channel_id, text):
        self.messages.append((channel_id, text))


@pytest.fixture
def recording_sender():
    return RecordingSender()
