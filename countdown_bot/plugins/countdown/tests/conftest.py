"""
plugins/countdown/tests/conftest.py

Shared fixtures for countdown plugin tests.
"""

import pytest

from countdown_bot.plugins.countdown import CountdownEngine, OverlayPublisher


class RecordingSender:
    """Chat sender stand-in that remembers everything sent."""

    def __init__(self):
        self.messages = []

    def send(self, channel_id, text):
        self.messages.append((channel_id, text))

    @property
    def texts(self):
        return [text for _, text in self.messages]


class FakeTicker:
    """
    TickScheduler stand-in: never ticks on its own, ``fire()`` delivers a tick.
    """

    def __init__(self, interval=1.0, on_tick=None):
        self.interval = interval
        self.on_tick = on_tick
        self.running = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.running = True
        self.started = True

    def cancel(self):
        self.running = False
        self.cancelled = True

    async def stop(self):
        self.cancel()

    def fire(self):
        self.on_tick(self)


@pytest.fixture
def sender():
    """Recording chat sender."""
    return RecordingSender()


@pytest.fixture
def publisher():
    """Fresh overlay publisher."""
    return OverlayPublisher()


@pytest.fixture
def snapshots(publisher):
    """List that receives every snapshot the publisher delivers."""
    received = []
    publisher.subscribe(received.append)
    return received


@pytest.fixture
def tickers():
    """Every FakeTicker created by the engine, in creation order."""
    return []


@pytest.fixture
def engine(sender, publisher, tickers):
    """Engine wired to recording collaborators and fake tickers."""

    def factory(interval, on_tick):
        ticker = FakeTicker(interval=interval, on_tick=on_tick)
        tickers.append(ticker)
        return ticker

    return CountdownEngine(sender, publisher, scheduler_factory=factory)


@pytest.fixture
def running_engine(engine, sender, snapshots):
    """Engine with a 10s countdown (2s per token) running in channel 'chan-1'."""
    engine.handle_command("chan-1", "#countdown start 10 | 2 | Done!")
    sender.messages.clear()
    snapshots.clear()
    return engine
