"""
plugins/countdown/overlay.py

Broadcast hub that fans countdown snapshots out to display subscribers.
"""

import itertools
import logging
from typing import Callable, Dict, Optional

from .countdown import CountdownSnapshot


SnapshotCallback = Callable[[CountdownSnapshot], None]


class OverlayPublisher:
    """
    Synchronous pub/sub hub for countdown snapshots.

    Features:
    - Delivery in subscription order
    - Error isolation (one subscriber fails, others still receive)
    - Safe to subscribe/unsubscribe from inside a callback
    - Delivery statistics

    Args:
        logger: Optional logger instance

    Example:
        publisher = OverlayPublisher()
        unsubscribe = publisher.subscribe(lambda snap: print(snap.formatted_remaining))
        publisher.publish(engine.get_snapshot())
        unsubscribe()
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("plugin.countdown.overlay")

        # Subscriptions: token -> callback (dicts keep insertion order)
        self._subscribers: Dict[int, SnapshotCallback] = {}
        self._tokens = itertools.count(1)

        # Statistics
        self._stats = {
            "snapshots_published": 0,
            "snapshots_delivered": 0,
            "subscriber_errors": 0,
        }

    def subscribe(self, callback: SnapshotCallback) -> Callable[[], None]:
        """
        Register a callback for every published snapshot.

        Args:
            callback: Function called with each CountdownSnapshot

        Returns:
            Unsubscribe function. Calling it more than once is harmless.
        """
        token = next(self._tokens)
        self._subscribers[token] = callback
        self.logger.debug(f"📡 Overlay subscriber #{token} added")

        def unsubscribe() -> None:
            if self._subscribers.pop(token, None) is not None:
                self.logger.debug(f"📡 Overlay subscriber #{token} removed")

        return unsubscribe

    def publish(self, snapshot: CountdownSnapshot) -> None:
        """
        Deliver a snapshot to every current subscriber.

        Args:
            snapshot: Snapshot to deliver
        """
        self._stats["snapshots_published"] += 1

        # Copy first: callbacks may subscribe or unsubscribe while we iterate
        subscribers = list(self._subscribers.items())
        for token, callback in subscribers:
            try:
                callback(snapshot)
                self._stats["snapshots_delivered"] += 1
            except Exception as e:
                self._stats["subscriber_errors"] += 1
                self.logger.error(
                    f"❌ Overlay subscriber #{token} failed: {e}",
                    exc_info=True,
                )

    @property
    def subscriber_count(self) -> int:
        """Number of active subscribers."""
        return len(self._subscribers)

    def get_stats(self) -> Dict[str, int]:
        """
        Get publisher statistics.

        Returns:
            Dict with snapshots_published, snapshots_delivered, subscriber_errors
        """
        return self._stats.copy()

    def __repr__(self) -> str:
        """Developer representation."""
        return (
            f"<OverlayPublisher: {len(self._subscribers)} subscribers, "
            f"{self._stats['snapshots_published']} published>"
        )
