"""
Abstract connection adapter for chat platforms.

This module defines the ConnectionAdapter abstract base class that the
gateway channel implements. The countdown core only depends on this
interface, so tests can swap in a fake transport.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional


class ConnectionAdapter(ABC):
    """
    Abstract interface for platform connections.

    Attributes:
        logger: Logger instance for connection events
        is_connected: True when a send target is available

    Example:
        >>> class MyConnection(ConnectionAdapter):
        ...     async def connect(self):
        ...         self._is_connected = True
        ...     # ... implement other methods
        >>> conn = MyConnection()
        >>> await conn.connect()
        >>> await conn.send_message("Hello world", channel_id="abc")
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize connection adapter.

        Args:
            logger: Optional logger instance. If None, creates default logger
                    named after the class.
        """
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self._is_connected = False

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish connection to the platform.

        Raises:
            ConnectionError: If connection fails
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """
        Close connection gracefully.

        Should not raise; makes a best effort to release resources.
        """
        pass

    @abstractmethod
    async def send_message(self, content: str, **metadata) -> None:
        """
        Send a chat message.

        Args:
            content: Message text to send
            **metadata: Platform-specific routing (e.g. channel_id)

        Raises:
            NotConnectedError: If not connected
            SendError: If message fails to send
        """
        pass

    @abstractmethod
    def on_event(self, event: str, callback: Callable) -> None:
        """
        Register callback for a normalized event.

        Callbacks can be async or sync functions and receive the event object.

        Args:
            event: Normalized event name (see core.events.EventTypes)
            callback: Callback function(event_object)
        """
        pass

    @abstractmethod
    def off_event(self, event: str, callback: Callable) -> None:
        """
        Unregister callback for event.

        Args:
            event: Normalized event name
            callback: Previously registered callback function
        """
        pass

    @property
    def is_connected(self) -> bool:
        """
        Check if connection is active.

        Returns:
            True if connected, False otherwise
        """
        return self._is_connected

    @abstractmethod
    async def reconnect(self) -> None:
        """
        Reconnect after disconnection.

        Raises:
            ConnectionError: If reconnection fails
        """
        pass
