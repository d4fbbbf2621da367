"""
Connection-specific exceptions.

This module defines the exception hierarchy for gateway connection errors.
All exceptions inherit from ConnectionError for easy catching.
"""


class ConnectionError(Exception):
    """
    Base exception for connection errors.

    All connection-related exceptions inherit from this class,
    allowing catch-all exception handling when needed.
    """
    pass


class AuthenticationError(ConnectionError):
    """
    Gateway rejected the bot's credentials or subscription.
    """
    pass


class NotConnectedError(ConnectionError):
    """
    Operation requires an active, subscribed connection.

    Raised when attempting to send chat before the gateway confirmed the
    subscription, or after the socket closed.
    """
    pass


class SendError(ConnectionError):
    """
    Failed to send a frame over the socket.
    """
    pass


class ProtocolError(ConnectionError):
    """
    Gateway sent data that could not be understood.

    Raised for undecodable frames and malformed event payloads (for example
    tip metadata that is not JSON). Callers log and skip the frame.
    """
    pass
