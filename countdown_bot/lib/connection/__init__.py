"""
Connection contracts for chat platforms.

This module provides the abstract transport interface and the exception
hierarchy shared by gateway implementations.
"""

from .adapter import ConnectionAdapter
from .errors import (
    AuthenticationError,
    ConnectionError,
    NotConnectedError,
    ProtocolError,
    SendError,
)

__all__ = [
    'ConnectionAdapter',
    'ConnectionError',
    'AuthenticationError',
    'NotConnectedError',
    'SendError',
    'ProtocolError',
]
