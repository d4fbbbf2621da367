"""
Normalized inbound events.

The gateway channel turns raw platform frames into these objects so the
router and engine never see platform JSON.
"""

from dataclasses import dataclass
from typing import Optional


class EventTypes:
    """
    Event name constants used with ConnectionAdapter.on_event().
    """

    # Chat
    CHAT_MESSAGE = "chat_message"

    # Stream events
    TIP = "tip"

    # Connection lifecycle
    CONNECT = "connect"
    DISCONNECT = "disconnect"


@dataclass(frozen=True)
class ChatMessage:
    """
    A chat line posted in a channel.

    Attributes:
        channel_id: Channel the message was posted in
        text: Message text
        author_is_moderator: Author moderates the channel
        author_is_owner: Author is the streamer who owns the channel
        author: Author's display name, if known
    """

    channel_id: str
    text: str
    author_is_moderator: bool = False
    author_is_owner: bool = False
    author: Optional[str] = None

    @property
    def is_privileged(self) -> bool:
        """Moderators and the channel owner may run commands."""
        return self.author_is_moderator or self.author_is_owner


@dataclass(frozen=True)
class Tip:
    """
    A tip sent to a channel.

    Attributes:
        channel_id: Channel that received the tip
        amount: Tip value in tokens
    """

    channel_id: str
    amount: float
