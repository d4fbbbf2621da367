"""
Countdown Bot Core Module

Contains the runtime plumbing around the countdown engine:
- Normalized inbound events
- JoystickTV gateway channel (websockets)
- Fire-and-forget chat sender
- Command router with the moderator/owner permission gate
- Overlay SSE endpoints
"""

from .chat_sender import ChatSender
from .events import ChatMessage, EventTypes, Tip
from .joystick_channel import JoystickChannel, parse_gateway_message
from .overlay_server import create_overlay_app, snapshot_events
from .router import CommandRouter

__all__ = [
    'ChatMessage',
    'ChatSender',
    'CommandRouter',
    'EventTypes',
    'JoystickChannel',
    'Tip',
    'create_overlay_app',
    'parse_gateway_message',
    'snapshot_events',
]
