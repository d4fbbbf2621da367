"""
plugins/countdown/__init__.py

Chat-driven countdown plugin.

Provides:
- Duration parsing ("90", "1:30", "1h 30m") and compact formatting
- The #countdown command grammar (start/add/set/stop/status)
- A single shared countdown that ticks once per second
- Tip-driven extensions
- Snapshot broadcasting for overlays
"""

from .commands import (
    COMMAND_PREFIX,
    ParsedCommand,
    StartArguments,
    is_command,
    parse_command,
    parse_start_arguments,
)
from .countdown import (
    MAX_DURATION_SECONDS,
    CountdownSnapshot,
    CountdownState,
    format_duration,
    parse_duration,
    parse_leading_duration,
)
from .errors import CountdownError, StateError, ValidationError
from .overlay import OverlayPublisher
from .plugin import CountdownEngine
from .scheduler import TickScheduler

__all__ = [
    "COMMAND_PREFIX",
    "MAX_DURATION_SECONDS",
    "CountdownEngine",
    "CountdownError",
    "CountdownSnapshot",
    "CountdownState",
    "OverlayPublisher",
    "ParsedCommand",
    "StartArguments",
    "StateError",
    "TickScheduler",
    "ValidationError",
    "format_duration",
    "is_command",
    "parse_command",
    "parse_duration",
    "parse_leading_duration",
    "parse_start_arguments",
]
