"""
plugins/countdown/countdown.py

Countdown model and duration parsing utilities.

Provides:
- Duration parsing for the formats people actually type in chat
- Leading-duration parsing for grammars that mix a duration with free text
- Compact human-readable duration formatting
- CountdownState (mutable, engine-owned) and CountdownSnapshot (immutable view)
"""

import math
import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


# =============================================================================
# Duration Parsing
# =============================================================================

# "1:30" (mm:ss) or "1:02:03" (hh:mm:ss)
COLON_PATTERN = re.compile(r"([0-9]{1,2}):([0-9]{2})(?::([0-9]{2}))?")

# "90" (plain seconds)
SECONDS_PATTERN = re.compile(r"[0-9]+")

# "1h30m", "1h 30m 45s", "5 m"
TOKEN_SEQUENCE_PATTERN = re.compile(r"(?:[0-9]+\s*[hms]\s*)+")
TOKEN_PATTERN = re.compile(r"([0-9]+)\s*([hms])")

# Prefix variants used by parse_leading_duration. Each one must end at
# whitespace or end of text.
LEADING_COLON_PATTERN = re.compile(
    r"\s*([0-9]{1,2}:[0-9]{2}(?::[0-9]{2})?)(?=\s|$)\s*"
)
LEADING_TOKEN_PATTERN = re.compile(r"\s*([0-9]+)\s*([hms])", re.IGNORECASE)
LEADING_SECONDS_PATTERN = re.compile(r"\s*([0-9]+)(?=\s|$)\s*")

# Time unit multipliers (in seconds)
TIME_UNITS = {
    "h": 3600,
    "m": 60,
    "s": 1,
}

# Largest accepted duration; every value up to it is exact as a float
MAX_DURATION_SECONDS = 2 ** 53 - 1


def _colon_seconds(match: "re.Match") -> int:
    """Convert a COLON_PATTERN match to seconds, enforcing field bounds."""
    first, second, third = match.groups()
    if third is None:
        minutes, seconds = int(first), int(second)
        if seconds >= 60:
            raise ValueError(f"Seconds must be below 60 in '{match.group(0)}'")
        return minutes * 60 + seconds

    hours, minutes, seconds = int(first), int(second), int(third)
    if minutes >= 60 or seconds >= 60:
        raise ValueError(
            f"Minutes and seconds must be below 60 in '{match.group(0)}'"
        )
    return hours * 3600 + minutes * 60 + seconds


def _check_bound(seconds: int) -> int:
    if seconds > MAX_DURATION_SECONDS:
        raise ValueError(f"Duration is too long (max {MAX_DURATION_SECONDS} seconds)")
    return seconds


def parse_duration(text: str) -> int:
    """
    Parse user input into a whole number of seconds.

    Supported formats, tried in this order:
    - "1:30" (mm:ss, minutes unbounded) or "1:02:03" (hh:mm:ss)
    - "90" (plain seconds)
    - "1h30m", "1h 30m 45s", "45s" (unit tokens, summed)

    Args:
        text: User input string representing a duration.

    Returns:
        Duration in seconds (never negative).

    Raises:
        ValueError: If the format is not recognized, a field is out of range
            or the total exceeds MAX_DURATION_SECONDS.
    """
    value = str(text if text is not None else "").strip().lower()
    if not value:
        raise ValueError("Duration is empty")

    match = COLON_PATTERN.fullmatch(value)
    if match:
        return _check_bound(_colon_seconds(match))

    if SECONDS_PATTERN.fullmatch(value):
        return _check_bound(int(value))

    if TOKEN_SEQUENCE_PATTERN.fullmatch(value):
        return _check_bound(sum(
            int(amount) * TIME_UNITS[unit]
            for amount, unit in TOKEN_PATTERN.findall(value)
        ))

    raise ValueError(
        f"Couldn't parse '{value}'. Try: '90', '1:30', '1:02:03' or '1h 30m'"
    )


def parse_leading_duration(text: str) -> Tuple[int, int]:
    """
    Parse a duration at the start of ``text``.

    Accepts the same formats as :func:`parse_duration`, but only on a prefix
    of the string. The duration must be followed by whitespace or the end of
    the text, so "1h30mX" is rejected instead of silently reading "1h30m".

    Args:
        text: Input that starts with a duration, optionally followed by more text.

    Returns:
        Tuple of (seconds, consumed) where consumed is the number of
        characters of ``text`` taken by the duration, including surrounding
        whitespace.

    Raises:
        ValueError: If no duration is found at the start of the text, or it
            exceeds MAX_DURATION_SECONDS.
    """
    value = str(text if text is not None else "")
    if not value.strip():
        raise ValueError("Duration is empty")

    match = LEADING_COLON_PATTERN.match(value)
    if match:
        colon = COLON_PATTERN.fullmatch(match.group(1))
        return _check_bound(_colon_seconds(colon)), match.end()

    total = 0
    pos = 0
    matched_token = False
    while True:
        token = LEADING_TOKEN_PATTERN.match(value, pos)
        if not token:
            break
        matched_token = True
        total += int(token.group(1)) * TIME_UNITS[token.group(2).lower()]
        pos = token.end()

    if matched_token and (pos == len(value) or value[pos].isspace()):
        while pos < len(value) and value[pos].isspace():
            pos += 1
        return _check_bound(total), pos

    match = LEADING_SECONDS_PATTERN.match(value)
    if match:
        return _check_bound(int(match.group(1))), match.end()

    raise ValueError(f"No duration at the start of '{value.strip()}'")


def format_duration(seconds: Any) -> str:
    """
    Format a number of seconds as a compact string.

    Examples: 0 -> "0s", 90 -> "1m 30s", 3723 -> "1h 2m 3s", 3600 -> "1h".

    Args:
        seconds: Seconds to format. Negative, non-numeric or non-finite
            values are treated as zero.

    Returns:
        Formatted duration string.
    """
    # Ints are formatted exactly, never through float
    if isinstance(seconds, int) and not isinstance(seconds, bool):
        total_seconds = max(0, seconds)
    else:
        try:
            total = float(seconds)
        except (TypeError, ValueError, OverflowError):
            total = 0.0
        if not math.isfinite(total) or total < 0:
            total = 0.0
        total_seconds = int(total)

    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    secs = total_seconds % 60

    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


# =============================================================================
# Countdown Model
# =============================================================================

@dataclass(frozen=True)
class CountdownSnapshot:
    """
    Immutable point-in-time view of the countdown, delivered to subscribers.

    Attributes:
        running: Whether a countdown is ticking.
        remaining_seconds: Seconds left.
        formatted_remaining: remaining_seconds rendered by format_duration.
        per_token_increment_seconds: Seconds added per unit of tip value.
        finish_message: Chat text sent when the countdown reaches zero.
        channel_id: Channel the countdown belongs to (None before the first start).
        timestamp: Epoch seconds of the last state change.
    """

    running: bool
    remaining_seconds: int
    formatted_remaining: str
    per_token_increment_seconds: float
    finish_message: str
    channel_id: Optional[str]
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert snapshot to the dictionary streamed to the overlay page.

        Returns:
            Dictionary with the overlay's camelCase keys and ``ts`` in
            milliseconds.
        """
        return {
            "running": self.running,
            "remaining": self.remaining_seconds,
            "formatted": self.formatted_remaining,
            "perTokenIncrementSeconds": self.per_token_increment_seconds,
            "finishMessage": self.finish_message,
            "channelId": self.channel_id,
            "ts": int(self.timestamp * 1000),
        }


@dataclass
class CountdownState:
    """
    Mutable countdown state, owned by a single CountdownEngine.

    Attributes:
        running: True while a tick source is active.
        remaining_seconds: Seconds left, never negative.
        channel_id: Channel the active countdown belongs to.
        finish_message: Chat text sent when the countdown reaches zero.
        per_token_increment_seconds: Seconds added per unit of tip value.
        last_update: Epoch seconds of the last mutation (display only).
    """

    running: bool = False
    remaining_seconds: int = 0
    channel_id: Optional[str] = None
    finish_message: str = ""
    per_token_increment_seconds: float = 1
    last_update: float = field(default_factory=time.time)

    @property
    def formatted_remaining(self) -> str:
        """Remaining time as a compact string."""
        return format_duration(self.remaining_seconds)

    def touch(self) -> None:
        """Record that the state just changed."""
        self.last_update = time.time()

    def snapshot(self) -> CountdownSnapshot:
        """
        Take an immutable copy of the current state.

        Returns:
            CountdownSnapshot for publishing.
        """
        return CountdownSnapshot(
            running=self.running,
            remaining_seconds=max(0, self.remaining_seconds),
            formatted_remaining=self.formatted_remaining,
            per_token_increment_seconds=self.per_token_increment_seconds,
            finish_message=self.finish_message,
            channel_id=self.channel_id,
            timestamp=self.last_update,
        )
