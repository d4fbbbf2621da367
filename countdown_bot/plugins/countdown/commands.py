"""
plugins/countdown/commands.py

Chat command grammar for the countdown plugin.

Commands:
    #countdown start <duration> | <per_token> | <message>
    #countdown start <duration> | <message>
    #countdown start <duration>
    #countdown add <duration>
    #countdown set <duration>
    #countdown stop
    #countdown status
"""

from dataclasses import dataclass
from typing import Optional

from .countdown import parse_duration, parse_leading_duration
from .errors import ValidationError


COMMAND_PREFIX = "#countdown"

USAGE = "Usage: #countdown start|add|set|stop|status"
USAGE_START = "Usage: #countdown start duration | per_token | message"
USAGE_ADD = "Usage: #countdown add duration"
USAGE_SET = "Usage: #countdown set duration"


@dataclass(frozen=True)
class ParsedCommand:
    """A recognized countdown command split into verb and raw arguments."""

    verb: str
    argument_text: str


@dataclass(frozen=True)
class StartArguments:
    """Validated arguments of a start command."""

    seconds: int
    per_token_increment_seconds: float
    finish_message: str


def is_command(text: str) -> bool:
    """Check whether chat text begins with the countdown prefix."""
    return str(text or "").strip().lower().startswith(COMMAND_PREFIX)


def parse_command(text: str) -> Optional[ParsedCommand]:
    """
    Split a chat line into verb and argument text.

    Args:
        text: Raw chat message.

    Returns:
        ParsedCommand, or None when the text is not a countdown command.
        The verb is lower-cased and may be empty ("#countdown" alone).
    """
    trimmed = str(text or "").strip()
    if not trimmed.lower().startswith(COMMAND_PREFIX):
        return None

    rest = trimmed[len(COMMAND_PREFIX):].strip()
    parts = rest.split(None, 1)
    if not parts:
        return ParsedCommand(verb="", argument_text="")

    verb = parts[0].lower()
    argument_text = parts[1].strip() if len(parts) > 1 else ""
    return ParsedCommand(verb=verb, argument_text=argument_text)


def parse_start_arguments(
    argument_text: str, default_per_token: float = 1
) -> StartArguments:
    """
    Parse the arguments of ``#countdown start``.

    With pipes, three or more parts are duration | per_token | message (any
    further pipes belong to the message) and two parts are duration | message.
    Without pipes the whole argument must be a single duration.

    Args:
        argument_text: Text after the verb.
        default_per_token: Per-token increment when none is given.

    Returns:
        StartArguments with the finish message stripped (possibly empty).

    Raises:
        ValidationError: With the start usage text, on any invalid part.
    """
    raw = str(argument_text or "")

    if "|" in raw:
        parts = raw.split("|")
        try:
            seconds = parse_duration(parts[0].strip())
        except ValueError:
            raise ValidationError(USAGE_START)

        if len(parts) >= 3:
            try:
                per_token = parse_duration(parts[1].strip())
            except ValueError:
                raise ValidationError(USAGE_START)
            finish_message = "|".join(parts[2:]).strip()
        else:
            per_token = default_per_token
            finish_message = parts[1].strip()

        return StartArguments(
            seconds=seconds,
            per_token_increment_seconds=per_token,
            finish_message=finish_message,
        )

    try:
        seconds, consumed = parse_leading_duration(raw)
    except ValueError:
        raise ValidationError(USAGE_START)

    if raw[consumed:].strip():
        raise ValidationError(USAGE_START)

    return StartArguments(
        seconds=seconds,
        per_token_increment_seconds=default_per_token,
        finish_message="",
    )


def parse_duration_argument(argument_text: str, usage: str) -> int:
    """
    Parse a single-duration argument (add/set).

    Raises:
        ValidationError: With ``usage`` as the message.
    """
    try:
        return parse_duration(argument_text)
    except ValueError:
        raise ValidationError(usage)
