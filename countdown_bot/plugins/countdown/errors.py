"""
plugins/countdown/errors.py

Countdown command exceptions.

Both carry the chat text shown to the user; the engine catches them at the
command boundary and sends ``str(error)`` back to the channel.
"""


class CountdownError(Exception):
    """Base exception for rejected countdown commands."""
    pass


class ValidationError(CountdownError):
    """Command arguments are malformed (bad duration, bad grammar, unknown verb)."""
    pass


class StateError(CountdownError):
    """Command is not valid in the current state (e.g. stop with no countdown)."""
    pass
