"""
Countdown Bot - chat-driven countdown timer for JoystickTV streams.

Layout:
- common: configuration and logging setup
- lib: transport contracts and connection errors
- core: gateway channel, chat sender, command router, overlay server
- plugins: the countdown engine itself
"""

__version__ = "1.0.0"
