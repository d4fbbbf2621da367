"""Allow ``python -m countdown_bot``."""

from .bot import run

if __name__ == "__main__":
    run()
