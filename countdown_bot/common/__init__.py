"""Common utilities: configuration loading and logging setup."""
from .config import ConfigError, configure_logger, get_config

__all__ = ['ConfigError', 'get_config', 'configure_logger']
