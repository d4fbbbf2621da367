#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import json
import logging
import os

import yaml


LOG_FORMAT = '[%(asctime).19s] [%(name)s] [%(levelname)s] %(message)s'

# Environment variables understood on top of the config file
ENV_OVERRIDES = {
    'JOYSTICKTV_HOST': 'host',
    'JOYSTICKTV_API_HOST': 'api_host',
    'JOYSTICKTV_CLIENT_ID': 'client_id',
    'JOYSTICKTV_CLIENT_SECRET': 'client_secret',
}

REQUIRED_KEYS = ('api_host', 'client_id', 'client_secret')


class ConfigError(Exception):
    """Configuration file missing, unreadable or incomplete."""
    pass


class RobustFileHandler(logging.FileHandler):
    """FileHandler that gracefully handles flush errors on Windows"""

    def flush(self):
        """Flush the stream, catching OSError on Windows file handles"""
        try:
            super().flush()
        except OSError as e:
            # Windows can fail to flush with "Invalid argument" when the
            # handle is in an inconsistent state
            if e.errno == 22:  # EINVAL
                pass
            else:
                raise


def configure_logger(logger,
                     log_file=None,
                     log_format=None,
                     log_level=logging.INFO):
    """Configure a logger with a file or stream handler

    Args:
        logger: Logger instance or logger name string
        log_file: File path string or file-like object (None for stderr)
        log_format: Format string for log messages
        log_level: Logging level (e.g., logging.INFO, logging.DEBUG)

    Returns:
        Configured logger instance
    """
    # Create file handler if path string, otherwise stream handler
    if isinstance(log_file, str):
        handler = RobustFileHandler(
            log_file,
            mode='a',
            encoding='utf-8',
            errors='replace'
        )
    else:
        handler = logging.StreamHandler(log_file)  # Default to stderr if None

    formatter = logging.Formatter(log_format or LOG_FORMAT)

    # Get logger by name if string provided
    if isinstance(logger, str):
        logger = logging.getLogger(logger)

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(log_level)

    return logger


def load_config_file(config_file):
    """Load a JSON or YAML configuration file

    Args:
        config_file: Path to the file; .yaml/.yml is read as YAML, anything
                     else as JSON

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If the file can't be read or parsed
    """
    try:
        with open(config_file, 'r', encoding='utf-8') as fp:
            if config_file.endswith(('.yaml', '.yml')):
                conf = yaml.safe_load(fp)
            else:
                conf = json.load(fp)
    except OSError as e:
        raise ConfigError(f'Cannot read config file {config_file}: {e}') from e
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigError(f'Cannot parse config file {config_file}: {e}') from e

    if conf is None:
        conf = {}
    if not isinstance(conf, dict):
        raise ConfigError(f'Config file {config_file} must contain a mapping')
    return conf


def get_config(config_file=None, environ=None):
    """Load configuration from an optional file plus environment overrides

    Args:
        config_file: JSON or YAML file path, or None to use only the environment
        environ: Mapping used instead of os.environ (for tests)

    Returns:
        Tuple of (conf, params) where:
            conf: Full configuration dictionary (environment applied)
            params: Flattened settings the bot needs, with defaults filled in

    Raises:
        ConfigError: If the file is unusable or credentials are missing
    """
    conf = load_config_file(config_file) if config_file else {}
    environ = os.environ if environ is None else environ

    # Gateway credentials may live in the environment instead of the file
    joysticktv = dict(conf.get('joysticktv') or {})
    for env_name, key in ENV_OVERRIDES.items():
        if environ.get(env_name):
            joysticktv[key] = environ[env_name]
    conf['joysticktv'] = joysticktv

    missing = [key for key in REQUIRED_KEYS if not joysticktv.get(key)]
    if missing:
        raise ConfigError(
            'Missing JoystickTV settings: ' + ', '.join(missing)
            + ' (set them under "joysticktv" or via JOYSTICKTV_* variables)'
        )

    overlay = conf.get('overlay') or {}
    countdown = conf.get('countdown') or {}

    log_level_str = str(conf.get('log_level', 'info'))
    log_level = getattr(logging, log_level_str.upper(), None)
    if not isinstance(log_level, int):
        raise ConfigError(f'Unknown log level: {log_level_str}')

    # Configure root logger with basic settings
    logging.basicConfig(level=log_level, format=LOG_FORMAT)
    if conf.get('log_file'):
        configure_logger(logging.getLogger(), conf['log_file'], LOG_FORMAT, log_level)

    return conf, {
        'host': joysticktv.get('host'),  # Web host (OAuth pages), informational
        'api_host': joysticktv['api_host'],  # Gateway websocket URL
        'client_id': joysticktv['client_id'],
        'client_secret': joysticktv['client_secret'],
        'gateway_identifier': joysticktv.get(
            'gateway_identifier', '{"channel":"GatewayChannel"}'
        ),
        'retry': int(conf.get('retry', 0)),  # Reconnect attempts (-1 = forever)
        'retry_delay': float(conf.get('retry_delay', 1)),  # Seconds between attempts
        'overlay_enabled': bool(overlay.get('enabled', True)),
        'overlay_host': overlay.get('host', '0.0.0.0'),
        'overlay_port': int(overlay.get('port', 8080)),
        'countdown': {
            'tick_interval': float(countdown.get('tick_interval', 1.0)),
            'default_per_token_seconds': countdown.get('default_per_token_seconds', 1),
            'default_finish_message': countdown.get(
                'default_finish_message', 'Countdown finished'
            ),
        },
        'log_level': log_level,
    }
