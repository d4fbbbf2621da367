"""
Unit tests for configuration loading and logger setup.
"""

import io
import json
import logging

import pytest

from countdown_bot.common.config import (
    ConfigError,
    RobustFileHandler,
    configure_logger,
    get_config,
)


CREDENTIALS = {
    "api_host": "wss://joystick.example/cable",
    "client_id": "bot-id",
    "client_secret": "bot-secret",
}


@pytest.fixture
def json_config(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "joysticktv": dict(CREDENTIALS),
        "overlay": {"port": 9000},
        "countdown": {"default_per_token_seconds": 5},
        "retry": -1,
    }))
    return str(path)


class TestGetConfig:
    """Tests for get_config()."""

    def test_json_file(self, json_config):
        conf, params = get_config(json_config, environ={})

        assert conf["retry"] == -1
        assert params["api_host"] == CREDENTIALS["api_host"]
        assert params["client_id"] == "bot-id"
        assert params["retry"] == -1
        assert params["overlay_port"] == 9000
        assert params["overlay_host"] == "0.0.0.0"
        assert params["countdown"]["default_per_token_seconds"] == 5
        assert params["countdown"]["default_finish_message"] == "Countdown finished"
        assert params["gateway_identifier"] == '{"channel":"GatewayChannel"}'
        assert params["log_level"] == logging.INFO

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "joysticktv:\n"
            "  api_host: wss://joystick.example/cable\n"
            "  client_id: bot-id\n"
            "  client_secret: bot-secret\n"
            "log_level: debug\n"
            "countdown:\n"
            "  tick_interval: 0.5\n"
        )

        _conf, params = get_config(str(path), environ={})

        assert params["log_level"] == logging.DEBUG
        assert params["countdown"]["tick_interval"] == 0.5

    def test_environment_only(self):
        environ = {
            "JOYSTICKTV_API_HOST": "wss://env.example/cable",
            "JOYSTICKTV_CLIENT_ID": "env-id",
            "JOYSTICKTV_CLIENT_SECRET": "env-secret",
            "JOYSTICKTV_HOST": "https://env.example",
        }

        _conf, params = get_config(environ=environ)

        assert params["api_host"] == "wss://env.example/cable"
        assert params["client_secret"] == "env-secret"
        assert params["host"] == "https://env.example"

    def test_environment_overrides_file(self, json_config):
        _conf, params = get_config(json_config, environ={"JOYSTICKTV_CLIENT_ID": "other"})

        assert params["client_id"] == "other"
        assert params["client_secret"] == "bot-secret"

    def test_missing_credentials(self):
        with pytest.raises(ConfigError) as exc_info:
            get_config(environ={"JOYSTICKTV_CLIENT_ID": "only-id"})

        assert "api_host" in str(exc_info.value)
        assert "client_secret" in str(exc_info.value)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            get_config(str(tmp_path / "nope.json"), environ={})

    def test_unparseable_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(ConfigError):
            get_config(str(path), environ={})

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            get_config(str(path), environ={})

    def test_bad_log_level(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"joysticktv": CREDENTIALS, "log_level": "loud"}))

        with pytest.raises(ConfigError):
            get_config(str(path), environ={})


class TestConfigureLogger:
    """Tests for configure_logger()."""

    def test_stream_handler(self):
        stream = io.StringIO()
        logger = configure_logger("test.countdown.stream", stream, log_level=logging.DEBUG)

        logger.debug("hello")

        assert "[test.countdown.stream] [DEBUG] hello" in stream.getvalue()
        for handler in list(logger.handlers):
            logger.removeHandler(handler)

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "bot.log"
        logger = configure_logger(logging.getLogger("test.countdown.file"), str(log_file))

        logger.info("written")
        handlers = list(logger.handlers)
        for handler in handlers:
            handler.close()
            logger.removeHandler(handler)

        assert any(isinstance(h, RobustFileHandler) for h in handlers)
        assert "written" in log_file.read_text()
