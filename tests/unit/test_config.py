"""Unit tests for Configuration with precedence testing.
"""

import json
import pytest
from tool.cdp.config import Configuration, parse_timeout
from tool.cdp.connection import DEFAULT_MAX_SIZE


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "CDP_CHROME_HOST",
        "CDP_CHROME_PORT",
        "CDP_CALL_TIMEOUT",
        "CDP_HTTP_TIMEOUT",
        "CDP_MAX_SIZE",
        "CDP_LOG_LEVEL",
        "CDP_LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestConfigurationPrecedence:
    """Test configuration precedence (CLI > env > file > defaults)."""

    def test_default_values(self):
        config = Configuration()

        assert config.chrome_host == "127.0.0.1"
        assert config.chrome_port == 9222
        assert config.call_timeout is None
        assert config.http_timeout == 5.0
        assert config.max_size == DEFAULT_MAX_SIZE
        assert config.log_level == "WARNING"
        assert config.log_format == "text"

    def test_load_from_file(self, tmp_path):
        config_file = tmp_path / ".cdprc"
        config_file.write_text(
            json.dumps({"chrome_port": 9333, "call_timeout": 60, "log_level": "DEBUG"})
        )

        config = Configuration()
        config.load_from_file(str(config_file))

        assert config.chrome_port == 9333
        assert config.call_timeout == 60.0
        assert config.log_level == "DEBUG"
        # Defaults still apply for unset values
        assert config.chrome_host == "127.0.0.1"

    def test_file_can_disable_timeout(self, tmp_path):
        config_file = tmp_path / ".cdprc"
        config_file.write_text(json.dumps({"call_timeout": "none"}))

        config = Configuration()
        config.call_timeout = 10.0
        config.load_from_file(str(config_file))

        assert config.call_timeout is None

    def test_missing_file_is_ignored(self, tmp_path):
        config = Configuration()
        config.load_from_file(str(tmp_path / "nope.json"))
        assert config.to_dict() == Configuration().to_dict()

    def test_invalid_file_is_ignored(self, tmp_path, caplog):
        config_file = tmp_path / ".cdprc"
        config_file.write_text("{not json")

        config = Configuration()
        config.load_from_file(str(config_file))

        assert config.chrome_port == 9222
        assert "Invalid JSON" in caplog.text

    def test_unknown_file_keys_are_ignored(self, tmp_path):
        config_file = tmp_path / ".cdprc"
        config_file.write_text(json.dumps({"chrome_port": 9400, "theme": "dark"}))

        config = Configuration()
        config.load_from_file(str(config_file))

        assert config.chrome_port == 9400
        assert not hasattr(config, "theme")

    def test_load_from_env(self, clean_env):
        clean_env.setenv("CDP_CHROME_HOST", "10.0.0.5")
        clean_env.setenv("CDP_CHROME_PORT", "9444")
        clean_env.setenv("CDP_CALL_TIMEOUT", "45")
        clean_env.setenv("CDP_LOG_LEVEL", "INFO")

        config = Configuration()
        config.load_from_env()

        assert config.chrome_host == "10.0.0.5"
        assert config.chrome_port == 9444
        assert config.call_timeout == 45.0
        assert config.log_level == "INFO"
        assert config.http_timeout == 5.0

    def test_invalid_env_value_is_ignored(self, clean_env, caplog):
        clean_env.setenv("CDP_CHROME_PORT", "not-a-port")

        config = Configuration()
        config.load_from_env()

        assert config.chrome_port == 9222
        assert "Invalid value for CDP_CHROME_PORT" in caplog.text

    def test_cli_overrides_all(self, tmp_path, clean_env):
        config_file = tmp_path / ".cdprc"
        config_file.write_text(json.dumps({"chrome_port": 9333, "http_timeout": 60.0}))
        clean_env.setenv("CDP_CHROME_PORT", "9444")

        config = Configuration()
        config.load_from_file(str(config_file))
        config.load_from_env()
        config.merge(chrome_port=9555, chrome_host=None)

        assert config.chrome_port == 9555
        assert config.http_timeout == 60.0
        assert config.chrome_host == "127.0.0.1"

    def test_to_dict(self):
        assert set(Configuration().to_dict()) == set(Configuration.DEFAULTS)


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, None),
        ("none", None),
        ("OFF", None),
        ("0", None),
        ("2.5", 2.5),
        (30, 30.0),
    ],
)
def test_parse_timeout(value, expected):
    assert parse_timeout(value) == expected


@pytest.mark.parametrize("value", ["-1", "soon"])
def test_parse_timeout_rejects_bad_values(value):
    with pytest.raises(ValueError):
        parse_timeout(value)
