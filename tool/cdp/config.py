"""Configuration management for CDP tools.

Supports multiple configuration sources with precedence:
CLI flags > Environment variables > Config file > Defaults

Usage:
    >>> config = Configuration()
    >>> config.load_from_file("~/.cdprc")
    >>> config.load_from_env()
    >>> config.merge(chrome_port=9333)  # CLI overrides
    >>> print(config.chrome_port)
    9333
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Optional

from .connection import DEFAULT_MAX_SIZE

logger = logging.getLogger(__name__)


def parse_timeout(value: Any) -> Optional[float]:
    """Convert a timeout setting to seconds; "none", "off" and "0" mean no timeout.

    Raises:
        ValueError: If the value is neither a disabling keyword nor a positive number
    """
    if value is None:
        return None
    if isinstance(value, str) and value.strip().lower() in ("", "none", "off"):
        return None
    seconds = float(value)
    if seconds < 0:
        raise ValueError(f"timeout must not be negative, got {value}")
    return seconds or None


class Configuration:
    """Configuration manager with layered precedence.

    Precedence order (highest to lowest):
    1. CLI arguments (via merge method)
    2. Environment variables (CDP_* prefix)
    3. Config file (~/.cdprc JSON)
    4. Default values

    Attributes:
        chrome_host: Chrome remote debugging host (default: 127.0.0.1)
        chrome_port: Chrome remote debugging port (default: 9222)
        call_timeout: CDP command timeout in seconds (default: None, wait forever)
        http_timeout: Target discovery HTTP timeout in seconds (default: 5.0)
        max_size: Maximum WebSocket message size in bytes (default: 64MB)
        log_level: Logging level (default: "WARNING")
        log_format: Log output format "text" or "json" (default: "text")
    """

    DEFAULTS = {
        "chrome_host": "127.0.0.1",
        "chrome_port": 9222,
        "call_timeout": None,
        "http_timeout": 5.0,
        "max_size": DEFAULT_MAX_SIZE,
        "log_level": "WARNING",
        "log_format": "text",
    }

    # Keys whose None value is meaningful, so merge() must not skip it
    NULLABLE = frozenset({"call_timeout"})

    def __init__(self):
        """Initialize configuration with default values."""
        self.chrome_host: str = self.DEFAULTS["chrome_host"]
        self.chrome_port: int = self.DEFAULTS["chrome_port"]
        self.call_timeout: Optional[float] = self.DEFAULTS["call_timeout"]
        self.http_timeout: float = self.DEFAULTS["http_timeout"]
        self.max_size: int = self.DEFAULTS["max_size"]
        self.log_level: str = self.DEFAULTS["log_level"]
        self.log_format: str = self.DEFAULTS["log_format"]

    def load_from_file(self, file_path: str) -> None:
        """Load configuration from JSON file.

        Args:
            file_path: Path to config file (typically ~/.cdprc)

        Note:
            Invalid JSON or missing file is ignored with a log message.
            Partial configs are merged with existing values.
        """
        path = Path(file_path).expanduser()

        if not path.exists():
            logger.debug(f"Config file not found: {path}")
            return

        try:
            with open(path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in config file {path}: {e}")
            return
        except OSError as e:
            logger.warning(f"Error loading config file {path}: {e}")
            return

        if not isinstance(data, dict):
            logger.warning(f"Config file {path} must contain a JSON object")
            return

        if "call_timeout" in data:
            try:
                data["call_timeout"] = parse_timeout(data["call_timeout"])
            except (ValueError, TypeError) as e:
                logger.warning(f"Invalid call_timeout in {path}: {e}")
                del data["call_timeout"]

        self._merge_dict(data, explicit_none=True)
        logger.info(f"Loaded configuration from {path}")

    def load_from_env(self) -> None:
        """Load configuration from environment variables.

        Environment variables use CDP_ prefix:
        - CDP_CHROME_HOST
        - CDP_CHROME_PORT
        - CDP_CALL_TIMEOUT ("none" disables the timeout)
        - CDP_HTTP_TIMEOUT
        - CDP_MAX_SIZE
        - CDP_LOG_LEVEL
        - CDP_LOG_FORMAT

        Invalid values are ignored with warning log.
        """
        env_mappings = {
            "CDP_CHROME_HOST": ("chrome_host", str),
            "CDP_CHROME_PORT": ("chrome_port", int),
            "CDP_CALL_TIMEOUT": ("call_timeout", parse_timeout),
            "CDP_HTTP_TIMEOUT": ("http_timeout", float),
            "CDP_MAX_SIZE": ("max_size", int),
            "CDP_LOG_LEVEL": ("log_level", str),
            "CDP_LOG_FORMAT": ("log_format", str),
        }

        for env_var, (attr_name, type_converter) in env_mappings.items():
            value = os.getenv(env_var)
            if value is not None:
                try:
                    converted_value = type_converter(value)
                    setattr(self, attr_name, converted_value)
                    logger.debug(f"Loaded {attr_name}={converted_value} from {env_var}")
                except (ValueError, TypeError) as e:
                    logger.warning(f"Invalid value for {env_var}: {value} ({e})")

    def merge(self, **kwargs) -> None:
        """Merge CLI arguments into configuration (highest precedence).

        None values mean "not given" and are skipped.

        Example:
            >>> config.merge(chrome_port=9333, call_timeout=15.0)
        """
        self._merge_dict(kwargs)

    def _merge_dict(self, data: dict, explicit_none: bool = False) -> None:
        for key, value in data.items():
            if key not in self.DEFAULTS:
                continue
            if value is None and not (explicit_none and key in self.NULLABLE):
                continue
            setattr(self, key, value)
            logger.debug(f"Set {key}={value}")

    def to_dict(self) -> dict:
        """Export configuration as dictionary."""
        return {key: getattr(self, key) for key in self.DEFAULTS}

    def __repr__(self) -> str:
        return f"Configuration({self.to_dict()})"
