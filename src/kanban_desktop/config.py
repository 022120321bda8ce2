"""
Configuration management for Kanban Desktop
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

import yaml

logger = logging.getLogger(__name__)

DEFAULT_BOARD_URL = "https://cryptpad.arch-linux.cz/kanban/b/1"
OVERRIDE_FILE = Path.home() / ".config" / "kanban.conf"


def default_config_dir() -> Path:
    override = os.environ.get("KANBAN_DESKTOP_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base / "kanban-desktop"


def is_absolute_url(value: str) -> bool:
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return bool(parts.scheme and parts.netloc)


def read_board_url_override(path: Path = OVERRIDE_FILE) -> str | None:
    """Return the first usable URL line of the override file, or None.

    Blank lines and lines starting with ``#`` are skipped. A missing file
    is expected and silent; any other read error is logged.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read %s: %s", path, e)
        return None

    for line in text.splitlines():
        candidate = line.strip()
        if not candidate or candidate.startswith("#"):
            continue
        if is_absolute_url(candidate):
            return candidate
        logger.debug("Ignoring malformed URL in %s: %r", path, candidate)
        return None
    return None


class Config:
    """Configuration manager for the application"""

    def __init__(self, config_dir: Path | None = None):
        self.config_dir = Path(config_dir) if config_dir else default_config_dir()
        self.config_file = self.config_dir / "config.yaml"
        self.session_file = self.config_dir / "session.yaml"

        self.defaults = {
            "board": {
                "default_url": DEFAULT_BOARD_URL,
                "origin": "https://cryptpad.arch-linux.cz",
                "path_prefix": "/kanban/",
                "profile_name": "kanban-board",
            },
            "window": {
                "width": 1200,
                "height": 800,
                "min_width": 200,
                "min_height": 400,
            },
            "timing": {
                "url_debounce_ms": 200,
                "workspace_retry_ms": 150,
                "bounds_debounce_ms": 250,
                "tool_timeout_s": 1.5,
            },
            "logging": {
                "debug": False,
                "retention": 5,
            },
        }

        self.config = self.load_config()

    def load_config(self) -> dict[str, Any]:
        """Load configuration from file or create default"""
        if not self.config_file.exists():
            self.save_config(self.defaults)
            return copy.deepcopy(self.defaults)

        try:
            with open(self.config_file, encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Error loading config %s: %s", self.config_file, e)
            return copy.deepcopy(self.defaults)

        if loaded is not None and not isinstance(loaded, dict):
            logger.warning("Ignoring config %s: top level is not a mapping", self.config_file)
            return copy.deepcopy(self.defaults)
        return self._merge_config(self.defaults, loaded or {})

    def save_config(self, config: dict[str, Any] | None = None) -> None:
        """Save configuration to file"""
        if config is None:
            config = self.config

        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, "w", encoding="utf-8") as f:
                yaml.safe_dump(config, f, default_flow_style=False)
        except OSError as e:
            logger.warning("Error saving config %s: %s", self.config_file, e)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation"""
        value = self.config

        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value using dot notation"""
        keys = key.split(".")
        config = self.config

        for k in keys[:-1]:
            if not isinstance(config.get(k), dict):
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value
        self.save_config()

    def _merge_config(
        self, defaults: dict[str, Any], user_config: dict[str, Any]
    ) -> dict[str, Any]:
        """Recursively merge user config with defaults"""
        result = copy.deepcopy(defaults)

        for key, value in user_config.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value

        return result

    @property
    def debug_logging(self) -> bool:
        return bool(self.get("logging.debug", False))
