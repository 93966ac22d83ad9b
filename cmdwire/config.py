"""Configuration management for cmdwire.

Loads ``settings.yaml`` and ``.env`` from a config directory into a
typed Config object. Property getters provide safe access with
defaults for the router (prefix, bot name/description, error replies)
and for logging.

``get_config()`` returns the process-wide instance.
"""

import os
from pathlib import Path
from typing import Optional

import structlog
import yaml
from dotenv import load_dotenv

from .context import DEFAULT_PREFIX

logger = structlog.get_logger("cmdwire.registry")

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Config:
    """Central configuration manager for cmdwire.

    Thread-safe for reads; nothing mutates after __init__.

    Args:
        config_dir: Path to the config directory. Defaults to
            ``<cwd>/config/``.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        if config_dir is None:
            config_dir = Path.cwd() / "config"
        self.config_dir = Path(config_dir)

        env_file = self.config_dir / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        self.settings = self._load_yaml("settings.yaml")

    def _load_yaml(self, filename: str) -> dict:
        path = self.config_dir / filename
        if not path.exists():
            return {}
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    def validate(self) -> None:
        """Check settings at startup.

        Logs warnings/errors but does not raise -- the router falls
        back to defaults for anything malformed.
        """
        prefix = self.settings.get("prefix")
        if prefix is not None and not isinstance(prefix, str):
            logger.error("config_invalid_value", key="prefix", value=prefix)
        elif self.prefix.strip() != self.prefix and self.prefix.strip():
            logger.warning(
                "config_prefix_whitespace",
                prefix=self.prefix,
                hint="Whitespace is part of the prefix and must be typed",
            )

        level = str(self.logging_level).upper()
        if level not in _LOG_LEVELS:
            logger.error(
                "config_invalid_value", key="logging.level", value=level,
                valid=",".join(_LOG_LEVELS),
            )

        if not self.bot_token:
            logger.warning("no_bot_token", msg="Transport will not be able to log in")

    # Router configuration
    @property
    def prefix(self) -> str:
        """Command prefix. Env var CMDWIRE_PREFIX takes precedence."""
        env = os.environ.get("CMDWIRE_PREFIX")
        if env is not None:
            return env
        prefix = self.settings.get("prefix", DEFAULT_PREFIX)
        if not isinstance(prefix, str):
            return DEFAULT_PREFIX
        return prefix

    @property
    def bot_name(self) -> str:
        """Descriptive bot name (optional)."""
        return self.settings.get("name", "")

    @property
    def bot_description(self) -> str:
        """Descriptive bot blurb (optional)."""
        return self.settings.get("description", "")

    @property
    def bot_token(self) -> str:
        """Transport login token from BOT_TOKEN (never stored in YAML)."""
        return os.environ.get("BOT_TOKEN", "")

    @property
    def reply_errors(self) -> bool:
        """Whether failed commands are answered in the channel (default True)."""
        return bool(self.settings.get("reply_errors", True))

    # Logging configuration (see logging_config.setup_logging)
    def _logging(self, key: str, default):
        section = self.settings.get("logging") or {}
        return section.get(key, default)

    @property
    def log_dir(self) -> Path:
        """Where log files go; ``<config_dir>/../logs`` unless ``log_dir`` is set."""
        if self.settings.get("log_dir"):
            return Path(self.settings["log_dir"]).expanduser()
        return self.config_dir.parent / "logs"

    @property
    def logging_level(self) -> str:
        return self._logging("level", "INFO")

    @property
    def logging_subsystem_levels(self) -> dict:
        """Level overrides keyed by subsystem, e.g. ``{"dispatch": "DEBUG"}``."""
        return self._logging("subsystem_levels", {}) or {}

    @property
    def logging_max_file_size_mb(self) -> int:
        return int(self._logging("max_file_size_mb", 10))

    @property
    def logging_backup_count(self) -> int:
        return int(self._logging("backup_count", 5))


_config: Optional[Config] = None


def get_config() -> Config:
    """Return the process-wide Config, loading it on first use."""
    global _config
    if _config is None:
        _config = Config()
    return _config
