"""Tests for settings loading."""

import pytest

from cmdwire.config import Config
from cmdwire.context import DEFAULT_PREFIX, Context


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # setenv first so teardown also drops values loaded from .env
    for name in ("CMDWIRE_PREFIX", "BOT_TOKEN"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def write_settings(tmp_path, text):
    (tmp_path / "settings.yaml").write_text(text, encoding="utf-8")
    return Config(config_dir=tmp_path)


def test_defaults_without_files(tmp_path):
    """Config should fall back to defaults with no files present."""
    config = Config(config_dir=tmp_path)
    assert config.prefix == DEFAULT_PREFIX
    assert config.bot_name == ""
    assert config.reply_errors is True
    assert config.logging_level == "INFO"
    assert config.log_dir == tmp_path.parent / "logs"


def test_settings_yaml(tmp_path):
    """Values from settings.yaml should be read."""
    config = write_settings(tmp_path, (
        "prefix: '!'\n"
        "name: helper\n"
        "description: a helpful bot\n"
        "reply_errors: false\n"
        "logging:\n"
        "  level: DEBUG\n"
        "  subsystem_levels:\n"
        "    dispatch: WARNING\n"
    ))
    assert config.prefix == "!"
    assert config.bot_name == "helper"
    assert config.bot_description == "a helpful bot"
    assert config.reply_errors is False
    assert config.logging_level == "DEBUG"
    assert config.logging_subsystem_levels == {"dispatch": "WARNING"}


def test_env_prefix_wins(tmp_path, monkeypatch):
    """The prefix from the environment should override YAML."""
    config = write_settings(tmp_path, "prefix: '!'\n")
    monkeypatch.setenv("CMDWIRE_PREFIX", "$")
    assert config.prefix == "$"


def test_non_string_prefix_falls_back(tmp_path):
    """A non-string prefix should fall back to the default."""
    config = write_settings(tmp_path, "prefix: 5\n")
    assert config.prefix == DEFAULT_PREFIX
    config.validate()


def test_bot_token_from_dotenv(tmp_path, monkeypatch):
    """The bot token should load from .env."""
    (tmp_path / ".env").write_text("BOT_TOKEN=abc\n", encoding="utf-8")
    config = Config(config_dir=tmp_path)
    assert config.bot_token == "abc"


def test_context_from_config(tmp_path):
    """Context.from_config should carry settings from the config."""
    config = write_settings(tmp_path, "prefix: '?'\nname: helper\nreply_errors: false\n")
    ctx = Context.from_config(session=None, config=config)
    assert ctx.prefix == "?"
    assert ctx.name == "helper"
    assert ctx.format_error(ValueError("x")) == ""
