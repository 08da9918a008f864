import logging
from logging.handlers import RotatingFileHandler

import pytest

from discord_mcp.config import ServerConfig, load_config
from discord_mcp.errors import ConfigurationError
from discord_mcp.logger import configure_logging

ENV_VARS = [
    "DISCORD_TOKEN",
    "DISCORD_GUILD_ID",
    "DISCORD_API_BASE",
    "DISCORD_CDN_BASE",
    "DISCORD_WEBHOOK_BASE",
    "REQUEST_TIMEOUT",
    "DISCORD_MCP_LOG_LEVEL",
    "DISCORD_MCP_LOG_FILE",
]


@pytest.fixture
def clean_env(monkeypatch):
    # setenv first so teardown also removes anything a .env file loads
    for name in ENV_VARS:
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)
    return monkeypatch


def test_defaults(clean_env, tmp_path):
    config = load_config(str(tmp_path / "missing.env"))
    assert config.DISCORD_TOKEN is None
    assert config.DISCORD_GUILD_ID is None
    assert config.DISCORD_API_BASE == "https://discord.com/api/v10"
    assert config.REQUEST_TIMEOUT == 30.0
    assert config.LOG_LEVEL == "INFO"
    assert config.LOG_FILE is None


def test_environment_overrides(clean_env, tmp_path):
    clean_env.setenv("DISCORD_TOKEN", " abc ")
    clean_env.setenv("DISCORD_GUILD_ID", "123")
    clean_env.setenv("REQUEST_TIMEOUT", "5")
    clean_env.setenv("DISCORD_MCP_LOG_LEVEL", "debug")
    config = load_config(str(tmp_path / "missing.env"))
    assert config.DISCORD_TOKEN == "abc"
    assert config.DISCORD_GUILD_ID == "123"
    assert config.REQUEST_TIMEOUT == 5.0
    assert config.LOG_LEVEL == "DEBUG"


def test_blank_values_are_unset(clean_env, tmp_path):
    clean_env.setenv("DISCORD_GUILD_ID", "   ")
    assert load_config(str(tmp_path / "missing.env")).DISCORD_GUILD_ID is None


def test_env_file_does_not_override_environment(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("DISCORD_TOKEN=from-file\nDISCORD_GUILD_ID=456\n")
    clean_env.setenv("DISCORD_GUILD_ID", "789")
    config = load_config(str(env_file))
    assert config.DISCORD_TOKEN == "from-file"
    assert config.DISCORD_GUILD_ID == "789"


class TestAuthHeader:
    def test_adds_bot_prefix(self):
        assert ServerConfig(DISCORD_TOKEN="abc").auth_header == "Bot abc"

    def test_keeps_existing_prefix(self):
        assert ServerConfig(DISCORD_TOKEN="Bot abc").auth_header == "Bot abc"

    def test_missing_token(self):
        with pytest.raises(ConfigurationError, match="DISCORD_TOKEN environment variable is required"):
            ServerConfig().require_token()


def test_log_file_handler_added_once(tmp_path):
    log_file = str(tmp_path / "server.log")
    logger = configure_logging("INFO", log_file)
    configure_logging("INFO", log_file)
    try:
        handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(handlers) == 1
        assert logger is logging.getLogger("discord_mcp")
    finally:
        for handler in [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]:
            logger.removeHandler(handler)
            handler.close()
