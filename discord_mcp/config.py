import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigurationError

# ---------------- SERVER CONFIGURATION ----------------
@dataclass
class ServerConfig:
    """Runtime settings for the Discord MCP server."""
    # Server identity
    SERVER_NAME: str = "discord-mcp"
    SERVER_VERSION: str = "1.0.0"

    # Credentials
    DISCORD_TOKEN: Optional[str] = None
    DISCORD_GUILD_ID: Optional[str] = None

    # API Configuration
    DISCORD_API_BASE: str = "https://discord.com/api/v10"
    DISCORD_CDN_BASE: str = "https://cdn.discordapp.com"
    DISCORD_WEBHOOK_BASE: str = "https://discord.com/api/webhooks"
    REQUEST_TIMEOUT: float = 30.0
    CONNECTION_POOL_SIZE: int = 100
    MAX_KEEPALIVE_CONNECTIONS: int = 20

    # Guild member listing
    MEMBER_PAGE_SIZE: int = 1000  # Discord maximum

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    @property
    def auth_header(self) -> str:
        """Token in the form Discord expects for bot authorization."""
        token = self.require_token()
        if not token.startswith("Bot "):
            token = f"Bot {token}"
        return token

    def require_token(self) -> str:
        if not self.DISCORD_TOKEN:
            raise ConfigurationError("DISCORD_TOKEN environment variable is required")
        return self.DISCORD_TOKEN


def _env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def load_config(env_file: Optional[str] = None) -> ServerConfig:
    """Build a ServerConfig from defaults, a .env file and the environment.

    Variables already set in the process environment win over the .env file.
    """
    load_dotenv(env_file or find_dotenv(usecwd=True), override=False)

    config = ServerConfig()

    # Environment variable overrides
    config.DISCORD_TOKEN = _env("DISCORD_TOKEN")
    config.DISCORD_GUILD_ID = _env("DISCORD_GUILD_ID")
    config.DISCORD_API_BASE = _env("DISCORD_API_BASE") or config.DISCORD_API_BASE
    config.DISCORD_CDN_BASE = _env("DISCORD_CDN_BASE") or config.DISCORD_CDN_BASE
    config.DISCORD_WEBHOOK_BASE = _env("DISCORD_WEBHOOK_BASE") or config.DISCORD_WEBHOOK_BASE
    config.REQUEST_TIMEOUT = float(_env("REQUEST_TIMEOUT") or config.REQUEST_TIMEOUT)
    config.LOG_LEVEL = (_env("DISCORD_MCP_LOG_LEVEL") or config.LOG_LEVEL).upper()
    config.LOG_FILE = _env("DISCORD_MCP_LOG_FILE")

    return config
