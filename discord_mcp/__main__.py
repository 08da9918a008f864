#!/usr/bin/env python3
"""
Discord MCP Server - expose Discord operations via Model Context Protocol.

Usage:
    # Stdio mode (for Claude Desktop and other MCP clients)
    python -m discord_mcp

    # Verify the token and guild before wiring up a client
    python -m discord_mcp check --guild-id 123456789012345678

Claude Desktop Configuration:
    {
        "mcpServers": {
            "discord": {
                "command": "python",
                "args": ["-m", "discord_mcp"],
                "env": {"DISCORD_TOKEN": "...", "DISCORD_GUILD_ID": "..."}
            }
        }
    }
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from .client import DiscordClient
from .config import ServerConfig, load_config
from .errors import ConfigurationError, DiscordMCPError
from .logger import configure_logging
from .server import serve


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="discord-mcp",
        description="Discord MCP Server - expose Discord operations via Model Context Protocol",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="serve",
        choices=["serve", "check"],
        help="serve: run the stdio MCP server (default); check: test the Discord connection",
    )
    parser.add_argument(
        "--guild-id",
        default=None,
        help="Default server ID (overrides DISCORD_GUILD_ID)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: DISCORD_MCP_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Path to a .env file (default: search from the working directory)",
    )
    return parser


async def check_connection(config: ServerConfig, client: Optional[DiscordClient] = None) -> int:
    """Connection smoke test. Returns a process exit code."""
    client = client or DiscordClient(config)
    print("Testing Discord connection...")
    print(f"Guild ID: {config.DISCORD_GUILD_ID or 'not set'}")

    try:
        print("\n1. Getting server info...")
        info = await client.get_server_info()
        print(f"   Server: {info['name']}")
        print(f"   Members: {info['memberCount']}")
        print(f"   Owner: {info['ownerId']}")

        print("\n2. Listing channels...")
        channels = await client.list_channels()
        print(f"   Found {len(channels)} channels:")
        for channel in channels[:5]:
            print(f"   - #{channel['name']} ({channel['type']})")
        if len(channels) > 5:
            print(f"   ... and {len(channels) - 5} more")

        print("\nAll checks passed! Discord connection is working.")
        return 0
    except DiscordMCPError as exc:
        print(f"\nCheck failed: {exc}", file=sys.stderr)
        return 1
    finally:
        await client.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = load_config(args.env_file)
    if args.guild_id:
        config.DISCORD_GUILD_ID = args.guild_id
    if args.log_level:
        config.LOG_LEVEL = args.log_level.upper()

    configure_logging(config.LOG_LEVEL, config.LOG_FILE)

    try:
        config.require_token()
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.command == "check":
        return asyncio.run(check_connection(config))

    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
