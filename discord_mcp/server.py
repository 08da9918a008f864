"""
MCP transport adapter.

Serves the tool catalog and forwards tool calls to the Dispatcher over the
MCP stdio transport. Successful calls come back as pretty-printed JSON text;
failed calls as an error result whose text is ``Error: <message>``.
"""

import asyncio
import logging
import signal
from typing import Any, Dict, List, Optional

import mcp.types as types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from .client import DiscordClient
from .config import ServerConfig
from .dispatch import Dispatcher, Err, render_text
from .tools import list_tools

logger = logging.getLogger(__name__)


class ToolCallError(Exception):
    """Carries an Err envelope's rendered text to the MCP error result."""


def mcp_tools() -> List[types.Tool]:
    return [types.Tool(**t.to_mcp_format()) for t in list_tools()]


async def call_tool(dispatcher: Dispatcher, name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
    """Dispatch one call and render its envelope as MCP content."""
    envelope = await dispatcher.dispatch(name, arguments or {})
    text = render_text(envelope)
    if isinstance(envelope, Err):
        # The SDK turns a raised exception into an isError result with str(exc) as text.
        raise ToolCallError(text)
    return [types.TextContent(type="text", text=text)]


def create_server(dispatcher: Dispatcher, config: ServerConfig) -> Server:
    app = Server(config.SERVER_NAME, version=config.SERVER_VERSION)

    @app.list_tools()
    async def handle_list_tools() -> List[types.Tool]:
        return mcp_tools()

    # Required-parameter checks are left to the client so every failure
    # renders the same way.
    @app.call_tool(validate_input=False)
    async def handle_call_tool(name: str, arguments: Dict[str, Any]) -> List[types.TextContent]:
        return await call_tool(dispatcher, name, arguments)

    return app


async def serve(config: ServerConfig, client: Optional[DiscordClient] = None) -> None:
    """Run the stdio MCP server until stdin closes or SIGINT/SIGTERM arrives."""
    client = client or DiscordClient(config)
    await client.start()

    app = create_server(Dispatcher(client), config)
    logger.info("Starting %s v%s on stdio", config.SERVER_NAME, config.SERVER_VERSION)

    loop = asyncio.get_running_loop()
    task = asyncio.current_task()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, task.cancel)
        except NotImplementedError:
            pass  # Windows

    try:
        async with stdio_server() as (read_stream, write_stream):
            await app.run(read_stream, write_stream, app.create_initialization_options())
    except asyncio.CancelledError:
        logger.info("Shutdown requested")
    finally:
        await client.close()
        logger.info("Server stopped")
