"""
Discord MCP Server - Discord server, channel, message and webhook operations
as Model Context Protocol tools.
"""

__version__ = "1.0.0"

from .client import DiscordClient
from .config import ServerConfig, load_config
from .dispatch import Dispatcher, Err, Ok, render_text
from .tools import TOOL_NAMES, TOOLS, ToolDescriptor, get_tool, list_tools
from .validation import validate_tool_input

__all__ = [
    "__version__",
    "DiscordClient",
    "Dispatcher",
    "Err",
    "Ok",
    "ServerConfig",
    "TOOLS",
    "TOOL_NAMES",
    "ToolDescriptor",
    "get_tool",
    "list_tools",
    "load_config",
    "render_text",
    "validate_tool_input",
]
