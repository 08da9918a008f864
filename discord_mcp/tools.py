"""
Tool catalog exposed over MCP.

Each tool is a ToolDescriptor: a unique name, a description for the calling
model, and a parameter schema. Every parameter is a string (Discord IDs are
string snowflakes; numeric values such as ``count`` are parsed later).

The catalog is built once at import time and never modified.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    description: str
    type: str = "string"


@dataclass(frozen=True)
class ToolDescriptor:
    """Definition of a single tool.

    Attributes:
        name: Unique identifier for the tool
        description: Human-readable description for LLM consumption
        parameters: Declared parameters, in schema order
        required: Names of required parameters, in declaration order
    """

    name: str
    description: str
    parameters: Tuple[ParameterSpec, ...] = ()
    required: Tuple[str, ...] = ()

    def __post_init__(self):
        declared = {p.name for p in self.parameters}
        missing = [r for r in self.required if r not in declared]
        if missing:
            raise ValueError(f"{self.name}: required parameters not declared: {missing}")

    @property
    def parameter_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.parameters)

    def input_schema(self) -> Dict[str, Any]:
        """JSON Schema for the tool's arguments."""
        return {
            "type": "object",
            "properties": {
                p.name: {"type": p.type, "description": p.description}
                for p in self.parameters
            },
            "required": list(self.required),
        }

    def to_mcp_format(self) -> Dict[str, Any]:
        """Convert to MCP tool format."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
        }


def _tool(name: str, description: str, params: List[Tuple[str, str]],
          required: Tuple[str, ...] = ()) -> ToolDescriptor:
    return ToolDescriptor(
        name=name,
        description=description,
        parameters=tuple(ParameterSpec(n, d) for n, d in params),
        required=required,
    )


# Shared parameter descriptions
_GUILD = ("guildId", "Discord server ID")
_CHANNEL = ("channelId", "Discord channel ID")
_USER = ("userId", "Discord user ID")
_MESSAGE = ("message", "Message content")
_NEW_MESSAGE = ("newMessage", "New message content")
_SPECIFIC_MESSAGE = ("messageId", "Specific message ID")
_REACTION_MESSAGE = ("messageId", "Discord message ID")
_EMOJI = ("emoji", "Emoji (Unicode or string)")
_COUNT = ("count", "Number of messages to retrieve")
_CATEGORY = ("categoryId", "Discord category ID")


# ---------------- SERVER ----------------
SERVER_TOOLS = (
    _tool("get_server_info", "Get detailed discord server information", [_GUILD]),
)

# ---------------- USERS & DIRECT MESSAGES ----------------
USER_TOOLS = (
    _tool(
        "get_user_id_by_name",
        "Get a Discord user's ID by username in a guild for ping usage <@id>.",
        [("username", "Discord username (optionally username#discriminator)"), _GUILD],
        required=("username",),
    ),
    _tool(
        "send_private_message",
        "Send a private message to a specific user",
        [_USER, _MESSAGE],
        required=("userId", "message"),
    ),
    _tool(
        "edit_private_message",
        "Edit a private message from a specific user",
        [_USER, _SPECIFIC_MESSAGE, _NEW_MESSAGE],
        required=("userId", "messageId", "newMessage"),
    ),
    _tool(
        "delete_private_message",
        "Delete a private message from a specific user",
        [_USER, _SPECIFIC_MESSAGE],
        required=("userId", "messageId"),
    ),
    _tool(
        "read_private_messages",
        "Read recent message history from a specific user",
        [_USER, _COUNT],
        required=("userId",),
    ),
)

# ---------------- CHANNEL MESSAGES ----------------
MESSAGE_TOOLS = (
    _tool(
        "send_message",
        "Send a message to a specific channel",
        [_CHANNEL, _MESSAGE],
        required=("channelId", "message"),
    ),
    _tool(
        "edit_message",
        "Edit a message from a specific channel",
        [_CHANNEL, _SPECIFIC_MESSAGE, _NEW_MESSAGE],
        required=("channelId", "messageId", "newMessage"),
    ),
    _tool(
        "delete_message",
        "Delete a message from a specific channel",
        [_CHANNEL, _SPECIFIC_MESSAGE],
        required=("channelId", "messageId"),
    ),
    _tool(
        "read_messages",
        "Read recent message history from a specific channel",
        [_CHANNEL, _COUNT],
        required=("channelId",),
    ),
    _tool(
        "add_reaction",
        "Add a reaction (emoji) to a specific message",
        [_CHANNEL, _REACTION_MESSAGE, _EMOJI],
        required=("channelId", "messageId", "emoji"),
    ),
    _tool(
        "remove_reaction",
        "Remove a specified reaction (emoji) from a message",
        [_CHANNEL, _REACTION_MESSAGE, _EMOJI],
        required=("channelId", "messageId", "emoji"),
    ),
)

# ---------------- CHANNELS ----------------
CHANNEL_TOOLS = (
    _tool(
        "create_text_channel",
        "Create a new text channel",
        [("name", "Channel name"), ("categoryId", "Category ID (optional)"), _GUILD],
        required=("name",),
    ),
    _tool(
        "delete_channel",
        "Delete a channel",
        [_CHANNEL, _GUILD],
        required=("channelId",),
    ),
    _tool(
        "find_channel",
        "Find a channel type and ID using name and server ID",
        [("channelName", "Discord channel name"), _GUILD],
        required=("channelName",),
    ),
    _tool("list_channels", "List of all channels", [_GUILD]),
)

# ---------------- CATEGORIES ----------------
CATEGORY_TOOLS = (
    _tool(
        "create_category",
        "Create a new category for channels",
        [("name", "Discord category name"), _GUILD],
        required=("name",),
    ),
    _tool(
        "delete_category",
        "Delete a category",
        [_CATEGORY, _GUILD],
        required=("categoryId",),
    ),
    _tool(
        "find_category",
        "Find a category ID using name and server ID",
        [("categoryName", "Discord category name"), _GUILD],
        required=("categoryName",),
    ),
    _tool(
        "list_channels_in_category",
        "List of channels in a specific category",
        [_CATEGORY, _GUILD],
        required=("categoryId",),
    ),
)

# ---------------- WEBHOOKS ----------------
WEBHOOK_TOOLS = (
    _tool(
        "create_webhook",
        "Create a new webhook on a specific channel",
        [_CHANNEL, ("name", "Webhook name")],
        required=("channelId", "name"),
    ),
    _tool(
        "delete_webhook",
        "Delete a webhook",
        [("webhookId", "Discord webhook ID")],
        required=("webhookId",),
    ),
    _tool(
        "list_webhooks",
        "List of webhooks on a specific channel",
        [_CHANNEL],
        required=("channelId",),
    ),
    _tool(
        "send_webhook_message",
        "Send a message via webhook",
        [("webhookUrl", "Discord webhook link"), _MESSAGE],
        required=("webhookUrl", "message"),
    ),
)

TOOLS: Tuple[ToolDescriptor, ...] = (
    SERVER_TOOLS
    + USER_TOOLS
    + MESSAGE_TOOLS
    + CHANNEL_TOOLS
    + CATEGORY_TOOLS
    + WEBHOOK_TOOLS
)

TOOL_NAMES: Tuple[str, ...] = tuple(t.name for t in TOOLS)

_BY_NAME = MappingProxyType({t.name: t for t in TOOLS})

if len(_BY_NAME) != len(TOOLS):
    raise RuntimeError("Duplicate tool names in catalog")


def list_tools() -> Tuple[ToolDescriptor, ...]:
    return TOOLS


def get_tool(name: str) -> Optional[ToolDescriptor]:
    return _BY_NAME.get(name)
