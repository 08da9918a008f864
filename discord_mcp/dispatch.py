"""
Tool dispatcher: route a tool name plus arguments to one DiscordClient call
and wrap the outcome in a result envelope.

    Ok(payload)  - the operation's return value, or {"success": True} for
                   operations that return nothing
    Err(message) - any failure, as a human-readable string

Dispatch never raises for a failed operation. It does not run
validate_tool_input either; missing or malformed identifiers are reported by
the client itself.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .validation import parse_count

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ok:
    payload: Any
    is_error = False


@dataclass(frozen=True)
class Err:
    message: str
    is_error = True


ResultEnvelope = Union[Ok, Err]

SUCCESS = {"success": True}


@dataclass(frozen=True)
class Route:
    """How one tool maps onto a client method.

    Attributes:
        method: DiscordClient coroutine to call
        params: Argument names passed positionally, in order
        void: The method returns nothing; reply with {"success": True}
        counted: Append the parsed ``count`` argument after ``params``
    """
    method: str
    params: Tuple[str, ...] = ()
    void: bool = False
    counted: bool = False


ROUTES: Dict[str, Route] = {
    # Server
    "get_server_info": Route("get_server_info", ("guildId",)),

    # User
    "get_user_id_by_name": Route("get_user_id_by_name", ("username", "guildId")),
    "send_private_message": Route("send_private_message", ("userId", "message")),
    "edit_private_message": Route("edit_private_message", ("userId", "messageId", "newMessage")),
    "delete_private_message": Route("delete_private_message", ("userId", "messageId"), void=True),
    "read_private_messages": Route("read_private_messages", ("userId",), counted=True),

    # Message
    "send_message": Route("send_message", ("channelId", "message")),
    "edit_message": Route("edit_message", ("channelId", "messageId", "newMessage")),
    "delete_message": Route("delete_message", ("channelId", "messageId"), void=True),
    "read_messages": Route("read_messages", ("channelId",), counted=True),
    "add_reaction": Route("add_reaction", ("channelId", "messageId", "emoji"), void=True),
    "remove_reaction": Route("remove_reaction", ("channelId", "messageId", "emoji"), void=True),

    # Channel
    "create_text_channel": Route("create_text_channel", ("name", "categoryId", "guildId")),
    "delete_channel": Route("delete_channel", ("channelId", "guildId"), void=True),
    "find_channel": Route("find_channel", ("channelName", "guildId")),
    "list_channels": Route("list_channels", ("guildId",)),

    # Category
    "create_category": Route("create_category", ("name", "guildId")),
    "delete_category": Route("delete_category", ("categoryId", "guildId"), void=True),
    "find_category": Route("find_category", ("categoryName", "guildId")),
    "list_channels_in_category": Route("list_channels_in_category", ("categoryId", "guildId")),

    # Webhook
    "create_webhook": Route("create_webhook", ("channelId", "name")),
    "delete_webhook": Route("delete_webhook", ("webhookId",), void=True),
    "list_webhooks": Route("list_webhooks", ("channelId",)),
    "send_webhook_message": Route("send_webhook_message", ("webhookUrl", "message"), void=True),
}


def error_message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


class Dispatcher:
    """Stateless router from tool calls to a Discord client.

    ``client`` is anything exposing the DiscordClient coroutines named in
    ROUTES; tests pass an in-memory fake.
    """

    def __init__(self, client: Any):
        self.client = client

    async def dispatch(self, tool_name: str, args: Optional[Mapping[str, Any]] = None) -> ResultEnvelope:
        args = args or {}
        route = ROUTES.get(tool_name)
        if route is None:
            logger.warning("Unknown tool requested: %s", tool_name)
            return Err(f"Unknown tool: {tool_name}")

        call_args = [args.get(p) for p in route.params]
        if route.counted:
            call_args.append(parse_count(args.get("count")))

        logger.debug("Dispatching %s", tool_name)
        try:
            result = await getattr(self.client, route.method)(*call_args)
        except Exception as exc:
            logger.warning("Tool %s failed: %s", tool_name, error_message(exc))
            return Err(error_message(exc))

        if route.void:
            return Ok(dict(SUCCESS))
        return Ok(result)


def render_text(envelope: ResultEnvelope) -> str:
    """Text sent back over MCP: pretty JSON, or ``Error: <message>``."""
    if isinstance(envelope, Err):
        return f"Error: {envelope.message}"
    return json.dumps(envelope.payload, indent=2)
