"""
Discord client: one coroutine per chat operation the MCP tools expose.

Every operation waits for the one-time login to finish before touching the
API, and fails with a descriptive exception when a referenced guild, channel,
message, user or webhook does not exist. Return values are plain dicts/lists
ready to be serialized as JSON.
"""

import asyncio
import logging
import re
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from .config import ServerConfig
from .errors import (
    ConfigurationError,
    ConnectionNotReadyError,
    DiscordMCPError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
)
from .models import (
    GUILD_CATEGORY,
    GUILD_TEXT,
    Channel,
    _filter_none,
    edited_message_record,
    encode_emoji,
    guild_record,
    history_records,
    member_display_name,
    member_record,
    reaction_matches,
    reaction_route,
    require_text,
    sent_message_record,
    validate_snowflake,
    webhook_record,
)
from .ready import ReadyGate
from .rest import DiscordHTTPClient

logger = logging.getLogger(__name__)

WEBHOOK_URL_RE = re.compile(r"/webhooks/(\d+)/([^/]+)")


class DiscordClient:
    """Discord REST client with an explicit readiness gate.

    Usage:
        client = DiscordClient(config)
        await client.start()          # login runs in the background
        info = await client.get_server_info()
        await client.close()
    """

    def __init__(self, config: ServerConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.default_guild_id = config.DISCORD_GUILD_ID
        self.user: Optional[Dict[str, Any]] = None
        self._http = DiscordHTTPClient(config, transport=transport)
        self._ready = ReadyGate()
        self._login_task: Optional[asyncio.Task] = None

    # ---------------- LIFECYCLE ----------------
    async def start(self) -> None:
        """Begin logging in. Safe to call more than once."""
        if self._login_task is None:
            self._login_task = asyncio.create_task(self._login())

    async def connect(self) -> None:
        """Log in and wait until the session is usable."""
        await self.start()
        await self._ready.wait()

    async def wait_until_ready(self) -> None:
        await self.connect()

    async def _login(self) -> None:
        try:
            user = await self._http.request("GET", "/users/@me")
            if not isinstance(user, dict):
                raise DiscordMCPError("no user returned by /users/@me")
        except Exception as exc:
            logger.error("Failed to login to Discord: %s", exc)
            self._ready.set_failed(ConnectionNotReadyError(f"Failed to login to Discord: {exc}"))
            return
        self.user = user
        logger.info("Discord bot logged in as %s", user.get("username"))
        self._ready.set_ready()

    async def close(self) -> None:
        """Release the HTTP pool; pending and future waiters see a failure."""
        if self._login_task is not None and not self._login_task.done():
            self._login_task.cancel()
            try:
                await self._login_task
            except asyncio.CancelledError:
                pass
        if self._login_task is not None and not self._ready.resolved:
            self._ready.set_failed(ConnectionNotReadyError("Discord client closed"))
        await self._http.close()

    # ---------------- INTERNAL LOOKUPS ----------------
    def _get_guild_id(self, guild_id: Optional[str] = None) -> str:
        resolved = guild_id or self.default_guild_id
        if not resolved:
            raise ConfigurationError("No guild ID provided and no default guild ID configured")
        return validate_snowflake(resolved, "Guild ID")

    @staticmethod
    def _guild_not_found(guild_id: str) -> NotFoundError:
        return NotFoundError(
            f"Guild not found: {guild_id}. Make sure the bot is added to this server.",
            status=404,
        )

    async def _get_guild(self, guild_id: Optional[str] = None) -> Dict[str, Any]:
        await self.wait_until_ready()
        gid = self._get_guild_id(guild_id)
        try:
            return await self._http.request("GET", f"/guilds/{gid}", params={"with_counts": "true"})
        except (NotFoundError, ForbiddenError):
            raise self._guild_not_found(gid) from None

    async def _get_guild_channels(self, guild_id: Optional[str] = None) -> List[Channel]:
        await self.wait_until_ready()
        gid = self._get_guild_id(guild_id)
        try:
            payload = await self._http.request("GET", f"/guilds/{gid}/channels")
        except (NotFoundError, ForbiddenError):
            raise self._guild_not_found(gid) from None
        return [Channel.from_payload(c) for c in payload or []]

    async def _get_channel(self, channel_id: Optional[str]) -> Channel:
        channel_id = validate_snowflake(channel_id, "Channel ID")
        await self.wait_until_ready()
        try:
            payload = await self._http.request("GET", f"/channels/{channel_id}")
        except NotFoundError:
            raise NotFoundError(f"Text channel not found: {channel_id}", status=404) from None
        return Channel.from_payload(payload)

    async def _get_text_channel(self, channel_id: Optional[str]) -> Channel:
        channel = await self._get_channel(channel_id)
        if not channel.is_text:
            raise NotFoundError(f"Text channel not found: {channel.id}", status=404)
        return channel

    async def _get_webhook_channel(self, channel_id: Optional[str]) -> Channel:
        channel = await self._get_channel(channel_id)
        if not channel.supports_webhooks:
            raise NotFoundError(f"Text channel not found: {channel.id}", status=404)
        return channel

    async def _request_or_not_found(self, what: str, ident: str, method: str, endpoint: str,
                                    **kwargs) -> Any:
        try:
            return await self._http.request(method, endpoint, **kwargs)
        except NotFoundError:
            raise NotFoundError(f"{what} not found: {ident}", status=404) from None

    async def _open_dm(self, user_id: Optional[str]) -> str:
        user_id = validate_snowflake(user_id, "User ID")
        await self.wait_until_ready()
        await self._request_or_not_found("User", user_id, "GET", f"/users/{user_id}")
        dm = await self._http.request("POST", "/users/@me/channels", json={"recipient_id": user_id})
        return str(dm["id"])

    async def _iter_members(self, guild_id: Optional[str] = None) -> AsyncIterator[Dict[str, Any]]:
        await self.wait_until_ready()
        gid = self._get_guild_id(guild_id)
        page_size = self.config.MEMBER_PAGE_SIZE
        after = "0"
        while True:
            try:
                page = await self._http.request(
                    "GET", f"/guilds/{gid}/members", params={"limit": page_size, "after": after}
                )
            except (NotFoundError, ForbiddenError):
                raise self._guild_not_found(gid) from None
            for member in page or []:
                yield member
            if not page or len(page) < page_size:
                return
            after = page[-1]["user"]["id"]

    # ---------------- SERVER ----------------
    async def get_server_info(self, guild_id: Optional[str] = None) -> Dict[str, Any]:
        guild = await self._get_guild(guild_id)
        return guild_record(guild, self.config.DISCORD_CDN_BASE)

    # ---------------- CHANNELS ----------------
    async def list_channels(self, guild_id: Optional[str] = None) -> List[Dict[str, Any]]:
        channels = await self._get_guild_channels(guild_id)
        return [c.to_record() for c in channels]

    async def find_channel(self, channel_name: Optional[str], guild_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        channel_name = require_text(channel_name, "Channel name")
        for channel in await self._get_guild_channels(guild_id):
            if channel.name_matches(channel_name):
                return channel.to_record()
        return None

    async def create_text_channel(self, name: Optional[str], category_id: Optional[str] = None,
                                  guild_id: Optional[str] = None) -> Dict[str, Any]:
        name = require_text(name, "Channel name")
        if category_id:
            category_id = validate_snowflake(category_id, "Category ID")
        await self.wait_until_ready()
        gid = self._get_guild_id(guild_id)
        payload = _filter_none({"name": name, "type": GUILD_TEXT, "parent_id": category_id or None})
        try:
            created = await self._http.request("POST", f"/guilds/{gid}/channels", json=payload)
        except NotFoundError:
            raise self._guild_not_found(gid) from None
        return Channel.from_payload(created).to_record(with_parent=False)

    async def delete_channel(self, channel_id: Optional[str], guild_id: Optional[str] = None) -> None:
        channel_id = validate_snowflake(channel_id, "Channel ID")
        channels = await self._get_guild_channels(guild_id)
        if not any(c.id == channel_id for c in channels):
            raise NotFoundError(f"Channel not found: {channel_id}", status=404)
        await self._http.request("DELETE", f"/channels/{channel_id}")

    # ---------------- CATEGORIES ----------------
    async def find_category(self, category_name: Optional[str], guild_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        category_name = require_text(category_name, "Category name")
        for channel in await self._get_guild_channels(guild_id):
            if channel.is_category and channel.name_matches(category_name):
                return channel.to_record(with_parent=False)
        return None

    async def create_category(self, name: Optional[str], guild_id: Optional[str] = None) -> Dict[str, Any]:
        name = require_text(name, "Category name")
        await self.wait_until_ready()
        gid = self._get_guild_id(guild_id)
        try:
            created = await self._http.request(
                "POST", f"/guilds/{gid}/channels", json={"name": name, "type": GUILD_CATEGORY}
            )
        except NotFoundError:
            raise self._guild_not_found(gid) from None
        return Channel.from_payload(created).to_record(with_parent=False)

    async def delete_category(self, category_id: Optional[str], guild_id: Optional[str] = None) -> None:
        category_id = validate_snowflake(category_id, "Category ID")
        channels = await self._get_guild_channels(guild_id)
        if not any(c.id == category_id for c in channels):
            raise NotFoundError(f"Category not found: {category_id}", status=404)
        await self._http.request("DELETE", f"/channels/{category_id}")

    async def list_channels_in_category(self, category_id: Optional[str],
                                        guild_id: Optional[str] = None) -> List[Dict[str, Any]]:
        category_id = validate_snowflake(category_id, "Category ID")
        # Membership is decided by parent_id alone.
        channels = await self._get_guild_channels(guild_id)
        return [c.to_record(with_parent=False) for c in channels if c.parent_id == category_id]

    # ---------------- MESSAGES ----------------
    async def send_message(self, channel_id: Optional[str], message: Optional[str]) -> Dict[str, Any]:
        message = require_text(message, "Message content")
        channel = await self._get_text_channel(channel_id)
        sent = await self._http.request(
            "POST", f"/channels/{channel.id}/messages", json={"content": message}
        )
        return sent_message_record(sent)

    async def edit_message(self, channel_id: Optional[str], message_id: Optional[str],
                           new_message: Optional[str]) -> Dict[str, Any]:
        message_id = validate_snowflake(message_id, "Message ID")
        new_message = require_text(new_message, "Message content")
        channel = await self._get_text_channel(channel_id)
        edited = await self._request_or_not_found(
            "Message", message_id, "PATCH",
            f"/channels/{channel.id}/messages/{message_id}", json={"content": new_message},
        )
        return edited_message_record(edited)

    async def delete_message(self, channel_id: Optional[str], message_id: Optional[str]) -> None:
        message_id = validate_snowflake(message_id, "Message ID")
        channel = await self._get_text_channel(channel_id)
        await self._request_or_not_found(
            "Message", message_id, "DELETE", f"/channels/{channel.id}/messages/{message_id}"
        )

    async def read_messages(self, channel_id: Optional[str], count: int = 50) -> List[Dict[str, Any]]:
        channel = await self._get_text_channel(channel_id)
        messages = await self._http.request(
            "GET", f"/channels/{channel.id}/messages", params={"limit": max(1, min(count, 100))}
        )
        return history_records(messages or [])

    # ---------------- REACTIONS ----------------
    async def add_reaction(self, channel_id: Optional[str], message_id: Optional[str],
                           emoji: Optional[str]) -> None:
        message_id = validate_snowflake(message_id, "Message ID")
        route = encode_emoji(emoji)
        channel = await self._get_text_channel(channel_id)
        await self._request_or_not_found(
            "Message", message_id, "PUT",
            f"/channels/{channel.id}/messages/{message_id}/reactions/{route}/@me",
        )

    async def remove_reaction(self, channel_id: Optional[str], message_id: Optional[str],
                              emoji: Optional[str]) -> None:
        """Remove the bot's own reaction; a reaction that is not there is ignored."""
        message_id = validate_snowflake(message_id, "Message ID")
        emoji = require_text(emoji, "Emoji")
        channel = await self._get_text_channel(channel_id)
        message = await self._request_or_not_found(
            "Message", message_id, "GET", f"/channels/{channel.id}/messages/{message_id}"
        )
        for reaction in message.get("reactions", []):
            if reaction_matches(reaction, emoji):
                await self._http.request(
                    "DELETE",
                    f"/channels/{channel.id}/messages/{message_id}/reactions/{reaction_route(reaction)}/@me",
                )
                return

    # ---------------- USERS ----------------
    async def get_user_id_by_name(self, username: Optional[str],
                                  guild_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Find a guild member by username, display name, or ``name#discriminator``."""
        username = require_text(username, "Username")
        parts = username.split("#")
        name = parts[0].lower()
        discriminator = parts[1] if len(parts) > 1 else None

        async for member in self._iter_members(guild_id):
            user = member.get("user") or {}
            member_name = (user.get("username") or "").lower()
            if discriminator:
                if member_name == name and user.get("discriminator") == discriminator:
                    return member_record(member)
            elif member_name == name or member_display_name(member).lower() == name:
                return member_record(member)
        return None

    # ---------------- DIRECT MESSAGES ----------------
    async def send_private_message(self, user_id: Optional[str], message: Optional[str]) -> Dict[str, Any]:
        message = require_text(message, "Message content")
        dm_id = await self._open_dm(user_id)
        sent = await self._http.request("POST", f"/channels/{dm_id}/messages", json={"content": message})
        return sent_message_record(sent)

    async def edit_private_message(self, user_id: Optional[str], message_id: Optional[str],
                                   new_message: Optional[str]) -> Dict[str, Any]:
        message_id = validate_snowflake(message_id, "Message ID")
        new_message = require_text(new_message, "Message content")
        dm_id = await self._open_dm(user_id)
        edited = await self._request_or_not_found(
            "Message", message_id, "PATCH",
            f"/channels/{dm_id}/messages/{message_id}", json={"content": new_message},
        )
        return edited_message_record(edited, with_channel=False)

    async def delete_private_message(self, user_id: Optional[str], message_id: Optional[str]) -> None:
        message_id = validate_snowflake(message_id, "Message ID")
        dm_id = await self._open_dm(user_id)
        await self._request_or_not_found(
            "Message", message_id, "DELETE", f"/channels/{dm_id}/messages/{message_id}"
        )

    async def read_private_messages(self, user_id: Optional[str], count: int = 50) -> List[Dict[str, Any]]:
        dm_id = await self._open_dm(user_id)
        messages = await self._http.request(
            "GET", f"/channels/{dm_id}/messages", params={"limit": max(1, min(count, 100))}
        )
        return history_records(messages or [], with_attachments=False)

    # ---------------- WEBHOOKS ----------------
    async def list_webhooks(self, channel_id: Optional[str]) -> List[Dict[str, Any]]:
        channel = await self._get_webhook_channel(channel_id)
        webhooks = await self._http.request("GET", f"/channels/{channel.id}/webhooks")
        return [webhook_record(w, self.config.DISCORD_WEBHOOK_BASE) for w in webhooks or []]

    async def create_webhook(self, channel_id: Optional[str], name: Optional[str]) -> Dict[str, Any]:
        name = require_text(name, "Webhook name")
        channel = await self._get_webhook_channel(channel_id)
        webhook = await self._http.request("POST", f"/channels/{channel.id}/webhooks", json={"name": name})
        return webhook_record(webhook, self.config.DISCORD_WEBHOOK_BASE)

    async def delete_webhook(self, webhook_id: Optional[str]) -> None:
        webhook_id = validate_snowflake(webhook_id, "Webhook ID")
        await self.wait_until_ready()
        await self._request_or_not_found("Webhook", webhook_id, "DELETE", f"/webhooks/{webhook_id}")

    async def send_webhook_message(self, webhook_url: Optional[str], message: Optional[str]) -> None:
        match = WEBHOOK_URL_RE.search(webhook_url or "")
        if not match:
            raise InvalidInputError("Invalid webhook URL")
        message = require_text(message, "Message content")
        webhook_id, token = match.group(1), match.group(2)

        await self.wait_until_ready()
        await self._request_or_not_found(
            "Webhook", webhook_id, "POST", f"/webhooks/{webhook_id}/{token}", json={"content": message}
        )
