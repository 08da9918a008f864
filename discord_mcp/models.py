"""Discord payload helpers: channel kinds, record shaping, ID/emoji parsing."""

import enum
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from .errors import InvalidInputError

DISCORD_EPOCH_MS = 1420070400000

# Channel type numbers (https://discord.com/developers/docs/resources/channel)
GUILD_TEXT = 0
DM = 1
GUILD_VOICE = 2
GROUP_DM = 3
GUILD_CATEGORY = 4
GUILD_ANNOUNCEMENT = 5
ANNOUNCEMENT_THREAD = 10
PUBLIC_THREAD = 11
PRIVATE_THREAD = 12
GUILD_STAGE_VOICE = 13

TEXT_CHANNEL_TYPES = frozenset({
    GUILD_TEXT, DM, GUILD_VOICE, GROUP_DM, GUILD_ANNOUNCEMENT,
    ANNOUNCEMENT_THREAD, PUBLIC_THREAD, PRIVATE_THREAD, GUILD_STAGE_VOICE,
})

_CUSTOM_EMOJI_RE = re.compile(r"^<(a?):(\w+):(\d+)>$")
_EMOJI_ROUTE_RE = re.compile(r"^(\w+):(\d+)$")


# ---------------- HELPERS ----------------
def _filter_none(d: Dict[str, Any]) -> Dict[str, Any]:
    """Remove None values from dict, but keep False values."""
    return {k: v for k, v in d.items() if v is not None}


def validate_snowflake(snowflake: Optional[str], name: str = "ID") -> str:
    """Validate a Discord snowflake ID and return it stripped."""
    if snowflake is None or not str(snowflake).strip():
        raise InvalidInputError(f"{name} cannot be empty")
    snowflake = str(snowflake).strip()
    if not snowflake.isdigit():
        raise InvalidInputError(f"{name} must be a valid Discord snowflake ID")
    return snowflake


def require_text(value: Optional[str], name: str) -> str:
    if value is None or value == "":
        raise InvalidInputError(f"{name} cannot be empty")
    return value


def snowflake_time(snowflake: str) -> str:
    """Creation time encoded in a snowflake, as an ISO-8601 UTC string."""
    ms = (int(snowflake) >> 22) + DISCORD_EPOCH_MS
    created = datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    return created.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def encode_emoji(emoji: Optional[str]) -> str:
    """Encode an emoji for use in a reaction route.

    Accepts a Unicode emoji, ``name:id``, or the rendered custom form
    ``<:name:id>`` / ``<a:name:id>``.
    """
    emoji = require_text(emoji, "Emoji").strip()
    match = _CUSTOM_EMOJI_RE.match(emoji)
    if match:
        return f"{match.group(2)}:{match.group(3)}"
    if _EMOJI_ROUTE_RE.match(emoji):
        return emoji
    return quote(emoji, safe="")


def reaction_matches(reaction: Dict[str, Any], emoji: str) -> bool:
    """True if a message reaction payload is for the given emoji."""
    data = reaction.get("emoji") or {}
    name = data.get("name")
    if name == emoji:
        return True
    if data.get("id"):
        prefix = "a" if data.get("animated") else ""
        return f"<{prefix}:{name}:{data['id']}>" == emoji
    return False


def reaction_route(reaction: Dict[str, Any]) -> str:
    data = reaction.get("emoji") or {}
    if data.get("id"):
        return f"{data.get('name')}:{data['id']}"
    return quote(data.get("name") or "", safe="")


# ---------------- CHANNELS ----------------
class ChannelKind(enum.Enum):
    TEXT = "text"
    CATEGORY = "category"
    OTHER = "other"

    @classmethod
    def from_type(cls, channel_type: Optional[int]) -> "ChannelKind":
        if channel_type == GUILD_CATEGORY:
            return cls.CATEGORY
        if channel_type in TEXT_CHANNEL_TYPES:
            return cls.TEXT
        return cls.OTHER


@dataclass(frozen=True)
class Channel:
    """A fetched channel, classified once by what it can do."""
    id: str
    name: Optional[str]
    type: int
    parent_id: Optional[str]
    kind: ChannelKind

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Channel":
        channel_type = payload.get("type", -1)
        return cls(
            id=str(payload["id"]),
            name=payload.get("name"),
            type=channel_type,
            parent_id=payload.get("parent_id"),
            kind=ChannelKind.from_type(channel_type),
        )

    @property
    def is_text(self) -> bool:
        return self.kind is ChannelKind.TEXT

    @property
    def is_category(self) -> bool:
        return self.kind is ChannelKind.CATEGORY

    @property
    def supports_webhooks(self) -> bool:
        return self.type == GUILD_TEXT

    def name_matches(self, name: str) -> bool:
        return (self.name or "").lower() == name.lower()

    def to_record(self, with_parent: bool = True) -> Dict[str, Any]:
        record = {"id": self.id, "name": self.name, "type": self.type}
        if with_parent:
            record["parentId"] = self.parent_id
        return record


# ---------------- RECORDS ----------------
def guild_record(guild: Dict[str, Any], cdn_base: str) -> Dict[str, Any]:
    guild_id = str(guild["id"])
    icon = guild.get("icon")
    icon_url = None
    if icon:
        ext = "gif" if icon.startswith("a_") else "png"
        icon_url = f"{cdn_base}/icons/{guild_id}/{icon}.{ext}"
    return {
        "id": guild_id,
        "name": guild.get("name"),
        "icon": icon_url,
        "memberCount": guild.get("approximate_member_count", guild.get("member_count")),
        "ownerId": guild.get("owner_id"),
        "createdAt": snowflake_time(guild_id),
        "description": guild.get("description"),
        "features": guild.get("features", []),
    }


def sent_message_record(message: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": message.get("id"),
        "content": message.get("content"),
        "channelId": message.get("channel_id"),
        "createdAt": message.get("timestamp"),
    }


def edited_message_record(message: Dict[str, Any], with_channel: bool = True) -> Dict[str, Any]:
    record = {"id": message.get("id"), "content": message.get("content")}
    if with_channel:
        record["channelId"] = message.get("channel_id")
    record["editedAt"] = message.get("edited_timestamp")
    return record


def history_record(message: Dict[str, Any], with_attachments: bool = True) -> Dict[str, Any]:
    author = message.get("author") or {}
    record = {
        "id": message.get("id"),
        "content": message.get("content"),
        "authorId": author.get("id"),
        "authorName": author.get("username"),
        "createdAt": message.get("timestamp"),
    }
    if with_attachments:
        record["attachments"] = [a.get("url") for a in message.get("attachments", [])]
    return record


def member_record(member: Dict[str, Any]) -> Dict[str, Any]:
    user = member.get("user") or {}
    return {
        "id": user.get("id"),
        "username": user.get("username"),
        "displayName": member_display_name(member),
        "discriminator": user.get("discriminator"),
    }


def member_display_name(member: Dict[str, Any]) -> str:
    user = member.get("user") or {}
    return member.get("nick") or user.get("global_name") or user.get("username") or ""


def webhook_record(webhook: Dict[str, Any], webhook_base: str) -> Dict[str, Any]:
    token = webhook.get("token")
    url = f"{webhook_base}/{webhook['id']}/{token}" if token else None
    return {
        "id": webhook.get("id"),
        "name": webhook.get("name"),
        "url": url,
        "channelId": webhook.get("channel_id"),
    }


def history_records(messages: List[Dict[str, Any]], with_attachments: bool = True) -> List[Dict[str, Any]]:
    return [history_record(m, with_attachments) for m in messages]
