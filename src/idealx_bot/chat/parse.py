from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from .types import Author, ChatMessage, ThreadIdentity

# PUBLIC_THREAD, PRIVATE_THREAD, ANNOUNCEMENT_THREAD
THREAD_CHANNEL_TYPES = {10, 11, 12}

# Interaction types
PING = 1
APPLICATION_COMMAND = 2


def parse_timestamp(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def identity_from_channel(channel: Dict[str, Any], guild_id: Optional[str] = None) -> ThreadIdentity:
    """
    Build a ThreadIdentity from a Discord channel object.
    Threads map to (guild, parent channel, thread).
    """
    server_id = channel.get("guild_id") or guild_id
    if channel.get("type") in THREAD_CHANNEL_TYPES and channel.get("parent_id"):
        return ThreadIdentity(server_id=server_id, channel_id=channel["parent_id"], thread_id=channel["id"])
    return ThreadIdentity(server_id=server_id, channel_id=channel["id"])


def parse_message(
    data: Dict[str, Any],
    bot_user_id: str,
    mention_role_ids: Iterable[str] = (),
) -> ChatMessage:
    """
    Parse a Discord message object (REST or MESSAGE_CREATE payload).
    A message mentions the bot if it names the bot user or one of the mention roles.
    """
    author = data.get("author") or {}
    mentioned_users = {u.get("id") for u in data.get("mentions") or []}
    mentioned_roles = set(data.get("mention_roles") or [])

    return ChatMessage(
        id=data["id"],
        text=data.get("content") or "",
        author=Author(
            id=author.get("id", ""),
            name=author.get("global_name") or author.get("username") or "",
            is_me=author.get("id") == bot_user_id,
            is_bot=bool(author.get("bot")),
        ),
        timestamp=parse_timestamp(data.get("timestamp")),
        mentions_me=bot_user_id in mentioned_users or bool(mentioned_roles & set(mention_role_ids)),
    )


def parse_interaction_user(interaction: Dict[str, Any], bot_user_id: str) -> Author:
    user = (interaction.get("member") or {}).get("user") or interaction.get("user") or {}
    return Author(
        id=user.get("id", ""),
        name=user.get("global_name") or user.get("username") or "",
        is_me=user.get("id") == bot_user_id,
        is_bot=bool(user.get("bot")),
    )


def command_text(interaction: Dict[str, Any]) -> str:
    """
    Flatten slash command options into one argument string.
    Values are joined with spaces in the order Discord sends them.
    """
    options = (interaction.get("data") or {}).get("options") or []
    return " ".join(str(opt.get("value", "")) for opt in options if opt.get("value") is not None).strip()
