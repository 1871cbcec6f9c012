"""Discord adapter: webhook decoding and gateway startup.

Every inbound request lands in handle_webhook(). Requests carrying the
gateway token header are events forwarded by our own gateway listener; all
others are signed interactions. Decoded events are handed to the router as
background work so the HTTP response returns immediately.
"""

import json
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import HTTPException, Request

from ..config import get_settings
from ..gateway.listener import GATEWAY_TOKEN_HEADER, run_listener
from ..log import get_logger
from .client import DiscordClientWrapper, discord_client
from .parse import (
    APPLICATION_COMMAND,
    PING,
    command_text,
    identity_from_channel,
    parse_interaction_user,
    parse_message,
)
from .state import MemoryState, memory_state
from .thread import InteractionChannel, Thread
from .types import MessageEvent, ReactionEvent, SlashCommandEvent
from .verify import verify_discord_signature, verify_gateway_token

logger = get_logger("adapter")
settings = get_settings()

WaitUntil = Callable[..., None]


class DiscordAdapter:
    def __init__(self, client: Optional[DiscordClientWrapper] = None, state: Optional[MemoryState] = None):
        self.client = client or discord_client
        self.state = state or memory_state
        self.bot_user_id = settings.DISCORD_APPLICATION_ID

    async def thread_for(self, channel_id: str, guild_id: Optional[str] = None) -> Thread:
        channel = await self.client.get_channel(channel_id)
        identity = identity_from_channel(channel, guild_id)
        name = channel.get("name") if identity.thread_id else None
        return Thread(identity, self.client, self.state, name=name)

    async def decode_gateway_event(self, payload: Dict[str, Any]) -> Optional[Any]:
        """GATEWAY_* envelope -> MessageEvent / ReactionEvent, or None if irrelevant."""
        event_type = payload.get("type")
        data = payload.get("data") or {}

        if event_type == "GATEWAY_MESSAGE_CREATE":
            message = parse_message(data, self.bot_user_id, settings.mention_role_ids)
            thread = await self.thread_for(data["channel_id"], data.get("guild_id"))
            return MessageEvent(thread=thread, message=message)

        if event_type == "GATEWAY_MESSAGE_REACTION_ADD":
            emoji = (data.get("emoji") or {}).get("name") or ""
            thread = await self.thread_for(data["channel_id"], data.get("guild_id"))
            return ReactionEvent(
                thread=thread,
                message_id=data.get("message_id", ""),
                user_id=data.get("user_id", ""),
                emoji=emoji,
            )

        logger.debug(f"Ignoring gateway event {event_type}")
        return None

    def decode_interaction(self, interaction: Dict[str, Any]) -> SlashCommandEvent:
        channel_data = interaction.get("channel") or {"id": interaction.get("channel_id")}
        identity = identity_from_channel(channel_data, interaction.get("guild_id"))
        channel = InteractionChannel(identity, self.client, self.state, token=interaction["token"])
        return SlashCommandEvent(
            command=(interaction.get("data") or {}).get("name", ""),
            text=command_text(interaction),
            channel=channel,
            user=parse_interaction_user(interaction, self.bot_user_id),
        )

    async def handle_webhook(self, request: Request, dispatch: Callable[[Any], Awaitable[None]], wait_until: WaitUntil) -> Dict[str, Any]:
        """
        Verify and decode one webhook request.
        Returns the JSON body to answer with; handler work goes through wait_until.
        """
        body = await request.body()
        gateway_token = request.headers.get(GATEWAY_TOKEN_HEADER)

        if gateway_token is not None:
            verify_gateway_token(gateway_token)
            event = await self.decode_gateway_event(_json(body))
            if event is None:
                return {"status": "ignored"}
            wait_until(dispatch, event)
            return {"status": "ok"}

        await verify_discord_signature(request)
        interaction = _json(body)

        if interaction.get("type") == PING:
            return {"type": 1}

        if interaction.get("type") == APPLICATION_COMMAND:
            event = self.decode_interaction(interaction)
            wait_until(dispatch, event)
            # DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE
            return {"type": 5}

        raise HTTPException(status_code=400, detail="Unsupported interaction type")

    async def start_gateway_listener(self, session: Any, webhook_url: str) -> None:
        session.wait_until(run_listener(settings.DISCORD_BOT_TOKEN, webhook_url))


def _json(body: bytes) -> Dict[str, Any]:
    try:
        return json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON")
