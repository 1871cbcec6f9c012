"""Conversation handles passed to handlers.

A Thread wraps one Discord channel or thread: it can refresh recent history,
iterate older messages, subscribe, and post text, cards or streamed text.
InteractionChannel is the variant used by slash commands, whose first post
fills the deferred interaction response.
"""

from __future__ import annotations

import time
from typing import Any, AsyncIterable, AsyncIterator, Dict, List, Optional, Tuple, Union

from ..config import get_settings
from ..log import get_logger
from ..rendering.cards import Card, build_message_payload, split_message
from .client import DiscordClientWrapper
from .parse import parse_message
from .state import MemoryState
from .types import ChatMessage, ThreadIdentity

logger = get_logger("thread")
settings = get_settings()

REFRESH_LIMIT = 50
STREAM_EDIT_INTERVAL = 1.0

Postable = Union[str, Card, AsyncIterable[str]]


class Thread:
    def __init__(
        self,
        identity: ThreadIdentity,
        client: DiscordClientWrapper,
        state: MemoryState,
        name: Optional[str] = None,
    ):
        self.id = identity
        self.client = client
        self.state = state
        self.name = name
        self.recent_messages: List[ChatMessage] = []

    @property
    def channel_id(self) -> str:
        return self.id.target_channel_id

    def _parse(self, raw: Dict[str, Any]) -> ChatMessage:
        return parse_message(raw, settings.DISCORD_APPLICATION_ID, settings.mention_role_ids)

    async def refresh(self, limit: int = REFRESH_LIMIT) -> None:
        """Reload recent_messages, oldest first."""
        raw = await self.client.get_messages(self.channel_id, limit=limit)
        self.recent_messages = [self._parse(m) for m in reversed(raw)]

    @property
    def messages(self) -> AsyncIterator[ChatMessage]:
        """All messages, newest first, fetched page by page."""
        return self._iter_messages()

    async def _iter_messages(self) -> AsyncIterator[ChatMessage]:
        before = None
        while True:
            page = await self.client.get_messages(self.channel_id, limit=100, before=before)
            for raw in page:
                yield self._parse(raw)
            if len(page) < 100:
                return
            before = page[-1]["id"]

    def is_subscribed(self) -> bool:
        return self.state.is_subscribed(self.id)

    async def subscribe(self) -> None:
        self.state.subscribe(self.id)
        logger.info(f"Subscribed to {self.id.key()}")

    async def forum_context(self) -> Tuple[Optional[str], Optional[str]]:
        """(title, description) of the forum post: thread name and parent channel topic."""
        if not self.id.thread_id:
            return None, None
        parent = await self.client.get_channel(self.id.channel_id)
        return self.name, parent.get("topic")

    async def start_typing(self) -> None:
        try:
            await self.client.trigger_typing(self.channel_id)
        except Exception as e:
            logger.debug(f"Typing indicator failed: {e}")

    async def post(self, content: Postable) -> None:
        if isinstance(content, (str, Card)):
            await self._send(build_message_payload(content))
            return
        await self._post_stream(content)

    async def _send(self, payload: Dict[str, Any]) -> str:
        message = await self.client.create_message(self.channel_id, payload)
        return message["id"]

    async def _edit(self, message_id: str, payload: Dict[str, Any]) -> None:
        await self.client.edit_message(self.channel_id, message_id, payload)

    async def _post_stream(self, chunks: AsyncIterable[str]) -> None:
        """
        Post streamed text, editing in place as it grows.
        Text beyond the Discord message limit continues in new messages.
        """
        await self.start_typing()
        text = ""
        posted: List[Tuple[str, str]] = []
        last_flush = time.monotonic()
        async for delta in chunks:
            text += delta
            if time.monotonic() - last_flush >= STREAM_EDIT_INTERVAL:
                await self._sync_parts(posted, text)
                last_flush = time.monotonic()
        await self._sync_parts(posted, text)

    async def _sync_parts(self, posted: List[Tuple[str, str]], text: str) -> None:
        if not text.strip():
            return
        for i, part in enumerate(split_message(text)):
            if i < len(posted):
                message_id, previous = posted[i]
                if previous != part:
                    await self._edit(message_id, build_message_payload(part))
                    posted[i] = (message_id, part)
            else:
                posted.append((await self._send(build_message_payload(part)), part))


class InteractionChannel(Thread):
    """Channel of a slash command; posts go through the interaction webhook."""

    def __init__(self, identity: ThreadIdentity, client: DiscordClientWrapper, state: MemoryState, token: str):
        super().__init__(identity, client, state)
        self.token = token
        self._responded = False

    async def start_typing(self) -> None:
        # The deferred response already shows a thinking state.
        return None

    async def _send(self, payload: Dict[str, Any]) -> str:
        if not self._responded:
            self._responded = True
            message = await self.client.edit_interaction_message(self.token, payload)
        else:
            message = await self.client.create_followup(self.token, payload)
        return message["id"]

    async def _edit(self, message_id: str, payload: Dict[str, Any]) -> None:
        await self.client.edit_interaction_message(self.token, payload, message_id=message_id)
