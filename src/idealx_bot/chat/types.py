"""Pydantic schemas for Discord chat data.

Defines ThreadIdentity, ChatMessage and the request-scoped event models
passed from the adapter to the router.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ThreadIdentity(BaseModel):
    """Where a conversation lives.

    channel_id is the parent channel for threads (the forum channel for forum
    posts); thread_id is only set for threads.
    """

    model_config = ConfigDict(frozen=True)

    server_id: Optional[str] = None
    channel_id: str
    thread_id: Optional[str] = None

    def key(self) -> str:
        """Canonical serialization, used as a map key."""
        return json.dumps(self.model_dump(), sort_keys=True)

    def channel_scope(self) -> "ThreadIdentity":
        return ThreadIdentity(server_id=self.server_id, channel_id=self.channel_id)

    @property
    def target_channel_id(self) -> str:
        """Discord channel messages are posted to."""
        return self.thread_id or self.channel_id


class Author(BaseModel):
    id: str
    name: str = ""
    is_me: bool = False
    is_bot: bool = False


class ChatMessage(BaseModel):
    id: str
    text: str = ""
    author: Author
    timestamp: datetime
    mentions_me: bool = False


class MessageEvent(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    thread: Any
    message: ChatMessage

    @property
    def is_mention(self) -> bool:
        return self.message.mentions_me


class ReactionEvent(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    thread: Any
    message_id: str
    user_id: str
    emoji: str


class SlashCommandEvent(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    command: str
    text: str = ""
    channel: Any
    user: Author
