import os
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest
from nacl.signing import SigningKey

# Deterministic key pair for interaction signatures in tests
TEST_SIGNING_KEY = SigningKey(b"\x07" * 32)
TEST_BOT_ID = "900000000000000001"

# Settings are read once and cached; seed them before any idealx_bot import.
os.environ.setdefault("DISCORD_BOT_TOKEN", "test-bot-token")
os.environ["DISCORD_PUBLIC_KEY"] = TEST_SIGNING_KEY.verify_key.encode().hex()
os.environ["DISCORD_APPLICATION_ID"] = TEST_BOT_ID
os.environ.setdefault("OPENAI_API_KEY", "sk-test")
os.environ["ENABLE_GATEWAY"] = "false"
os.environ["TARGET_SERVER_IDS"] = "G_FORUM"
os.environ["TARGET_FORUM_CHANNEL_IDS"] = "C_FORUM"

from idealx_bot.chat.types import Author, ChatMessage, ThreadIdentity  # noqa: E402

BASE_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_message(
    text: str,
    *,
    id: Optional[str] = None,
    is_me: bool = False,
    is_bot: bool = False,
    minutes: int = 0,
    mentions_me: bool = False,
) -> ChatMessage:
    return ChatMessage(
        id=id or f"m{minutes}",
        text=text,
        author=Author(id=TEST_BOT_ID if is_me else "U_USER", name="user", is_me=is_me, is_bot=is_bot or is_me),
        timestamp=BASE_TIME + timedelta(minutes=minutes),
        mentions_me=mentions_me,
    )


class FakeThread:
    """
    Stand-in for chat.thread.Thread: history is given oldest first,
    posts are recorded, streamed posts are drained into text.
    """

    def __init__(self, identity: ThreadIdentity, history: Optional[List[ChatMessage]] = None, name: str = "Forum post"):
        self.id = identity
        self.name = name
        self.history = list(history or [])
        self.recent_messages: List[ChatMessage] = []
        self.posts: list = []
        self.subscribed = False
        self.refreshed = 0
        self.iterated = 0

    async def refresh(self):
        self.refreshed += 1
        self.recent_messages = list(self.history)

    @property
    def messages(self):
        return self._iter()

    async def _iter(self):
        for m in reversed(self.history):
            self.iterated += 1
            yield m

    def is_subscribed(self) -> bool:
        return self.subscribed

    async def subscribe(self):
        self.subscribed = True

    async def forum_context(self):
        return self.name, "Forum description"

    async def post(self, content):
        if hasattr(content, "__aiter__"):
            text = ""
            async for delta in content:
                text += delta
            self.posts.append(text)
        else:
            self.posts.append(content)


async def stream_of(*chunks: str):
    for chunk in chunks:
        yield chunk


@pytest.fixture
def channel_identity() -> ThreadIdentity:
    return ThreadIdentity(server_id="G1", channel_id="C1")


@pytest.fixture
def forum_identity() -> ThreadIdentity:
    return ThreadIdentity(server_id="G_FORUM", channel_id="C_FORUM", thread_id="T1")
