"""Conversation window assembly.

Turns raw Discord messages into role-tagged turns for the model.
"""

import re
from datetime import datetime
from typing import AsyncIterator, Iterable, List, Optional, TypeVar

from ..chat.types import ChatMessage
from ..schemas.conversation import ConversationTurn

T = TypeVar("T")

# <@123> user mentions and legacy <@!123> nickname mentions
MENTION_RE = re.compile(r"<@!?\d+>")


def strip_mentions(text: str) -> str:
    # Removing one token can join its neighbours into a new one: "<@<@1>2>"
    while True:
        stripped = MENTION_RE.sub("", text)
        if stripped == text:
            return stripped.strip()
        text = stripped


def build_turns(messages: Iterable[ChatMessage], since: Optional[datetime] = None) -> List[ConversationTurn]:
    """
    Build turns from messages, oldest first as given.
    Blank messages, messages older than `since` and messages that are empty
    after mention stripping are dropped.
    """
    turns = []
    for m in messages:
        if not m.text or not m.text.strip():
            continue
        if since is not None and m.timestamp < since:
            continue
        content = strip_mentions(m.text)
        if not content:
            continue
        turns.append(ConversationTurn(
            role="assistant" if m.author.is_me else "user",
            content=content,
        ))
    return turns


async def collect_messages(iterable: AsyncIterator[T], limit: int) -> List[T]:
    """
    Take up to `limit` items from a newest-first async iterator.
    Returns them oldest first.
    """
    result: List[T] = []
    if limit <= 0:
        return result
    async for item in iterable:
        result.append(item)
        if len(result) >= limit:
            break
    result.reverse()
    return result
