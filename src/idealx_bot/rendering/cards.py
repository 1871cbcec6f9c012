"""Card building and Discord formatting.

Cards are rendered to a single Discord embed: text blocks form the
description, fields become embed fields and muted text becomes the footer.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

DISCORD_MESSAGE_LIMIT = 2000
EMBED_FIELD_LIMIT = 1024
EMBED_COLOR = 0x3498DB

_SENTENCE_ENDS = ("。", ".", "!", "?", "\n")


class CardText(BaseModel):
    text: str
    muted: bool = False


class Field(BaseModel):
    label: str
    value: str


class Divider(BaseModel):
    pass


Block = Union[CardText, Field, Divider]


class Card(BaseModel):
    title: str
    children: List[Block] = []


def render_card(card: Card) -> Dict[str, Any]:
    """Card -> Discord embed dict."""
    description: List[str] = []
    fields: List[Dict[str, Any]] = []
    footer: Optional[str] = None

    for block in card.children:
        if isinstance(block, CardText):
            if block.muted:
                footer = block.text
            else:
                description.append(block.text)
        elif isinstance(block, Field):
            fields.append({
                "name": block.label,
                "value": _truncate(block.value or "-", EMBED_FIELD_LIMIT),
                "inline": False,
            })
        elif isinstance(block, Divider) and description:
            description.append("")

    embed: Dict[str, Any] = {"title": card.title, "color": EMBED_COLOR}
    if description:
        embed["description"] = "\n".join(description).strip()
    if fields:
        embed["fields"] = fields
    if footer:
        embed["footer"] = {"text": footer}
    return embed


def build_message_payload(content: Union[str, Card]) -> Dict[str, Any]:
    """Payload for POST /channels/{id}/messages (or an interaction edit)."""
    if isinstance(content, Card):
        return {"embeds": [render_card(content)], "allowed_mentions": {"parse": []}}
    return {"content": content, "allowed_mentions": {"parse": []}}


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 1] + "…"


def split_message(message: str, max_length: int = DISCORD_MESSAGE_LIMIT) -> List[str]:
    """
    Split text into chunks of at most max_length characters.
    Prefers to cut right after the last sentence end inside each window.
    """
    if len(message) <= max_length:
        return [message]

    chunks = []
    pos = 0
    while pos < len(message):
        end = min(pos + max_length, len(message))
        if end < len(message):
            window = message[pos:end]
            cut = max(window.rfind(ch) for ch in _SENTENCE_ENDS)
            if cut > 0:
                end = pos + cut + 1
        chunks.append(message[pos:end])
        pos = end
    return chunks
