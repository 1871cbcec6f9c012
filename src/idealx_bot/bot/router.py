"""Event classification.

Events are matched against one ordered rule table. Categories are tried in
priority order and the first category with a matching rule wins, so a
message in a subscribed thread never reaches the mention rule and a mention
never reaches the pattern rules. Within the winning category every matching
rule runs.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, List, Optional

from ..chat.types import MessageEvent, ReactionEvent, SlashCommandEvent
from ..commands.dispatcher import CommandDispatcher, command_dispatcher
from ..log import get_logger
from .handlers import EventHandlers

logger = get_logger("router")


class Category(str, Enum):
    SUBSCRIBED = "subscribed"
    MENTION = "mention"
    PATTERN = "pattern"
    REACTION = "reaction"
    COMMAND = "command"


PRIORITY = [
    Category.SUBSCRIBED,
    Category.MENTION,
    Category.PATTERN,
    Category.REACTION,
    Category.COMMAND,
]

SUMMARY_EMOJI = {"📝"}


@dataclass(frozen=True)
class Rule:
    name: str
    category: Category
    matches: Callable[[Any], bool]
    handler: Callable[[Any], Awaitable[None]]


def is_subscribed_message(event: Any) -> bool:
    return isinstance(event, MessageEvent) and event.thread.is_subscribed()


def is_mention(event: Any) -> bool:
    return isinstance(event, MessageEvent) and event.is_mention


def text_matches(pattern: str) -> Callable[[Any], bool]:
    regex = re.compile(pattern)

    def matches(event: Any) -> bool:
        return isinstance(event, MessageEvent) and bool(regex.search(event.message.text))

    return matches


def reaction_in(emoji: Iterable[str]) -> Callable[[Any], bool]:
    allowed = set(emoji)

    def matches(event: Any) -> bool:
        return isinstance(event, ReactionEvent) and event.emoji in allowed

    return matches


def is_command(event: Any) -> bool:
    return isinstance(event, SlashCommandEvent)


def build_rules(handlers: EventHandlers, commands: CommandDispatcher) -> List[Rule]:
    return [
        Rule("subscribed-message", Category.SUBSCRIBED, is_subscribed_message, handlers.on_subscribed_message),
        Rule("new-mention", Category.MENTION, is_mention, handlers.on_new_mention),
        Rule("forum-auto-response", Category.PATTERN, text_matches(r"[\s\S]*"), handlers.on_forum_message),
        Rule("nullpo", Category.PATTERN, text_matches(r"ぬるぽ"), handlers.on_nullpo),
        Rule("summary-reaction", Category.REACTION, reaction_in(SUMMARY_EMOJI), handlers.on_summary_reaction),
        Rule("slash-command", Category.COMMAND, is_command, commands.dispatch),
    ]


class EventRouter:
    def __init__(self, rules: Optional[List[Rule]] = None):
        self.rules = rules if rules is not None else build_rules(EventHandlers(), command_dispatcher)

    def classify(self, event: Any) -> List[Rule]:
        for category in PRIORITY:
            matched = [r for r in self.rules if r.category == category and r.matches(event)]
            if matched:
                return matched
        return []

    async def dispatch(self, event: Any) -> None:
        rules = self.classify(event)
        if not rules:
            logger.debug(f"No rule for {type(event).__name__}")
            return
        for rule in rules:
            logger.info(f"Routing {type(event).__name__} to {rule.name}")
            try:
                await rule.handler(event)
            except Exception:
                logger.exception(f"Unhandled error in {rule.name}")
