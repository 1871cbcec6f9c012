"""Chat event handlers.

Each handler owns its error boundary: failures are logged and turned into a
fixed apology posted to the thread.
"""

from typing import FrozenSet, List, Optional, Tuple

from ..chat.types import ChatMessage, MessageEvent, ReactionEvent
from ..config import get_settings
from ..context.assembler import build_turns, collect_messages
from ..context.reset import ResetMarkers, reset_markers
from ..llm.client import LLMClient, llm_client
from ..log import get_logger
from ..rendering.cards import Card, CardText
from ..retrieval.fetch import Fetcher, fetcher
from ..retrieval.url import extract_urls

logger = get_logger("handlers")
settings = get_settings()

APOLOGY = "申し訳ありません。エラーが発生しました。"
SUMMARY_APOLOGY = "要約の生成中にエラーが発生しました。"
NO_MESSAGES = "メッセージを取得できませんでした。"
NULLPO_REPLY = "ガッ"


class EventHandlers:
    def __init__(
        self,
        llm: Optional[LLMClient] = None,
        url_fetcher: Optional[Fetcher] = None,
        markers: Optional[ResetMarkers] = None,
        target_scope: Optional[FrozenSet[Tuple[str, str]]] = None,
    ):
        self.llm = llm or llm_client
        self.fetcher = url_fetcher or fetcher
        self.markers = markers if markers is not None else reset_markers
        self.target_scope = target_scope if target_scope is not None else settings.target_scope

    def is_target_forum(self, thread) -> bool:
        identity = thread.id
        if not identity.server_id or not identity.channel_id:
            return False
        return (identity.server_id, identity.channel_id) in self.target_scope

    async def _reply(self, thread, messages: List[ChatMessage], forum: bool = False) -> bool:
        """Stream a model reply built from messages. False if there was nothing to answer."""
        turns = build_turns(messages, since=self.markers.since(thread.id))
        if not turns:
            return False
        title, description = await thread.forum_context() if forum else (None, None)
        await thread.post(self.llm.respond(turns, forum_title=title, forum_description=description))
        return True

    async def on_new_mention(self, event: MessageEvent) -> None:
        thread = event.thread
        try:
            await thread.refresh()
            messages = thread.recent_messages[-settings.DEFAULT_WINDOW:]
            if not await self._reply(thread, messages):
                await thread.post(NO_MESSAGES)
        except Exception:
            logger.exception("Error in mention handler")
            await thread.post(APOLOGY)

    async def on_subscribed_message(self, event: MessageEvent) -> None:
        thread, author = event.thread, event.message.author
        if author.is_bot or author.is_me:
            return

        try:
            is_forum = self.is_target_forum(thread)
            if is_forum:
                messages = await collect_messages(thread.messages, settings.FORUM_WINDOW)
            else:
                await thread.refresh()
                messages = thread.recent_messages[-settings.DEFAULT_WINDOW:]
            await self._reply(thread, messages, forum=is_forum)
        except Exception:
            logger.exception("Error in subscribed message handler")
            await thread.post(APOLOGY)

    async def on_forum_message(self, event: MessageEvent) -> None:
        thread, author = event.thread, event.message.author
        if not self.is_target_forum(thread):
            return
        if author.is_bot or author.is_me:
            return
        # Mentions belong to the mention handler
        if event.is_mention:
            return

        try:
            await thread.subscribe()
            messages = await collect_messages(thread.messages, settings.FORUM_WINDOW)
            await self._reply(thread, messages, forum=True)
        except Exception:
            logger.exception("Error in forum auto-response")
            await thread.post(APOLOGY)

    async def on_nullpo(self, event: MessageEvent) -> None:
        # A model reply quoting ぬるぽ must not make the bot answer itself
        if event.message.author.is_me:
            return
        await event.thread.post(NULLPO_REPLY)

    async def on_summary_reaction(self, event: ReactionEvent) -> None:
        thread = event.thread
        try:
            await thread.refresh()
            window = thread.recent_messages[-settings.REACTION_LOOKBACK:]
            if not window:
                return

            target = next((m for m in window if m.id == event.message_id), window[-1])
            text = target.text or ""
            urls = extract_urls(text)
            if not urls and not text.strip():
                return

            url_contents = await self.fetcher.fetch_all(urls)
            logger.info(f"Summarizing message {target.id} with {len(url_contents)}/{len(urls)} URL(s)")
            summary = await self.llm.summarize_with_urls(text, url_contents)
            await thread.post(Card(title="要約", children=[CardText(text=summary)]))
        except Exception:
            logger.exception("Error in reaction handler")
            await thread.post(SUMMARY_APOLOGY)
