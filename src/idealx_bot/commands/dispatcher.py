"""Slash command handlers.

Each command is stateless apart from /clear, which records a reset marker.
Handlers are wrapped so any failure is logged and answered with an apology
in the invoking channel.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Dict, Optional, Tuple

from ..chat.types import SlashCommandEvent
from ..context.assembler import build_turns, collect_messages
from ..context.reset import ResetMarkers, reset_markers
from ..llm.client import LLMClient, llm_client
from ..log import get_logger
from ..rendering.cards import Card, CardText, Divider, Field

logger = get_logger("commands")

DEFAULT_SUMMARY_COUNT = 10
MAX_SUMMARY_COUNT = 50
ORIGINAL_PREVIEW_CHARS = 500
DISCORD_EPOCH_MS = 1420070400000

LANGUAGES: Dict[str, str] = {
    "japanese": "日本語",
    "english": "英語",
    "chinese_simplified": "中国語（簡体字）",
    "chinese_traditional": "中国語（繁体字）",
    "korean": "韓国語",
    "french": "フランス語",
    "german": "ドイツ語",
    "spanish": "スペイン語",
    "portuguese": "ポルトガル語",
    "italian": "イタリア語",
    "russian": "ロシア語",
    "arabic": "アラビア語",
}

ERROR_MESSAGES = {
    "summarize": "要約の生成中にエラーが発生しました。",
    "translate": "翻訳中にエラーが発生しました。",
    "age": "アカウント情報の取得中にエラーが発生しました。",
}
GENERIC_ERROR = "申し訳ありません。エラーが発生しました。"

HELP_CARD = Card(
    title="IdealX ヘルプ",
    children=[
        CardText(text="💬 **メンション機能**"),
        CardText(text="IdealXにメンションすると、AIが直近の会話を読み取り回答します。"),
        Divider(),
        CardText(text="📋 **スラッシュコマンド**"),
        CardText(text="\n".join([
            "`/help` - このヘルプを表示",
            "`/age [ユーザー]` - Discordアカウント作成日と経過日数を表示",
            "`/summarize [件数]` - 直近メッセージをAI要約（デフォルト10件、最大50件）",
            "`/translate [言語] [テキスト]` - テキストを指定言語に翻訳",
            "`/clear` - 会話コンテキストをリセット",
        ])),
        Divider(),
        CardText(text="⚡ **リアクション機能**"),
        CardText(text="📝リアクションでメッセージを要約してチャンネルに投稿"),
        CardText(text="Powered by OpenAI", muted=True),
    ],
)


def parse_summary_count(text: str) -> int:
    """Integer count; 0, blank or invalid fall back to 10, then clamp to [1, 50]."""
    try:
        count = int(text.strip())
    except (ValueError, AttributeError):
        count = 0
    count = count or DEFAULT_SUMMARY_COUNT
    return min(max(count, 1), MAX_SUMMARY_COUNT)


def parse_translate_args(text: str) -> Tuple[str, str]:
    """'<language> <text...>' -> (lower-cased language key, text)."""
    parts = re.split(r"\s+", text.strip(), maxsplit=1)
    language_key = parts[0].lower() if parts else ""
    rest = parts[1].strip() if len(parts) > 1 else ""
    return language_key, rest


def language_name(key: str) -> str:
    return LANGUAGES.get(key, key)


def strip_user_reference(text: str) -> str:
    """Accept a raw ID or a <@123> / <@!123> mention."""
    return re.sub(r"^<@!?(\d+)>$", r"\1", text.strip())


def snowflake_created_at(snowflake: str) -> datetime:
    timestamp_ms = (int(snowflake) >> 22) + DISCORD_EPOCH_MS
    return datetime.fromtimestamp(0, tz=timezone.utc) + timedelta(milliseconds=timestamp_ms)


def account_age(created_at: datetime, now: datetime) -> Tuple[int, int, int]:
    """(total days, years, remaining days) with 365-day years."""
    total_days = int((now - created_at).total_seconds() // 86400)
    return total_days, total_days // 365, total_days % 365


def _preview(text: str) -> str:
    if len(text) > ORIGINAL_PREVIEW_CHARS:
        return text[:ORIGINAL_PREVIEW_CHARS] + "…"
    return text


Handler = Callable[[SlashCommandEvent], Awaitable[None]]


class CommandDispatcher:
    def __init__(
        self,
        llm: Optional[LLMClient] = None,
        markers: Optional[ResetMarkers] = None,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.llm = llm or llm_client
        self.markers = markers if markers is not None else reset_markers
        self.now = now
        self.handlers: Dict[str, Handler] = {
            "help": self.help,
            "clear": self.clear,
            "summarize": self.summarize,
            "translate": self.translate,
            "age": self.age,
        }

    async def dispatch(self, event: SlashCommandEvent) -> None:
        handler = self.handlers.get(event.command)
        if handler is None:
            logger.warning(f"Unknown command /{event.command}")
            return
        try:
            await handler(event)
        except Exception:
            logger.exception(f"Error in {event.command} command")
            await event.channel.post(ERROR_MESSAGES.get(event.command, GENERIC_ERROR))

    async def help(self, event: SlashCommandEvent) -> None:
        await event.channel.post(HELP_CARD)

    async def clear(self, event: SlashCommandEvent) -> None:
        at = self.markers.mark(event.channel.id, self.now())
        logger.info(f"Context reset for {event.channel.id.key()} at {at.isoformat()}")
        await event.channel.post(Card(
            title="コンテキストリセット",
            children=[CardText(text="会話コンテキストをリセットしました。これ以降のメッセージのみがAIへの入力として使用されます。")],
        ))

    async def summarize(self, event: SlashCommandEvent) -> None:
        count = parse_summary_count(event.text)
        messages = await collect_messages(event.channel.messages, count)
        messages = [m for m in messages if not m.author.is_bot and not m.author.is_me]
        turns = build_turns(messages, since=self.markers.since(event.channel.id))

        if not turns:
            await event.channel.post("要約するメッセージが見つかりませんでした。")
            return

        summary = await self.llm.summarize(turns)
        await event.channel.post(Card(
            title="会話の要約",
            children=[
                CardText(text=summary),
                Divider(),
                CardText(text=f"{len(turns)}件のメッセージを要約", muted=True),
            ],
        ))

    async def translate(self, event: SlashCommandEvent) -> None:
        language_key, text = parse_translate_args(event.text)
        if not text:
            await event.channel.post("翻訳するテキストを入力してください。")
            return

        language = language_name(language_key)
        translation = await self.llm.translate(text, language)
        await event.channel.post(Card(
            title=f"{language}への翻訳",
            children=[
                Field(label="原文", value=_preview(text)),
                Field(label="翻訳", value=translation),
            ],
        ))

    async def age(self, event: SlashCommandEvent) -> None:
        user_id = strip_user_reference(event.text)
        if not user_id:
            await event.channel.post("ユーザーを指定してください。")
            return

        created_at = snowflake_created_at(user_id)
        total_days, years, remaining_days = account_age(created_at, self.now())
        await event.channel.post(Card(
            title="アカウント情報",
            children=[
                CardText(text=f"<@{user_id}>"),
                Field(label="作成日", value=f"<t:{int(created_at.timestamp())}:R>"),
                Field(label="経過日数", value=f"{total_days}日（{years}年{remaining_days}日）"),
            ],
        ))

command_dispatcher = CommandDispatcher()
