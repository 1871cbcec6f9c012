"""OpenAI client wrapper for conversation replies, summaries and translations.

Uses the Responses API. Replies are streamed as text deltas and may call the
hosted web search tool; the other operations are single deterministic calls.
Errors propagate to the caller.
"""

from typing import AsyncIterator, List, Optional

from openai import AsyncOpenAI

from ..config import get_settings
from ..log import get_logger
from ..schemas.conversation import ConversationTurn, UrlContent
from .prompts import (
    SUMMARY_INSTRUCTION,
    URL_SUMMARY_INSTRUCTION,
    forum_section,
    load_prompt,
    translation_instruction,
)

settings = get_settings()
logger = get_logger("llm")


def _as_input(turns: List[ConversationTurn]) -> List[dict]:
    return [{"role": t.role, "content": t.content} for t in turns]


def transcript(turns: List[ConversationTurn]) -> str:
    """Flatten turns into a labeled transcript for single-shot prompts."""
    return "\n".join(
        f"{'ユーザー' if t.role == 'user' else 'ボット'}: {t.content}" for t in turns
    )


def url_summary_prompt(message_text: str, url_contents: List[UrlContent]) -> str:
    prompt = f"以下のメッセージとURLの内容を要約してください。\n\nメッセージ: {message_text}"
    for item in url_contents:
        prompt += f"\n\n--- {item.url} ---\n{item.content}"
    return prompt


class LLMClient:
    def __init__(self):
        self.client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
        self.model = settings.MODEL

    def system_prompt(self, forum_title: Optional[str] = None, forum_description: Optional[str] = None) -> str:
        return load_prompt("system_prompt") + forum_section(forum_title, forum_description)

    async def respond(
        self,
        turns: List[ConversationTurn],
        forum_title: Optional[str] = None,
        forum_description: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """
        Stream a reply to the conversation as text deltas.
        The web search tool is offered when ENABLE_WEB_SEARCH is set.
        """
        tools = [{"type": "web_search_preview"}] if settings.ENABLE_WEB_SEARCH else []
        stream = await self.client.responses.create(
            model=self.model,
            instructions=self.system_prompt(forum_title, forum_description),
            input=_as_input(turns),
            tools=tools,
            max_tool_calls=settings.MAX_TOOL_STEPS,
            max_output_tokens=settings.MAX_OUTPUT_TOKENS,
            stream=True,
        )
        async for event in stream:
            if event.type == "response.output_text.delta":
                yield event.delta
            elif event.type == "response.web_search_call.completed":
                logger.debug("Web search call completed")

    async def _complete(self, instructions: str, content: str) -> str:
        response = await self.client.responses.create(
            model=self.model,
            instructions=instructions,
            input=[{"role": "user", "content": content}],
            max_output_tokens=settings.MAX_OUTPUT_TOKENS,
        )
        return response.output_text

    async def summarize(self, turns: List[ConversationTurn]) -> str:
        return await self._complete(SUMMARY_INSTRUCTION, transcript(turns))

    async def translate(self, text: str, language: str) -> str:
        """Translate text; language is a display name or, if unknown, the raw key."""
        return await self._complete(translation_instruction(language), text)

    async def summarize_with_urls(self, message_text: str, url_contents: List[UrlContent]) -> str:
        return await self._complete(URL_SUMMARY_INSTRUCTION, url_summary_prompt(message_text, url_contents))

llm_client = LLMClient()
