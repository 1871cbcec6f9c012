import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from idealx_bot.llm.client import LLMClient, transcript, url_summary_prompt
from idealx_bot.llm.prompts import forum_section, load_prompt
from idealx_bot.schemas.conversation import ConversationTurn, UrlContent


async def fake_stream(*events):
    for event in events:
        yield event


@pytest.fixture
def llm():
    client = LLMClient()
    client.client = MagicMock()
    client.client.responses.create = AsyncMock()
    return client


@pytest.fixture
def turns():
    return [
        ConversationTurn(role="user", content="What is asyncio?"),
        ConversationTurn(role="assistant", content="An event loop library."),
        ConversationTurn(role="user", content="Show an example"),
    ]


def test_transcript_labels_speakers(turns):
    assert transcript(turns) == (
        "ユーザー: What is asyncio?\n"
        "ボット: An event loop library.\n"
        "ユーザー: Show an example"
    )


def test_url_summary_prompt_sections():
    prompt = url_summary_prompt("look at this", [
        UrlContent(url="https://a.com", content="page a"),
        UrlContent(url="https://b.com", content="page b"),
    ])
    assert prompt.startswith("以下のメッセージとURLの内容を要約してください。\n\nメッセージ: look at this")
    assert "\n\n--- https://a.com ---\npage a" in prompt
    assert prompt.endswith("\n\n--- https://b.com ---\npage b")


def test_forum_section():
    assert forum_section(None, None) == ""
    assert forum_section("Title", None) == "\n\n--- フォーラム情報 ---\nタイトル: Title"
    assert forum_section("Title", "Desc") == "\n\n--- フォーラム情報 ---\nタイトル: Title\n説明: Desc"


@pytest.mark.asyncio
async def test_respond_streams_text_deltas(llm, turns):
    """
    WHY: Replies are posted progressively, so only text deltas may leave the stream.
    HOW: Mock responses.create to return a stream mixing delta, web search and completion events.
    EXPECTED: Only the delta strings are yielded, in order.
    """
    llm.client.responses.create.return_value = fake_stream(
        SimpleNamespace(type="response.created"),
        SimpleNamespace(type="response.web_search_call.completed"),
        SimpleNamespace(type="response.output_text.delta", delta="Hello"),
        SimpleNamespace(type="response.output_text.delta", delta=", world"),
        SimpleNamespace(type="response.completed"),
    )

    chunks = [chunk async for chunk in llm.respond(turns)]
    assert chunks == ["Hello", ", world"]


@pytest.mark.asyncio
async def test_respond_request_shape(llm, turns):
    """
    WHY: The model must get the persona prompt, the forum context, the whole turn list and bounded tool use.
    HOW: Call respond with forum info and inspect the create() kwargs.
    EXPECTED: Instructions contain the system prompt plus forum section; input mirrors the turns; limits are set.
    """
    llm.client.responses.create.return_value = fake_stream()

    async for _ in llm.respond(turns, forum_title="Deploy help", forum_description="CI questions"):
        pass

    kwargs = llm.client.responses.create.await_args.kwargs
    assert kwargs["instructions"].startswith(load_prompt("system_prompt"))
    assert kwargs["instructions"].endswith("タイトル: Deploy help\n説明: CI questions")
    assert kwargs["input"] == [
        {"role": "user", "content": "What is asyncio?"},
        {"role": "assistant", "content": "An event loop library."},
        {"role": "user", "content": "Show an example"},
    ]
    assert kwargs["tools"] == [{"type": "web_search_preview"}]
    assert kwargs["max_tool_calls"] == 6
    assert kwargs["max_output_tokens"] == 4096
    assert kwargs["stream"] is True


@pytest.mark.asyncio
async def test_respond_without_web_search(llm, turns):
    llm.client.responses.create.return_value = fake_stream()
    with patch("idealx_bot.llm.client.settings.ENABLE_WEB_SEARCH", False):
        async for _ in llm.respond(turns):
            pass
    assert llm.client.responses.create.await_args.kwargs["tools"] == []


@pytest.mark.asyncio
async def test_summarize_sends_transcript(llm, turns):
    llm.client.responses.create.return_value = SimpleNamespace(output_text="summary")

    assert await llm.summarize(turns) == "summary"
    kwargs = llm.client.responses.create.await_args.kwargs
    assert kwargs["input"] == [{"role": "user", "content": transcript(turns)}]
    assert "stream" not in kwargs


@pytest.mark.asyncio
async def test_translate_names_target_language(llm):
    llm.client.responses.create.return_value = SimpleNamespace(output_text="Bonjour")

    assert await llm.translate("Hello", "フランス語") == "Bonjour"
    kwargs = llm.client.responses.create.await_args.kwargs
    assert "フランス語に翻訳" in kwargs["instructions"]
    assert kwargs["input"] == [{"role": "user", "content": "Hello"}]


@pytest.mark.asyncio
async def test_errors_propagate(llm, turns):
    llm.client.responses.create.side_effect = RuntimeError("rate limited")
    with pytest.raises(RuntimeError):
        await llm.summarize(turns)
