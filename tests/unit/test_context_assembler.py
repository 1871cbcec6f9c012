import pytest
from datetime import timedelta
from idealx_bot.context.assembler import MENTION_RE, build_turns, collect_messages, strip_mentions
from conftest import BASE_TIME, make_message, stream_of

def test_roles_and_order():
    """
    WHY: The model must see who said what, in the order it was said.
    HOW: Build turns from a user message followed by a bot reply.
    EXPECTED: Roles map is_me -> assistant, others -> user; order is preserved.
    """
    messages = [
        make_message("What is Python?", minutes=0),
        make_message("A programming language.", is_me=True, minutes=1),
        make_message("Thanks", minutes=2),
    ]
    turns = build_turns(messages)
    assert [t.role for t in turns] == ["user", "assistant", "user"]
    assert [t.content for t in turns] == ["What is Python?", "A programming language.", "Thanks"]

def test_mentions_stripped_and_trimmed():
    """
    WHY: Raw mention tokens (<@123>, <@!123>) are noise for the model.
    HOW: Pass messages containing both mention forms with surrounding whitespace.
    EXPECTED: Content has no mention tokens and no leading/trailing whitespace.
    """
    messages = [
        make_message("<@900000000000000001> hello there ", minutes=0),
        make_message("  <@!123456> and <@42> too", minutes=1),
    ]
    turns = build_turns(messages)
    assert [t.content for t in turns] == ["hello there", "and  too"]
    for t in turns:
        assert not MENTION_RE.search(t.content)
        assert t.content == t.content.strip()

def test_blank_and_mention_only_messages_dropped():
    """
    WHY: Every turn handed to the model must have content.
    HOW: Mix blank, whitespace-only and mention-only messages with one real message.
    EXPECTED: Only the real message becomes a turn.
    """
    messages = [
        make_message("", minutes=0),
        make_message("   \n ", minutes=1),
        make_message("<@900000000000000001>", minutes=2),
        make_message("<@1> <@!2>", minutes=3),
        make_message("real question", minutes=4),
    ]
    turns = build_turns(messages)
    assert len(turns) == 1
    assert turns[0].content == "real question"

def test_since_excludes_older_messages():
    """
    WHY: After /clear, history before the reset must not reach the model.
    HOW: Pass messages at t=0..3 minutes and since=t+2min.
    EXPECTED: Only messages at or after the marker are kept.
    """
    messages = [make_message(f"msg {i}", minutes=i) for i in range(4)]
    turns = build_turns(messages, since=BASE_TIME + timedelta(minutes=2))
    assert [t.content for t in turns] == ["msg 2", "msg 3"]

def test_nested_mentions_fully_removed():
    """
    WHY: Removing one mention can splice the surrounding text into a new mention token.
    HOW: Build turns from "hi <@<@123>456>" and a doubly nested variant.
    EXPECTED: No mention token survives in the turn content.
    """
    turns = build_turns([
        make_message("hi <@<@123>456>", minutes=0),
        make_message("<@<@!<@1>2>3> there", minutes=1),
    ])
    assert [t.content for t in turns] == ["hi", "there"]
    for t in turns:
        assert not MENTION_RE.search(t.content)

def test_strip_mentions_keeps_other_angle_brackets():
    assert strip_mentions("<#123> channel and <@&456> role") == "<#123> channel and <@&456> role"

@pytest.mark.asyncio
async def test_collect_messages_limit_and_order():
    """
    WHY: History iterators yield newest first, but the model needs oldest first.
    HOW: Collect 3 items from a newest-first stream of 5.
    EXPECTED: The 3 newest items, returned oldest first; iteration stops at the limit.
    """
    result = await collect_messages(stream_of("e", "d", "c", "b", "a"), 3)
    assert result == ["c", "d", "e"]

@pytest.mark.asyncio
async def test_collect_messages_short_source():
    result = await collect_messages(stream_of("b", "a"), 100)
    assert result == ["a", "b"]
