import json
import time
import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient

from idealx_bot import main_server
from idealx_bot.chat.types import MessageEvent, ReactionEvent, SlashCommandEvent
from idealx_bot.config import get_settings
from idealx_bot.gateway.listener import GATEWAY_TOKEN_HEADER
from conftest import TEST_BOT_ID, TEST_SIGNING_KEY, FakeThread

settings = get_settings()
client = TestClient(main_server.app)

WEBHOOK = "/api/webhooks/discord"


def signed_post(payload: dict):
    body = json.dumps(payload).encode("utf-8")
    timestamp = str(int(time.time()))
    signature = TEST_SIGNING_KEY.sign(timestamp.encode("utf-8") + body).signature.hex()
    return client.post(WEBHOOK, content=body, headers={
        "Content-Type": "application/json",
        "X-Signature-Ed25519": signature,
        "X-Signature-Timestamp": timestamp,
    })


def gateway_post(payload: dict, token: str = None):
    return client.post(WEBHOOK, json=payload, headers={GATEWAY_TOKEN_HEADER: token or settings.DISCORD_BOT_TOKEN})


@pytest.fixture
def dispatched():
    """Replace the router's dispatch with a recorder; background tasks run before TestClient returns."""
    events = []

    async def record(event):
        events.append(event)

    with patch.object(main_server.router, "dispatch", record):
        yield events


@pytest.fixture
def fake_thread(channel_identity):
    thread = FakeThread(channel_identity)
    with patch.object(main_server.adapter, "thread_for", AsyncMock(return_value=thread)):
        yield thread


def test_health_endpoints():
    """
    WHY: Uptime checks and Discord's endpoint setup hit these plain GET routes.
    HOW: GET / and GET /api/webhooks/discord.
    EXPECTED: 200 with the fixed status strings.
    """
    response = client.get("/")
    assert response.status_code == 200
    assert response.text == "IdealX Bot is running"

    response = client.get(WEBHOOK)
    assert response.status_code == 200
    assert response.text == "Discord webhook endpoint active"


def test_ping_is_answered_with_pong():
    """
    WHY: Discord validates the interactions endpoint with a signed PING.
    HOW: Post a correctly signed {"type": 1}.
    EXPECTED: {"type": 1}.
    """
    response = signed_post({"type": 1})
    assert response.status_code == 200
    assert response.json() == {"type": 1}


def test_unsigned_interaction_rejected():
    response = client.post(WEBHOOK, json={"type": 1})
    assert response.status_code == 400


def test_gateway_event_with_wrong_token_rejected(dispatched):
    response = gateway_post({"type": "GATEWAY_MESSAGE_CREATE", "data": {}}, token="not-the-token")
    assert response.status_code == 401
    assert dispatched == []


def test_gateway_message_is_dispatched(dispatched, fake_thread):
    """
    WHY: Forwarded MESSAGE_CREATE events must reach the router as message events.
    HOW: Post a gateway envelope with the bot token header.
    EXPECTED: {"status": "ok"}; the router receives a MessageEvent that mentions the bot.
    """
    response = gateway_post({
        "type": "GATEWAY_MESSAGE_CREATE",
        "timestamp": 1735732800000,
        "data": {
            "id": "m1",
            "channel_id": "C1",
            "guild_id": "G1",
            "content": f"<@{TEST_BOT_ID}> what's new?",
            "author": {"id": "U1", "username": "alice"},
            "mentions": [{"id": TEST_BOT_ID}],
            "timestamp": "2025-01-01T12:00:00+00:00",
        },
    })
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}

    assert len(dispatched) == 1
    event = dispatched[0]
    assert isinstance(event, MessageEvent)
    assert event.is_mention
    assert event.thread is fake_thread
    main_server.adapter.thread_for.assert_awaited_once_with("C1", "G1")


def test_gateway_reaction_is_dispatched(dispatched, fake_thread):
    response = gateway_post({
        "type": "GATEWAY_MESSAGE_REACTION_ADD",
        "data": {"channel_id": "C1", "guild_id": "G1", "message_id": "m1", "user_id": "U1", "emoji": {"name": "📝"}},
    })
    assert response.json() == {"status": "ok"}
    assert isinstance(dispatched[0], ReactionEvent)
    assert dispatched[0].emoji == "📝"


def test_other_gateway_events_ignored(dispatched):
    response = gateway_post({"type": "GATEWAY_TYPING_START", "data": {}})
    assert response.json() == {"status": "ignored"}
    assert dispatched == []


def test_slash_command_is_deferred_and_dispatched(dispatched):
    """
    WHY: Commands must be acknowledged within 3 seconds; work happens after the response.
    HOW: Post a signed APPLICATION_COMMAND interaction for /translate.
    EXPECTED: {"type": 5} (deferred); the router receives the command with its flattened options.
    """
    response = signed_post({
        "type": 2,
        "token": "interaction-token",
        "guild_id": "G1",
        "channel": {"id": "C1", "type": 0, "guild_id": "G1"},
        "member": {"user": {"id": "U1", "username": "alice"}},
        "data": {"name": "translate", "options": [
            {"name": "language", "value": "french"},
            {"name": "text", "value": "Hello"},
        ]},
    })
    assert response.status_code == 200
    assert response.json() == {"type": 5}

    event = dispatched[0]
    assert isinstance(event, SlashCommandEvent)
    assert event.command == "translate"
    assert event.text == "french Hello"
    assert event.user.id == "U1"
    assert event.channel.token == "interaction-token"


def test_unsupported_interaction_type(dispatched):
    response = signed_post({"type": 3, "token": "t", "data": {}})
    assert response.status_code == 400
    assert dispatched == []
