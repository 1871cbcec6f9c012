"""Gateway listener that forwards push events to our own webhook.

Connects with discord.py, and for every raw MESSAGE_CREATE or
MESSAGE_REACTION_ADD dispatch posts the payload to the webhook endpoint, so
gateway events and interactions share one handling path.
"""

import json
import time
from typing import Any, Dict

import discord
import httpx

from ..log import get_logger

logger = get_logger("gateway_listener")

FORWARDED_EVENTS = {"MESSAGE_CREATE", "MESSAGE_REACTION_ADD"}
GATEWAY_TOKEN_HEADER = "x-discord-gateway-token"


class ForwardingClient(discord.Client):
    def __init__(self, token: str, webhook_url: str, **kwargs):
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(intents=intents, enable_debug_events=True, **kwargs)
        self._token = token
        self.webhook_url = webhook_url

    async def on_ready(self):
        logger.info(f"Gateway connected as {self.user}")

    async def on_socket_raw_receive(self, msg: str):
        try:
            payload = json.loads(msg)
        except (TypeError, ValueError):
            return
        event_type = payload.get("t")
        if event_type not in FORWARDED_EVENTS:
            return
        await self.forward(event_type, payload.get("d") or {})

    async def forward(self, event_type: str, data: Dict[str, Any]) -> None:
        body = {
            "type": f"GATEWAY_{event_type}",
            "timestamp": int(time.time() * 1000),
            "data": data,
        }
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                resp = await client.post(
                    self.webhook_url,
                    json=body,
                    headers={GATEWAY_TOKEN_HEADER: self._token},
                )
            if resp.status_code >= 400:
                logger.warning(f"Webhook rejected {event_type}: HTTP {resp.status_code}")
        except httpx.HTTPError as e:
            logger.warning(f"Failed to forward {event_type}: {e}")


async def run_listener(token: str, webhook_url: str) -> None:
    """Hold one gateway connection until it closes or the task is cancelled."""
    async with ForwardingClient(token, webhook_url) as client:
        await client.start(token)
