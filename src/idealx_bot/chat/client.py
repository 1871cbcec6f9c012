"""Discord REST client.

Thin httpx wrapper over the handful of endpoints the bot needs. Rate limits
and server errors are retried with exponential backoff.
"""

import time
from typing import Any, Dict, List, Optional, Tuple

import httpx
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from ..config import get_settings
from ..log import get_logger

logger = get_logger("discord_client")
settings = get_settings()

# Channel objects (names, topics) are re-read after this many seconds
CHANNEL_CACHE_TTL = 300.0


class DiscordApiError(Exception):
    def __init__(self, status_code: int, body: str):
        super().__init__(f"Discord API error {status_code}: {body}")
        self.status_code = status_code
        self.body = body


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, DiscordApiError):
        return exc.status_code == 429 or exc.status_code >= 500
    return isinstance(exc, httpx.TransportError)


class DiscordClientWrapper:
    def __init__(self):
        self.base_url = settings.DISCORD_API_BASE
        self.application_id = settings.DISCORD_APPLICATION_ID
        self.headers = {
            "Authorization": f"Bot {settings.DISCORD_BOT_TOKEN}",
            "User-Agent": "DiscordBot (https://github.com/idealx/idealx-bot, 2.0)",
        }
        self._channels: Dict[str, Tuple[float, Dict[str, Any]]] = {}
        self.clock = time.monotonic

    @retry(
        retry=retry_if_exception(_is_retryable),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def request(self, method: str, path: str, **kwargs) -> Any:
        async with httpx.AsyncClient(base_url=self.base_url, headers=self.headers, timeout=30.0) as client:
            resp = await client.request(method, path, **kwargs)
        if resp.status_code == 429:
            logger.warning(f"Discord rate limited on {method} {path}, retrying...")
        if resp.status_code >= 400:
            raise DiscordApiError(resp.status_code, resp.text)
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    async def get_channel(self, channel_id: str) -> Dict[str, Any]:
        """Channel objects are cached for CHANNEL_CACHE_TTL seconds."""
        now = self.clock()
        cached = self._channels.get(channel_id)
        if cached and now - cached[0] < CHANNEL_CACHE_TTL:
            return cached[1]

        channel = await self.request("GET", f"/channels/{channel_id}")
        # Drop expired entries so the cache only holds recently used channels
        self._channels = {k: v for k, v in self._channels.items() if now - v[0] < CHANNEL_CACHE_TTL}
        self._channels[channel_id] = (now, channel)
        return channel

    async def get_messages(self, channel_id: str, limit: int = 50, before: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Reads up to `limit` (max 100) messages, newest first.
        """
        params: Dict[str, Any] = {"limit": max(1, min(limit, 100))}
        if before:
            params["before"] = before
        return await self.request("GET", f"/channels/{channel_id}/messages", params=params) or []

    async def create_message(self, channel_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("POST", f"/channels/{channel_id}/messages", json=payload)

    async def edit_message(self, channel_id: str, message_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("PATCH", f"/channels/{channel_id}/messages/{message_id}", json=payload)

    async def trigger_typing(self, channel_id: str) -> None:
        await self.request("POST", f"/channels/{channel_id}/typing")

    async def edit_interaction_message(self, token: str, payload: Dict[str, Any], message_id: str = "@original") -> Dict[str, Any]:
        return await self.request("PATCH", f"/webhooks/{self.application_id}/{token}/messages/{message_id}", json=payload)

    async def create_followup(self, token: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("POST", f"/webhooks/{self.application_id}/{token}", json=payload)

discord_client = DiscordClientWrapper()
