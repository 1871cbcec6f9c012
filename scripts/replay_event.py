import asyncio
import httpx
import time
from datetime import datetime, timezone

# Sends a MESSAGE_CREATE event to a locally running server exactly as the
# gateway listener would forward it, authenticated with the bot token header.
from idealx_bot.config import get_settings
from idealx_bot.gateway.listener import GATEWAY_TOKEN_HEADER

settings = get_settings()
URL = settings.webhook_url

async def send_event(channel_id: str, text: str):
    now = datetime.now(timezone.utc)
    payload = {
        "type": "GATEWAY_MESSAGE_CREATE",
        "timestamp": int(time.time() * 1000),
        "data": {
            "id": str(int(now.timestamp() * 1000 - 1420070400000) << 22),
            "channel_id": channel_id,
            "content": text,
            "timestamp": now.isoformat(),
            "author": {"id": "100000000000000001", "username": "replay-user"},
            "mentions": [{"id": settings.DISCORD_APPLICATION_ID}] if "<@" in text else [],
            "mention_roles": [],
        },
    }

    async with httpx.AsyncClient() as client:
        print(f"Sending event to {URL}...")
        resp = await client.post(URL, json=payload, headers={GATEWAY_TOKEN_HEADER: settings.DISCORD_BOT_TOKEN})
        print(f"Status: {resp.status_code}")
        print(f"Response: {resp.text}")

if __name__ == "__main__":
    channel = input("Channel or thread ID: ").strip()
    text = input("Message (default: ぬるぽ): ") or "ぬるぽ"
    asyncio.run(send_event(channel, text))
