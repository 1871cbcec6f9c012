#!/usr/bin/env python3
"""
Expose the local webhook through an ngrok tunnel for Discord interactions.

Checks that the bot answers through the tunnel before printing the URL to
paste into Developer Portal > General Information > Interactions Endpoint URL.

Usage:
    python scripts/run_ngrok.py            # random ngrok domain
    NGROK_DOMAIN=bot.example.ngrok.app python scripts/run_ngrok.py
"""
import asyncio
import os
import sys

import httpx
import ngrok
from dotenv import load_dotenv

from idealx_bot.config import get_settings

load_dotenv()
settings = get_settings()

WEBHOOK_PATH = "/api/webhooks/discord"

async def check_webhook(public_url: str) -> bool:
    """GET the webhook health route through the tunnel."""
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            resp = await client.get(f"{public_url}{WEBHOOK_PATH}")
        return resp.status_code == 200
    except httpx.HTTPError as e:
        print(f"[WARN] Tunnel check failed: {e}")
        return False

async def start_tunnel():
    options = {"authtoken_from_env": True}
    domain = os.getenv("NGROK_DOMAIN")
    if domain:
        options["domain"] = domain

    print(f"Opening ngrok tunnel to localhost:{settings.PORT}...")
    try:
        listener = await ngrok.forward(settings.PORT, **options)
    except Exception as e:
        print(f"[ERROR] Failed to start ngrok: {e}")
        print("Set NGROK_AUTHTOKEN in your environment or .env file.")
        sys.exit(1)

    public_url = listener.url()
    if await check_webhook(public_url):
        print("[OK] Bot is reachable through the tunnel.")
    else:
        print("[WARN] Bot did not answer; start it with `python -m idealx_bot.main_server`.")

    print(f"\nInteractions Endpoint URL: {public_url}{WEBHOOK_PATH}")
    print("Discord sends a signed PING when you save it; the bot must be running.")

    # Keep the process (and the tunnel) alive
    await asyncio.Event().wait()

if __name__ == "__main__":
    asyncio.run(start_tunnel())
