"""HTTP server and process entry point for IdealX Bot.

Serves the Discord webhook and health checks, and runs the gateway
supervisor as a background task for the life of the process.

Usage:
    python -m idealx_bot.main_server
"""

import asyncio
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.responses import PlainTextResponse

from .bot.router import EventRouter
from .chat.adapter import DiscordAdapter
from .config import get_settings
from .gateway.supervisor import GatewaySupervisor
from .log import get_logger, setup_logging

settings = get_settings()
setup_logging()
logger = get_logger("server")

adapter = DiscordAdapter()
router = EventRouter()


@asynccontextmanager
async def lifespan(app: FastAPI):
    gateway_task = None
    if settings.ENABLE_GATEWAY:
        supervisor = GatewaySupervisor(adapter, settings.webhook_url)
        gateway_task = asyncio.create_task(supervisor.run())
    logger.info(f"IdealX server running on port {settings.PORT}")
    yield
    if gateway_task:
        gateway_task.cancel()

app = FastAPI(lifespan=lifespan)


@app.post("/api/webhooks/discord")
async def discord_webhook(request: Request, background_tasks: BackgroundTasks):
    return await adapter.handle_webhook(request, router.dispatch, background_tasks.add_task)


@app.get("/", response_class=PlainTextResponse)
async def health():
    return "IdealX Bot is running"


@app.get("/api/webhooks/discord", response_class=PlainTextResponse)
async def webhook_health():
    return "Discord webhook endpoint active"


class ImmediateExitServer(uvicorn.Server):
    """SIGINT/SIGTERM exit at once: no draining of in-flight handlers."""

    def handle_exit(self, sig, frame):
        logger.info("Shutting down...")
        os._exit(0)


def main():
    config = uvicorn.Config(app, host="0.0.0.0", port=settings.PORT, log_config=None)
    ImmediateExitServer(config).run()

if __name__ == "__main__":
    main()
