"""Logging setup for the server process.

setup_logging() installs one Rich console handler on the root logger and
routes uvicorn's loggers through it; get_logger() returns module loggers.
"""

import logging
from rich.logging import RichHandler
from .config import get_settings

# Chatty third-party loggers, capped at WARNING
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "discord", "discord.gateway", "discord.http")

UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

def setup_logging():
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)]
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # uvicorn runs with log_config=None; let its records reach the Rich handler
    for name in UVICORN_LOGGERS:
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.propagate = True

def get_logger(name: str):
    return logging.getLogger(f"idealx.{name}")
