"""Gateway connection supervisor.

Keeps exactly one gateway session alive for the life of the process. A
session ends when its forwarded work finishes or fails, or when it reaches
its maximum lifetime; the supervisor then opens a new one. Errors while
starting or running a session are retried after a fixed delay, forever.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, Set

from ..config import get_settings
from ..log import get_logger

logger = get_logger("gateway")
settings = get_settings()


class GatewaySession:
    """
    One gateway connection: a single-resolution completion signal plus a
    lifetime ceiling. Work registered with wait_until() resolves the session
    when it completes; if it fails, wait() re-raises its exception.
    """

    def __init__(self, max_lifetime: float):
        self.max_lifetime = max_lifetime
        self._done: asyncio.Future = asyncio.get_running_loop().create_future()
        self._tasks: Set[asyncio.Task] = set()

    @property
    def done(self) -> bool:
        return self._done.done()

    def resolve(self) -> None:
        if not self._done.done():
            self._done.set_result(None)

    def wait_until(self, work: Awaitable[Any]) -> None:
        task = asyncio.ensure_future(work)
        self._tasks.add(task)
        task.add_done_callback(self._on_work_done)

    def fail(self, exc: BaseException) -> None:
        if not self._done.done():
            self._done.set_exception(exc)

    def _on_work_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self.fail(task.exception())
        else:
            self.resolve()

    async def wait(self) -> None:
        """
        Block until resolved or expired, then cancel whatever is still running.
        Raises the exception of failed work.
        """
        try:
            await asyncio.wait([self._done], timeout=self.max_lifetime)
            if not self._done.done():
                logger.info("Gateway session reached its maximum lifetime")
        finally:
            for task in list(self._tasks):
                task.cancel()
            self.resolve()
        # Work errors (including its own timeouts) surface here, not as expiry
        self._done.result()


class GatewaySupervisor:
    def __init__(
        self,
        adapter: Any,
        webhook_url: str,
        session_lifetime: Optional[float] = None,
        retry_delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.adapter = adapter
        self.webhook_url = webhook_url
        self.session_lifetime = session_lifetime if session_lifetime is not None else settings.GATEWAY_SESSION_HOURS * 3600
        self.retry_delay = retry_delay if retry_delay is not None else settings.GATEWAY_RETRY_DELAY_SECONDS
        self.sleep = sleep

    async def run(self) -> None:
        """Run forever. Returns only if the adapter has no gateway support."""
        start_listener = getattr(self.adapter, "start_gateway_listener", None)
        if start_listener is None:
            logger.warning("Discord adapter does not support gateway listener. Skipping.")
            return

        while True:
            try:
                logger.info("Starting Discord gateway listener...")
                session = GatewaySession(self.session_lifetime)
                await start_listener(session, self.webhook_url)
                await session.wait()
                logger.info("Gateway listener finished, restarting...")
            except Exception:
                logger.exception("Gateway listener error")
                await self.sleep(self.retry_delay)
