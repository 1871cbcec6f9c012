"""In-memory subscription state.

Threads the bot has opted into; every later message in them is routed to
the subscribed-message handler. Nothing survives a restart.
"""

from typing import Set

from .types import ThreadIdentity


class MemoryState:
    def __init__(self):
        self._subscriptions: Set[str] = set()

    def subscribe(self, thread: ThreadIdentity) -> None:
        self._subscriptions.add(thread.key())

    def is_subscribed(self, thread: ThreadIdentity) -> bool:
        return thread.key() in self._subscriptions

memory_state = MemoryState()
