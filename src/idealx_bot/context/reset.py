"""Per-scope context reset markers set by /clear.

Markers live in process memory only and are never evicted; they are lost on
restart and grow with the number of distinct scopes that ran /clear.
"""

from datetime import datetime, timezone
from typing import Dict, Optional

from ..chat.types import ThreadIdentity


class ResetMarkers:
    def __init__(self):
        self._markers: Dict[str, datetime] = {}

    def mark(self, scope: ThreadIdentity, at: Optional[datetime] = None) -> datetime:
        at = at or datetime.now(timezone.utc)
        self._markers[scope.key()] = at
        return at

    def get(self, scope: ThreadIdentity) -> Optional[datetime]:
        return self._markers.get(scope.key())

    def since(self, thread: ThreadIdentity) -> Optional[datetime]:
        """
        Latest marker that applies to a thread: its own, or its parent
        channel's when /clear was run on the channel.
        """
        candidates = [self.get(thread)]
        if thread.thread_id:
            candidates.append(self.get(thread.channel_scope()))
        found = [c for c in candidates if c is not None]
        return max(found) if found else None

    def __len__(self) -> int:
        return len(self._markers)

reset_markers = ResetMarkers()
