"""
Pending approval registry.

Single-owner index of outstanding approval requests, plus the short id
index used to map button callbacks (which only carry the first 8
characters of an id) back to the full id.

All access happens on the coordinator's event loop. ``lookup_and_remove``
does its work without awaiting, which makes it the one atomic point at
which a request leaves the pending state: whoever removes the entry owns
the terminal transition, everyone else sees None.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from gatekeeper.core.types import ApprovalRequest
from gatekeeper.interfaces.base import MessageHandle

logger = logging.getLogger(__name__)


@dataclass
class PendingEntry:
    """Live notification state for one outstanding request."""

    request: ApprovalRequest
    timer: asyncio.TimerHandle | None = None
    messages: dict[str, MessageHandle] = field(default_factory=dict)
    # Set exactly once, by whoever removes the entry from the registry
    final_text: str | None = None

    @property
    def closed(self) -> bool:
        return self.final_text is not None

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


class PendingRegistry:
    """In-memory index from approval id to its PendingEntry."""

    def __init__(self) -> None:
        self._entries: dict[str, PendingEntry] = {}
        self._short_ids: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, approval_id: str) -> bool:
        return approval_id in self._entries

    def insert(self, entry: PendingEntry) -> bool:
        """
        Register a new pending entry.

        Returns False (and leaves the registry untouched) if the request is
        already pending.
        """
        approval_id = entry.request.id
        if approval_id in self._entries:
            return False

        sid = entry.request.short_id
        previous = self._short_ids.get(sid)
        if previous is not None and previous != approval_id:
            logger.warning(
                "Short id %s collides: %s replaces %s for button callbacks",
                sid, approval_id, previous,
            )

        self._entries[approval_id] = entry
        self._short_ids[sid] = approval_id
        return True

    def peek(self, approval_id: str) -> PendingEntry | None:
        return self._entries.get(approval_id)

    def lookup_and_remove(self, approval_id: str) -> PendingEntry | None:
        """
        Remove and return the entry for approval_id, cancelling its timer.

        Returns None if the request is not pending (already resolved,
        expired, or never accepted).
        """
        entry = self._entries.pop(approval_id, None)
        if entry is None:
            return None
        entry.cancel_timer()
        sid = entry.request.short_id
        # A later colliding request may own the mapping by now
        if self._short_ids.get(sid) == approval_id:
            del self._short_ids[sid]
        return entry

    def resolve_short_id(self, short_id: str) -> str | None:
        return self._short_ids.get(short_id)

    def ids(self) -> list[str]:
        return list(self._entries)

    def clear(self) -> list[PendingEntry]:
        """Cancel every timer and drop all entries. Returns the dropped entries."""
        entries = list(self._entries.values())
        for entry in entries:
            entry.cancel_timer()
        self._entries.clear()
        self._short_ids.clear()
        return entries
