"""
Play queue for the jukebox daemon.

The queue is a plain FIFO of item identifiers (file paths, URIs or
backend-specific track ids). It is shared by every control connection,
but it does no locking of its own: callers reach it only through
`jukebox.player.state.Player`, which owns the lock.

Design decisions:
- Items are opaque strings; the queue never inspects or rewrites them
- Entries are only appended at the tail or removed from the head
- Snapshots are copies, so callers can iterate without holding the lock
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Iterator

logger = logging.getLogger(__name__)


@dataclass
class PlayQueue:
    """
    FIFO queue of pending item identifiers.

    Insertion order is significant and preserved: `pop_next()` always
    returns the oldest remaining item.
    """

    _items: deque[str] = field(default_factory=deque)

    def __len__(self) -> int:
        """Return number of pending items."""
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    @property
    def is_empty(self) -> bool:
        """Check if the queue has no pending items."""
        return not self._items

    def append(self, item: str) -> int:
        """
        Append an item at the tail of the queue.

        Args:
            item: Item identifier to enqueue.

        Returns:
            The new queue length.
        """
        self._items.append(item)
        logger.info("queue.append: item=%s, len=%d", item, len(self._items))
        return len(self._items)

    def peek(self) -> str | None:
        """Return the head of the queue without removing it."""
        return self._items[0] if self._items else None

    def pop_next(self) -> str | None:
        """
        Remove and return the head of the queue.

        Returns:
            The oldest pending item, or None if the queue is empty.
        """
        if not self._items:
            return None
        item = self._items.popleft()
        logger.info("queue.pop_next: item=%s, remaining=%d", item, len(self._items))
        return item

    def snapshot(self) -> list[str]:
        """Return a copy of the pending items in insertion order."""
        return list(self._items)

    def clear(self) -> int:
        """
        Drop every pending item.

        Returns:
            The number of items removed.
        """
        count = len(self._items)
        self._items.clear()
        logger.info("queue.clear: removed=%d", count)
        return count
