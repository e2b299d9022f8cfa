"""A thread-safe priority queue ordered by priority, then by enqueue time."""

from __future__ import annotations

import heapq
import itertools
import threading
from typing import Any, Generic, Iterable, Protocol, TypeVar


class PriorityItem(Protocol):
    """What an element of the queue has to provide."""

    @property
    def id(self) -> str: ...

    @property
    def priority(self) -> int: ...

    @property
    def enqueued_at(self) -> Any: ...


T = TypeVar("T", bound=PriorityItem)


class PriorityQueue(Generic[T]):
    """Higher priority comes out first; equal priorities come out in enqueue order."""

    def __init__(self) -> None:
        self._heap: list[tuple[int, Any, int, T]] = []
        self._counter = itertools.count()
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._heap)

    def push(self, item: T) -> None:
        """Add an item to the queue."""
        with self._lock:
            entry = (-item.priority, item.enqueued_at, next(self._counter), item)
            heapq.heappush(self._heap, entry)

    def pop(self) -> T:
        """Remove and return the item that comes first; raise IndexError if empty."""
        with self._lock:
            if not self._heap:
                raise IndexError("pop from an empty priority queue")
            return heapq.heappop(self._heap)[-1]

    def remove(self, item_id: str) -> bool:
        """Remove the item with this id; return whether one was found."""
        with self._lock:
            for position, entry in enumerate(self._heap):
                if entry[-1].id == item_id:
                    del self._heap[position]
                    heapq.heapify(self._heap)
                    return True
            return False

    def contains(self, ids: Iterable[str]) -> dict[str, bool]:
        """Map each given id to whether an item with that id is queued."""
        with self._lock:
            present = {entry[-1].id for entry in self._heap}
        return {item_id: item_id in present for item_id in ids}

    def items(self) -> list[T]:
        """Return a copy of the queued items in the order they would be popped."""
        with self._lock:
            return [entry[-1] for entry in sorted(self._heap)]

    def clear(self) -> None:
        """Remove every item."""
        with self._lock:
            self._heap.clear()