"""A fixed-size circular buffer that keeps the most recent values."""

from __future__ import annotations

from typing import Generic, Iterator, TypeVar

T = TypeVar("T")


class RingBuffer(Generic[T]):
    """Circular buffer of fixed capacity; new values overwrite the oldest."""

    def __init__(self, size: int) -> None:
        if size <= 0:
            raise ValueError("ring buffer size must be positive")
        self._size = size
        self._data: list[T | None] = [None] * size
        self._cursor = 0
        self._count = 0

    @property
    def size(self) -> int:
        """Capacity of the buffer."""
        return self._size

    def add(self, value: T) -> None:
        """Append a value, overwriting the oldest one when the buffer is full."""
        if self._count < self._size:
            self._count += 1
        self._data[self._cursor] = value
        self._cursor = (self._cursor + 1) % self._size

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[T]:
        return iter(self.get_all())

    def get_all(self) -> list[T]:
        """Return the stored values from the oldest to the newest."""
        if self._count == self._size:
            return self._data[self._cursor:] + self._data[: self._cursor]  # type: ignore[return-value]
        return self._data[: self._count]  # type: ignore[return-value]

    def first(self) -> T:
        """Return the oldest value; raise IndexError when the buffer is empty."""
        if self._count == 0:
            raise IndexError("ring buffer is empty")
        index = (self._cursor - self._count) % self._size
        return self._data[index]  # type: ignore[return-value]

    def last(self, n: int = 0) -> T:
        """Return the value ``n`` steps back from the newest (0 is the newest)."""
        if n < 0 or n >= self._count:
            raise IndexError(f"no value {n} steps back in a buffer of {self._count}")
        index = (self._cursor - 1 - n) % self._size
        return self._data[index]  # type: ignore[return-value]

    def clear(self) -> None:
        """Remove every value."""
        self._data = [None] * self._size
        self._cursor = 0
        self._count = 0