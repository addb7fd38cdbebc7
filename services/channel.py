"""Bounded, closable channel connecting two pipeline stages."""

from __future__ import annotations

import queue
from typing import Generic, Iterator, Optional, TypeVar

T = TypeVar("T")

_CLOSED = object()


class ChannelClosed(Exception):
    """Raised when sending on a channel that has already been closed."""


class Channel(Generic[T]):
    """Single-producer, single-consumer queue with blocking put/get and close.

    ``close`` enqueues an end-of-stream marker, so a consumer sees every item
    sent before the close and then stops. Iterating the channel yields items
    until that marker arrives.
    """

    def __init__(self, capacity: int = 1, name: str = "channel") -> None:
        if capacity < 1:
            raise ValueError("Channel capacity must be at least 1.")
        self.name = name
        self.capacity = capacity
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=capacity)
        self._closed = False
        self._drained = False

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, item: T) -> None:
        """Block until there is room for ``item``."""
        if self._closed:
            raise ChannelClosed(f"Cannot send on closed channel {self.name!r}.")
        self._queue.put(item)

    def get(self, timeout: Optional[float] = None) -> T:
        """Return the next item, raising ``ChannelClosed`` once the stream has ended."""
        if self._drained:
            raise ChannelClosed(f"Channel {self.name!r} is closed.")
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            self._drained = True
            raise ChannelClosed(f"Channel {self.name!r} is closed.")
        return item  # type: ignore[return-value]

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put(_CLOSED)

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.get()
            except ChannelClosed:
                return
