"""
Bounded single-consumer channel used to feed async iteration.

The bus is the only producer: ``send`` suspends the calling task while the
buffer is full and returns once the value is buffered. ``close`` is
terminal and wakes every pending sender and receiver.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import AsyncIterator, Callable
from typing import Generic, TypeVar

from eventemitter.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class ChannelClosedError(RuntimeError):
    """Raised when a value is sent on a channel that is already closed."""

    def __init__(self, message: str | None = None):
        self.message = message or "Cannot send on a closed channel"
        super().__init__(self.message)


class Channel(Generic[T]):
    """
    Backpressured conduit from the event bus to one consumer.

    Attributes:
        capacity: Values buffered before ``send`` suspends
    """

    def __init__(self, capacity: int = 1):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._buffer: deque[T] = deque()
        self._closed = False
        self._cond = asyncio.Condition()

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._buffer)

    async def send(self, item: T) -> bool:
        """
        Buffer a value, waiting while the buffer is full.

        Args:
            item: Value to deliver

        Returns:
            True if the value was buffered, False if the channel was closed
            while waiting for room (the value is dropped)

        Raises:
            ChannelClosedError: If the channel is already closed
        """
        if self._closed:
            logger.error("channel_send_after_close", capacity=self.capacity)
            raise ChannelClosedError()

        async with self._cond:
            await self._cond.wait_for(
                lambda: self._closed or len(self._buffer) < self.capacity
            )
            if self._closed:
                return False
            self._buffer.append(item)
            self._cond.notify_all()
            return True

    async def receive(self) -> T:
        """
        Take the next value, waiting until one is available.

        Buffered values are still handed out after ``close``.

        Raises:
            StopAsyncIteration: Once the channel is closed and drained
        """
        async with self._cond:
            await self._cond.wait_for(lambda: self._buffer or self._closed)
            if not self._buffer:
                raise StopAsyncIteration
            item = self._buffer.popleft()
            self._cond.notify_all()
            return item

    async def close(self) -> None:
        """Close the channel. Closing twice is a no-op."""
        if self._closed:
            return
        self._closed = True
        async with self._cond:
            self._cond.notify_all()


class EventStream(Generic[T]):
    """
    Async iterator over the values delivered to one channel.

    ``async for`` runs through an async generator, so leaving the loop
    early (``break``, ``return``, an exception) closes the stream once the
    generator is finalized. ``aclose()`` does the same explicitly.
    """

    def __init__(
        self,
        channel: Channel[T],
        on_close: Callable[[Channel[T]], None] | None = None,
    ):
        self._channel = channel
        self._on_close = on_close

    @property
    def closed(self) -> bool:
        return self._channel.closed

    def __aiter__(self) -> AsyncIterator[T]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[T]:
        try:
            while True:
                try:
                    item = await self._channel.receive()
                except StopAsyncIteration:
                    return
                yield item
        finally:
            await self.aclose()

    async def __anext__(self) -> T:
        return await self._channel.receive()

    async def aclose(self) -> None:
        """Deregister from the bus and close the channel. Safe to repeat."""
        if self._on_close is not None:
            on_close, self._on_close = self._on_close, None
            on_close(self._channel)
        await self._channel.close()

    async def __aenter__(self) -> EventStream[T]:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
