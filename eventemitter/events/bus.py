"""
Typed in-process event emitter.

Provides:
- Callback listeners (persistent and one-shot)
- Per-event async streams with backpressure
- A global async stream of every event
- Ordered fan-out: callbacks, then global streams, then per-event streams
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Hashable
from dataclasses import dataclass
from functools import partial
from typing import Any, Generic, TypeVar

from eventemitter.config import EmitterConfig
from eventemitter.events.channel import Channel, EventStream
from eventemitter.logging_config import get_logger

logger = get_logger(__name__)


# =============================================================================
# Types
# =============================================================================


K = TypeVar("K", bound=Hashable)

Payload = tuple[Any, ...]

# Listener callback: receives the emitted payload as positional arguments
EventCallback = Callable[..., Any]


@dataclass(frozen=True)
class Listener:
    """Registered callback entry."""

    callback: EventCallback
    once: bool = False


@dataclass(frozen=True)
class EventRecord(Generic[K]):
    """
    One emission as seen by a global stream.

    Attributes:
        name: Event name
        payload: Positional arguments passed to ``emit``
    """

    name: K
    payload: Payload

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"name": self.name, "payload": list(self.payload)}


# =============================================================================
# Event Emitter
# =============================================================================


class EventEmitter(Generic[K]):
    """
    Event bus with callback and async-stream consumers.

    ``K`` is the closed set of event names, e.g.
    ``EventEmitter[Literal["ready", "data"]]`` or an ``Enum``.

    Payloads are plain ``tuple[Any, ...]`` at this level: ``Generic[K]``
    cannot tie each name to its own payload shape. Integrators who want
    that checked declare it with ``typing.overload`` on a subclass:

        Topic = Literal["ready", "data"]

        class AppEmitter(EventEmitter[Topic]):
            @overload
            async def emit(self, name: Literal["ready"]) -> None: ...
            @overload
            async def emit(self, name: Literal["data"], chunk: bytes) -> None: ...
            async def emit(self, name, *payload):
                await super().emit(name, *payload)

    ``on``/``once`` and ``subscribe`` can be narrowed the same way.

    Example:
        bus: EventEmitter[str] = EventEmitter()
        bus.on("data", print)
        stream = bus.subscribe("data")

        async def consume():
            async for (chunk,) in stream:
                handle(chunk)

        task = asyncio.create_task(consume())
        await bus.emit("data", b"chunk")
        await bus.close()
        await task
    """

    def __init__(self, config: EmitterConfig | None = None):
        self.config = config or EmitterConfig()
        self._listeners: dict[K, list[Listener]] = {}
        self._streams: dict[K, list[Channel[Payload]]] = {}
        self._global: list[Channel[EventRecord[K]]] = []

    # -------------------------------------------------------------------------
    # Callback registration
    # -------------------------------------------------------------------------

    def on(self, name: K, callback: EventCallback) -> EventEmitter[K]:
        """
        Append a listener for ``name``.

        No duplicate check is made: registering the same callback twice
        calls it twice per emission.
        """
        return self._add_listener(name, Listener(callback=callback, once=False))

    def once(self, name: K, callback: EventCallback) -> EventEmitter[K]:
        """Append a listener that is removed after its first invocation."""
        return self._add_listener(name, Listener(callback=callback, once=True))

    def _add_listener(self, name: K, listener: Listener) -> EventEmitter[K]:
        self._listeners.setdefault(name, []).append(listener)
        logger.debug("listener_added", event_name=name, once=listener.once)
        return self

    def off(
        self,
        name: K | None = None,
        callback: EventCallback | None = None,
    ) -> EventEmitter[K]:
        """
        Remove listeners.

        Args:
            name: Event name; if None, every listener on the bus is removed
            callback: Callback to remove from ``name``; if None, all
                listeners for ``name`` are removed

        Streams are never affected.
        """
        if name is None:
            self._listeners.clear()
        elif callback is None:
            self._listeners.pop(name, None)
        elif name in self._listeners:
            self._listeners[name] = [
                listener for listener in self._listeners[name]
                if listener.callback != callback
            ]
        logger.debug("listeners_removed", event_name=name)
        return self

    def listeners(self, name: K) -> list[EventCallback]:
        """Callbacks registered for ``name``, in registration order."""
        return [listener.callback for listener in self._listeners.get(name, [])]

    def listener_count(self, name: K) -> int:
        return len(self._listeners.get(name, []))

    def event_names(self) -> list[K]:
        """Names with at least one listener or open stream."""
        names = [name for name, entries in self._listeners.items() if entries]
        names.extend(
            name for name, channels in self._streams.items()
            if channels and name not in names
        )
        return names

    # -------------------------------------------------------------------------
    # Async iteration
    # -------------------------------------------------------------------------

    def subscribe(self, name: K) -> EventStream[Payload]:
        """
        Open a stream of payloads for ``name``.

        The stream is registered immediately and receives every later
        emission of ``name`` until ``close(name)``, ``close()`` or the
        stream's own ``aclose()``.
        """
        channel: Channel[Payload] = Channel(self.config.channel_capacity)
        self._streams.setdefault(name, []).append(channel)
        logger.debug("stream_opened", event_name=name)
        return EventStream(channel, on_close=partial(self._detach_stream, name))

    def events(self) -> EventStream[EventRecord[K]]:
        """Open a stream of ``EventRecord`` for every event on the bus."""
        channel: Channel[EventRecord[K]] = Channel(self.config.channel_capacity)
        self._global.append(channel)
        logger.debug("stream_opened", event_name="*")
        return EventStream(channel, on_close=self._detach_global)

    def __aiter__(self) -> AsyncIterator[EventRecord[K]]:
        return self.events().__aiter__()

    def _detach_stream(self, name: K, channel: Channel[Payload]) -> None:
        channels = self._streams.get(name)
        if channels and channel in channels:
            channels.remove(channel)
            if not channels:
                del self._streams[name]
            logger.debug("stream_detached", event_name=name)

    def _detach_global(self, channel: Channel[EventRecord[K]]) -> None:
        if channel in self._global:
            self._global.remove(channel)
            logger.debug("stream_detached", event_name="*")

    # -------------------------------------------------------------------------
    # Emit
    # -------------------------------------------------------------------------

    async def emit(self, name: K, *payload: Any) -> None:
        """
        Deliver an event to every consumer of ``name``.

        Listeners run first, synchronously and in registration order, over
        a snapshot taken at call time. Then the record goes to each global
        stream and the payload to each stream of ``name``, waiting on each
        channel's backpressure in turn.

        An exception raised by a listener propagates immediately; later
        listeners and streams do not receive this emission.
        """
        for listener in list(self._listeners.get(name, [])):
            listener.callback(*payload)
            if listener.once:
                self.off(name, listener.callback)

        record = EventRecord(name=name, payload=payload)
        for channel in list(self._global):
            if not channel.closed:
                await channel.send(record)

        for channel in list(self._streams.get(name, [])):
            if not channel.closed:
                await channel.send(payload)

    # -------------------------------------------------------------------------
    # Shutdown
    # -------------------------------------------------------------------------

    async def close(self, name: K | None = None) -> None:
        """
        Remove listeners and end streams.

        Args:
            name: Close only this event's listeners and streams; if None,
                reset the whole bus including global streams
        """
        self.off(name)

        if name is not None:
            channels = self._streams.pop(name, [])
            for channel in channels:
                await channel.close()
            logger.debug("channels_closed", event_name=name, count=len(channels))
            return

        streams, self._streams = self._streams, {}
        for channels in streams.values():
            for channel in channels:
                await channel.close()

        global_channels, self._global = self._global, []
        for channel in global_channels:
            await channel.close()

        logger.debug(
            "emitter_closed",
            streams=sum(len(channels) for channels in streams.values()),
            global_streams=len(global_channels),
        )

    async def __aenter__(self) -> EventEmitter[K]:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Stats
    # -------------------------------------------------------------------------

    def get_stats(self) -> dict[str, Any]:
        """Get emitter statistics."""
        return {
            "events": len(self.event_names()),
            "listeners": sum(len(entries) for entries in self._listeners.values()),
            "streams": sum(len(channels) for channels in self._streams.values()),
            "global_streams": len(self._global),
            "channel_capacity": self.config.channel_capacity,
        }
