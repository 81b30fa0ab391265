"""
Event emitter module.

Provides callback and async-stream pub/sub for in-process communication.
"""

from eventemitter.events.bus import (
    EventCallback,
    EventEmitter,
    EventRecord,
    Listener,
    Payload,
)
from eventemitter.events.channel import (
    Channel,
    ChannelClosedError,
    EventStream,
)

__all__ = [
    "Channel",
    "ChannelClosedError",
    "EventCallback",
    "EventEmitter",
    "EventRecord",
    "EventStream",
    "Listener",
    "Payload",
]
