"""
eventemitter package.

Typed in-process publish/subscribe with:
- Callback listeners (``on`` / ``once`` / ``off``)
- Backpressured async streams per event and for the whole bus
- Structured logging (structlog) and environment-driven configuration
"""

from eventemitter.config import EmitterConfig
from eventemitter.events import (
    Channel,
    ChannelClosedError,
    EventEmitter,
    EventRecord,
    EventStream,
)

__version__ = "0.1.0"

__all__ = [
    "Channel",
    "ChannelClosedError",
    "EmitterConfig",
    "EventEmitter",
    "EventRecord",
    "EventStream",
]
