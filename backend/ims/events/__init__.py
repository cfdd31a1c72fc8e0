"""
Event system package
- Async pub/sub bus, Redis Streams with an in-memory fallback.
"""

from ims.events.event_bus import TOPICS, AsyncEventBus

__all__ = ["AsyncEventBus", "TOPICS"]
