"""
Event plumbing for triggering mirror runs and signalling reindexing.
"""
from .bus import Event, EventBus, EventKind

__all__ = [
    "Event",
    "EventBus",
    "EventKind",
]
