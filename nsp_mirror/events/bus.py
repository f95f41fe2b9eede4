"""
In-process event bus.

Events carry a kind tag; subscribers register a handler per kind and the
bus dispatches by looking the kind up in its handler table. Handlers run
synchronously on the publishing thread, in subscription order.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventKind(Enum):
    """Event kinds understood by the mirror."""
    MIRROR_REQUESTED = "mirror_requested"
    INDEX_COMMIT = "index_commit"


@dataclass(frozen=True)
class Event:
    """A tagged event. ``subject`` names the record type for index events."""
    kind: EventKind
    subject: Optional[str] = None


Handler = Callable[[Event], None]


class EventBus:
    """Dispatches published events to the handlers registered for their kind."""

    def __init__(self):
        self._handlers: Dict[EventKind, List[Handler]] = defaultdict(list)

    def subscribe(self, kind: EventKind, handler: Handler) -> None:
        self._handlers[kind].append(handler)

    def publish(self, event: Event) -> None:
        handlers = self._handlers.get(event.kind, [])
        if not handlers:
            logger.debug("No handlers for %s", event.kind.value)
        for handler in handlers:
            handler(event)
