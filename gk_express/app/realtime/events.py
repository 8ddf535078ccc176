"""
Domain events and their dispatch into the notification bus.

Services never talk to the bus. They record what happened into an
EventQueue owned by the current unit of work; once the mutation has been
committed the EventDispatcher drains the queue into the bus. Dispatch
failures are logged and swallowed, so a notification problem can never
fail or roll back the operation that produced it.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from gk_express.app.realtime.bus import NotificationBus

logger = logging.getLogger("gk_express.realtime")


class EventName:
    """Server to client event names."""
    NEW_PARCEL = "new_parcel"
    NEW_MESSAGE = "new_message"
    USER_CONNECTED = "user_connected"
    USER_DISCONNECTED = "user_disconnected"
    PRESENCE_UPDATE = "presence_update"
    ERROR = "error"


@dataclass(frozen=True)
class DomainEvent:
    """An event addressed to one office room, or to everyone when office_id is None."""
    name: str
    payload: Dict[str, Any] = field(default_factory=dict)
    office_id: Optional[str] = None


class EventQueue:
    def __init__(self) -> None:
        self._events: List[DomainEvent] = []

    def put(self, event: DomainEvent) -> None:
        self._events.append(event)

    def drain(self) -> List[DomainEvent]:
        events, self._events = self._events, []
        return events

    def __len__(self) -> int:
        return len(self._events)


class EventDispatcher:
    def __init__(self, bus: NotificationBus) -> None:
        self.bus = bus

    async def dispatch(self, queue: EventQueue) -> int:
        """Deliver every queued event. Never raises. Returns total deliveries."""
        delivered = 0
        for event in queue.drain():
            try:
                if event.office_id is None:
                    delivered += await self.bus.broadcast(event.name, event.payload)
                else:
                    delivered += await self.bus.publish(event.office_id, event.name, event.payload)
            except Exception:
                logger.warning("Failed to dispatch %s", event.name, exc_info=True)
        return delivered
