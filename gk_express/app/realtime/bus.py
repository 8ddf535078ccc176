"""
Room-based notification bus.

One room per office. Offices subscribe by joining their room; services
publish into it through the event dispatcher. Delivery is best-effort:
nothing is acknowledged, retried or replayed, and a connection that is not
joined at publish time never sees the event.
"""

import logging
from typing import Any, Dict, FrozenSet, Optional, Protocol, Set

logger = logging.getLogger("gk_express.realtime")


class Connection(Protocol):
    """Anything that can push a JSON frame to a client (e.g. a WebSocket)."""

    async def send_json(self, data: Any) -> None:
        ...


def room_name(office_id: str) -> str:
    return f"office_{office_id}"


class NotificationBus:
    def __init__(self) -> None:
        # connection_id -> live connection
        self._connections: Dict[str, Connection] = {}
        # room name -> connection ids
        self._rooms: Dict[str, Set[str]] = {}

    def register(self, connection_id: str, connection: Connection) -> None:
        self._connections[connection_id] = connection

    def unregister(self, connection_id: str) -> None:
        """Forget a connection and remove it from every room."""
        self._connections.pop(connection_id, None)
        for room in list(self._rooms):
            members = self._rooms[room]
            members.discard(connection_id)
            if not members:
                del self._rooms[room]

    def join(self, connection_id: str, office_id: str) -> None:
        """Idempotent: joining twice leaves a single membership."""
        self._rooms.setdefault(room_name(office_id), set()).add(connection_id)
        logger.debug("Connection %s joined %s", connection_id, room_name(office_id))

    def leave(self, connection_id: str, office_id: str) -> None:
        room = room_name(office_id)
        members = self._rooms.get(room)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._rooms[room]

    def members(self, office_id: str) -> FrozenSet[str]:
        return frozenset(self._rooms.get(room_name(office_id), ()))

    def rooms_of(self, connection_id: str) -> Set[str]:
        return {room for room, members in self._rooms.items() if connection_id in members}

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def publish(self, office_id: str, event: str, payload: Any) -> int:
        """Deliver to every connection joined to the office room. Returns deliveries."""
        targets = list(self._rooms.get(room_name(office_id), ()))
        delivered = 0
        for connection_id in targets:
            if await self._deliver(connection_id, event, payload):
                delivered += 1
        logger.info(
            "Published event",
            extra={"event": event, "room": room_name(office_id), "delivered": delivered}
        )
        return delivered

    async def broadcast(self, event: str, payload: Any) -> int:
        """Deliver to all connections regardless of room."""
        delivered = 0
        for connection_id in list(self._connections):
            if await self._deliver(connection_id, event, payload):
                delivered += 1
        return delivered

    async def send(self, connection_id: str, event: str, payload: Any) -> bool:
        """Deliver to a single connection."""
        return await self._deliver(connection_id, event, payload)

    async def _deliver(self, connection_id: str, event: str, payload: Any) -> bool:
        connection: Optional[Connection] = self._connections.get(connection_id)
        if connection is None:
            return False
        try:
            await connection.send_json({"event": event, "data": payload})
        except Exception as exc:
            # best-effort; drop on failure
            logger.warning(
                "Dropped event for connection %s: %s", connection_id, exc,
                extra={"event": event}
            )
            return False
        return True

    def close(self) -> None:
        self._connections.clear()
        self._rooms.clear()
