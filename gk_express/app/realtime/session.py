"""
Server side of one real-time connection.

Translates client frames (``join_office``, ``user_online``,
``get_online_users``) into bus and presence operations. Kept free of any
transport so it can be driven by a WebSocket endpoint or directly in tests.
"""

import logging
from typing import Any, Dict, Optional

from gk_express.app.models.enums import UserRole
from gk_express.app.realtime.bus import Connection, NotificationBus
from gk_express.app.realtime.events import EventName
from gk_express.app.realtime.presence import PresenceTracker

logger = logging.getLogger("gk_express.realtime")


class ClientEvent:
    """Client to server event names."""
    JOIN_OFFICE = "join_office"
    USER_ONLINE = "user_online"
    GET_ONLINE_USERS = "get_online_users"


class RealtimeSession:
    """
    Args:
        connection_id: Unique id of the connection
        identity: Verified token claims (user_id, role, office_id)
        bus: Shared notification bus
        presence: Shared presence tracker
    """

    def __init__(
        self,
        connection_id: str,
        identity: Dict[str, Any],
        bus: NotificationBus,
        presence: PresenceTracker,
    ) -> None:
        self.connection_id = connection_id
        self.identity = identity
        self.bus = bus
        self.presence = presence

    @property
    def user_id(self) -> str:
        return str(self.identity["user_id"])

    def open(self, connection: Connection) -> None:
        self.bus.register(self.connection_id, connection)
        logger.info("Client connected: %s (user %s)", self.connection_id, self.user_id)

    async def handle(self, event: Optional[str], data: Optional[Dict[str, Any]] = None) -> None:
        if not isinstance(data, dict):
            data = {}
        if event == ClientEvent.JOIN_OFFICE:
            await self._join_office(data)
        elif event == ClientEvent.USER_ONLINE:
            await self._user_online(data)
        elif event == ClientEvent.GET_ONLINE_USERS:
            await self._send_presence()
        else:
            await self._error(f"Unknown event: {event}")

    async def close(self) -> None:
        """Drop presence and room memberships, then tell everyone who left."""
        result = self.presence.mark_offline(self.connection_id)
        self.bus.unregister(self.connection_id)
        logger.info("Client disconnected: %s", self.connection_id)

        if result.user_id is None:
            return
        if result.fully_offline:
            await self.bus.broadcast(EventName.USER_DISCONNECTED, {"userId": result.user_id})
        await self.bus.broadcast(EventName.PRESENCE_UPDATE, self._presence_payload())

    async def _join_office(self, data: Dict[str, Any]) -> None:
        office_id = data.get("officeId")
        if not office_id:
            await self._error("officeId is required")
            return
        office_id = str(office_id)

        # Agents only listen to their own office
        if self.identity.get("role") != UserRole.BOSS.value:
            own_office = self.identity.get("office_id")
            if not own_office:
                await self._error("User is not assigned to an office")
                return
            if office_id != str(own_office):
                await self._error("Cannot join another office")
                return

        self.bus.join(self.connection_id, office_id)
        logger.info("User %s joined office %s", self.user_id, office_id)

    async def _user_online(self, data: Dict[str, Any]) -> None:
        claimed = data.get("userId")
        if claimed is not None and str(claimed) != self.user_id:
            await self._error("userId does not match the authenticated user")
            return

        self.presence.mark_online(self.connection_id, self.user_id, self.identity.get("role"))
        await self.bus.broadcast(EventName.USER_CONNECTED, {"userId": self.user_id})
        await self.bus.broadcast(EventName.PRESENCE_UPDATE, self._presence_payload())

    async def _send_presence(self) -> None:
        await self.bus.send(self.connection_id, EventName.PRESENCE_UPDATE, self._presence_payload())

    async def _error(self, message: str) -> None:
        await self.bus.send(self.connection_id, EventName.ERROR, {"message": message})

    def _presence_payload(self) -> Dict[str, Any]:
        return {"onlineUserIds": sorted(self.presence.snapshot())}
