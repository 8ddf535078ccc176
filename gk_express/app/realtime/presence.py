"""
Presence tracking for real-time connections.

Presence is keyed by connection, not by user: one user may hold several
connections at once (phone and desktop). A user is online while at least
one of their connections is registered.

A single PresenceTracker is created in the application lifespan and cleared
at shutdown.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Set


@dataclass(frozen=True)
class PresenceEntry:
    user_id: str
    role: Optional[str] = None


@dataclass(frozen=True)
class OfflineResult:
    """Outcome of a disconnect. user_id is None when the connection was unknown."""
    user_id: Optional[str]
    fully_offline: bool


class PresenceTracker:
    def __init__(self) -> None:
        self._entries: Dict[str, PresenceEntry] = {}

    def mark_online(self, connection_id: str, user_id: str, role: Optional[str] = None) -> Set[str]:
        """Register presence for a connection and return every online user id."""
        self._entries[connection_id] = PresenceEntry(user_id=user_id, role=role)
        return self.snapshot()

    def mark_offline(self, connection_id: str) -> OfflineResult:
        """Remove a connection. Unknown connections are a no-op."""
        entry = self._entries.pop(connection_id, None)
        if entry is None:
            return OfflineResult(user_id=None, fully_offline=False)
        return OfflineResult(user_id=entry.user_id, fully_offline=not self.is_online(entry.user_id))

    def snapshot(self) -> Set[str]:
        return {entry.user_id for entry in self._entries.values()}

    def is_online(self, user_id: str) -> bool:
        return any(entry.user_id == user_id for entry in self._entries.values())

    def connections_for(self, user_id: str) -> Set[str]:
        return {cid for cid, entry in self._entries.items() if entry.user_id == user_id}

    def clear(self) -> None:
        self._entries.clear()
