from __future__ import annotations

import threading
from collections import defaultdict
from typing import Dict, Set


class PresenceRegistry:
    """Tracks which live connections are viewing each room.

    Entries are never pruned; an emptied room simply counts as zero.
    """

    def __init__(self) -> None:
        self._rooms: Dict[str, Set[str]] = defaultdict(set)
        self._lock = threading.Lock()

    def join(self, room: str, connection_id: str) -> None:
        with self._lock:
            self._rooms[room].add(connection_id)

    def leave(self, room: str, connection_id: str) -> None:
        with self._lock:
            members = self._rooms.get(room)
            if members is not None:
                members.discard(connection_id)

    def count(self, room: str) -> int:
        with self._lock:
            return len(self._rooms.get(room, ()))

    def members(self, room: str) -> Set[str]:
        with self._lock:
            return set(self._rooms.get(room, ()))

    def rooms_of(self, connection_id: str) -> Set[str]:
        with self._lock:
            return {room for room, members in self._rooms.items() if connection_id in members}

    def remove_connection_everywhere(self, connection_id: str) -> None:
        with self._lock:
            for members in self._rooms.values():
                members.discard(connection_id)
