"""
Per-room write serialization.

Holds an in-process lock per room across check-then-write sequences so two
requests for the same room cannot both pass the conflict check before
either has committed.
"""

import threading
from contextlib import contextmanager
from typing import Generator, Optional
from uuid import UUID

# Singleton instance
_room_locks: Optional["RoomLocks"] = None


class RoomLocks:
    """Registry of one re-entrant lock per room ID."""

    def __init__(self):
        self._locks: dict[UUID, threading.RLock] = {}
        self._guard = threading.Lock()

    def lock_for(self, room_id: UUID) -> threading.RLock:
        """Get (creating if needed) the lock for a room."""
        with self._guard:
            lock = self._locks.get(room_id)
            if lock is None:
                lock = self._locks[room_id] = threading.RLock()
            return lock

    @contextmanager
    def hold(self, room_id: UUID) -> Generator[None, None, None]:
        """Hold the room's lock for the duration of the block."""
        with self.lock_for(room_id):
            yield


def get_room_locks() -> RoomLocks:
    """Get the process-wide room lock registry."""
    global _room_locks
    if _room_locks is None:
        _room_locks = RoomLocks()
    return _room_locks


def reset_room_locks() -> None:
    """Reset the singleton (for testing)."""
    global _room_locks
    _room_locks = None
