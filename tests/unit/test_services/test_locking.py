"""
Unit tests for per-room write locks.
"""

import threading
import uuid

from room_booking.services.locking import RoomLocks, get_room_locks, reset_room_locks


class TestRoomLocks:
    """Test RoomLocks registry."""

    def test_same_room_same_lock(self):
        locks = RoomLocks()
        room_id = uuid.uuid4()

        assert locks.lock_for(room_id) is locks.lock_for(room_id)

    def test_different_rooms_different_locks(self):
        locks = RoomLocks()

        assert locks.lock_for(uuid.uuid4()) is not locks.lock_for(uuid.uuid4())

    def test_hold_is_reentrant(self):
        locks = RoomLocks()
        room_id = uuid.uuid4()

        with locks.hold(room_id):
            with locks.hold(room_id):
                entered = True

        assert entered

    def test_hold_blocks_other_threads(self):
        """A second thread cannot take a held room lock until it is released."""
        locks = RoomLocks()
        room_id = uuid.uuid4()
        acquired = []

        def try_acquire():
            acquired.append(locks.lock_for(room_id).acquire(blocking=False))

        with locks.hold(room_id):
            worker = threading.Thread(target=try_acquire)
            worker.start()
            worker.join()

        assert acquired == [False]

    def test_other_room_not_blocked(self):
        locks = RoomLocks()
        held, other = uuid.uuid4(), uuid.uuid4()
        acquired = []

        def try_acquire():
            lock = locks.lock_for(other)
            acquired.append(lock.acquire(blocking=False))
            lock.release()

        with locks.hold(held):
            worker = threading.Thread(target=try_acquire)
            worker.start()
            worker.join()

        assert acquired == [True]


class TestSingleton:
    """Test the process-wide registry."""

    def test_get_returns_same_instance(self):
        reset_room_locks()

        assert get_room_locks() is get_room_locks()

    def test_reset_creates_new_instance(self):
        first = get_room_locks()
        reset_room_locks()

        assert get_room_locks() is not first
