import random
import string
import threading
import time
from contextlib import contextmanager
from typing import Dict, List, Optional

from .state import (
    Capacity,
    DEFAULT_BACKTRACK_AMOUNT,
    DEFAULT_HAND_SIZE,
    DEFAULT_MAX_CARD,
    DEFAULT_MIN_CARDS_PER_TURN,
    Player,
    Room,
)


ROOM_CODE_LENGTH = 6
ROOM_LIFETIME_SEC = 3 * 60 * 60


def generate_room_code(length=ROOM_CODE_LENGTH):
    return ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))


def _rule_value(value, default):
    """Missing, zero or unparsable rule parameters fall back to the default."""
    try:
        value = int(value)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


class RoomRegistry:
    """Owns every live room.

    Each room has its own re-entrant lock; callers hold it with
    ``locked(code)`` across a mutation and the broadcast that follows so
    per-room broadcast order matches mutation order.
    """

    def __init__(self, lifetime_sec: int = ROOM_LIFETIME_SEC, enforce_declared_capacity: bool = False):
        self.lifetime_sec = lifetime_sec
        self.enforce_declared_capacity = enforce_declared_capacity
        self._rooms: Dict[str, Room] = {}
        self._room_locks: Dict[str, threading.RLock] = {}
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._rooms)

    def _lock_for(self, code: str) -> threading.RLock:
        with self._lock:
            lock = self._room_locks.get(code)
            if lock is None:
                lock = threading.RLock()
                # unknown codes get a throwaway lock
                if code in self._rooms:
                    self._room_locks[code] = lock
            return lock

    @contextmanager
    def locked(self, code: str):
        lock = self._lock_for(code)
        with lock:
            yield

    def create_room(self, socket_id: str, player_name: str, num_players=None, hand_size=None,
                    min_cards_per_turn=None, max_card=None, backtrack_amount=None,
                    now: Optional[float] = None) -> Room:
        capacity = Capacity.unbounded()
        declared = _rule_value(num_players, None)
        if self.enforce_declared_capacity and declared:
            capacity = Capacity.declared(declared)

        with self._lock:
            code = generate_room_code()
            while code in self._rooms:
                code = generate_room_code()
            room = Room(
                code=code,
                hand_size=_rule_value(hand_size, DEFAULT_HAND_SIZE),
                min_cards_per_turn=_rule_value(min_cards_per_turn, DEFAULT_MIN_CARDS_PER_TURN),
                max_card=_rule_value(max_card, DEFAULT_MAX_CARD),
                backtrack_amount=_rule_value(backtrack_amount, DEFAULT_BACKTRACK_AMOUNT),
                players=[Player(id=socket_id, name=player_name, player_index=0)],
                capacity=capacity,
                created_at=time.time() if now is None else now,
            )
            self._rooms[code] = room
        return room

    def get_room(self, code) -> Optional[Room]:
        if not code:
            return None
        return self._rooms.get(code)

    def list_rooms(self) -> List[Room]:
        with self._lock:
            return list(self._rooms.values())

    def delete_room(self, code: str) -> bool:
        with self._lock:
            self._room_locks.pop(code, None)
            return self._rooms.pop(code, None) is not None

    def expired_room_codes(self, now: Optional[float] = None) -> List[str]:
        """Codes of rooms older than the lifetime, counted from creation."""
        now = time.time() if now is None else now
        with self._lock:
            return [code for code, room in self._rooms.items()
                    if now - room.created_at > self.lifetime_sec]

    def load_room(self, room: Room) -> None:
        with self._lock:
            self._rooms[room.code] = room
