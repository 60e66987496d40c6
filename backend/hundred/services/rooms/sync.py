"""Authoritative game-state arbitration.

The server does not judge moves. Its one authoritative act is stamping
each accepted state with the next version number; every accepted state is
then broadcast to the whole room, sender included.
"""

from typing import Any, Dict, Optional

from .registry import RoomRegistry
from .results import RoomError, RoomResult


def is_version(value: Any) -> bool:
    """Versions are non-negative ints; bools are rejected even though they are ints."""
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


class GameSynchronizer:

    def __init__(self, registry: RoomRegistry):
        self.registry = registry

    def start_game(self, code: str, requester_id: str, initial_state: Optional[Dict[str, Any]]) -> RoomResult:
        """Host-only, one-way lobby -> game transition."""
        with self.registry.locked(code):
            room = self.registry.get_room(code)
            if room is None:
                return RoomResult.failure(RoomError.NOT_FOUND)
            host = room.host
            if host is None or host.id != requester_id:
                return RoomResult.failure(RoomError.NOT_HOST)
            if initial_state is not None and not isinstance(initial_state, dict):
                return RoomResult.failure(RoomError.INVALID_STATE)
            version = initial_state.get('version') if initial_state else None
            if version is not None and not is_version(version):
                return RoomResult.failure(RoomError.INVALID_STATE)

            room.capacity.freeze(len(room.players))
            room.game_state = initial_state
            room.started = True
            return RoomResult(room=room, version=version)

    def apply_action(self, code: str, proposed_state: Dict[str, Any]) -> RoomResult:
        """Accept ``proposed_state`` as the room's new state under the next version.

        Last write wins: the stored version is never compared with the one the
        client based its move on. A missing or malformed stored version counts
        as 0.
        """
        with self.registry.locked(code):
            room = self.registry.get_room(code)
            if room is None:
                return RoomResult.failure(RoomError.NOT_FOUND)
            if not isinstance(proposed_state, dict):
                return RoomResult.failure(RoomError.INVALID_STATE)

            stored = room.game_state if isinstance(room.game_state, dict) else {}
            current = stored.get('version')
            base = current if is_version(current) else 0
            state = dict(proposed_state)
            state['version'] = base + 1
            room.game_state = state
            return RoomResult(room=room, version=state['version'])
