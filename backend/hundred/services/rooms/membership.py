from typing import List, Optional, Tuple

from .registry import RoomRegistry
from .results import RoomError, RoomResult
from .state import Player, Room


class MembershipManager:
    """Seat bookkeeping: join, rejoin, leave and transport disconnects.

    With ``drop_empty_lobbies`` set (no persistence configured), a room that
    has not started is deleted as soon as its last seat goes away. Otherwise
    empty rooms wait for the expiry sweep.
    """

    def __init__(self, registry: RoomRegistry, drop_empty_lobbies: bool = False):
        self.registry = registry
        self.drop_empty_lobbies = drop_empty_lobbies

    def add_player(self, code: str, socket_id: str, name: str) -> RoomResult:
        """Seat a new player at the lowest free index."""
        with self.registry.locked(code):
            room = self.registry.get_room(code)
            if room is None:
                return RoomResult.failure(RoomError.NOT_FOUND)
            if room.started:
                return RoomResult.failure(RoomError.ALREADY_STARTED)
            if not room.capacity.admits(len(room.players)):
                return RoomResult.failure(RoomError.FULL)

            player = Player(id=socket_id, name=name, player_index=room.lowest_free_index())
            room.seat(player)
            return RoomResult(room=room, player=player)

    def rejoin_player(self, code: str, socket_id: str, name: str, player_index: int) -> RoomResult:
        """Take over the seat at ``player_index``, or recreate it if it is gone.

        A socket holds at most one seat per room, so any other seat it still
        holds is released first.
        """
        with self.registry.locked(code):
            room = self.registry.get_room(code)
            if room is None:
                return RoomResult.failure(RoomError.REJOIN_NOT_FOUND)

            player = room.find_by_index(player_index)
            others = [p for p in room.seats_for_socket(socket_id) if p is not player]
            if player is None:
                # lobby seats given up by this socket do not count against the limit
                seat_count = len(room.players) - (0 if room.started else len(others))
                if not room.capacity.admits(seat_count):
                    return RoomResult.failure(RoomError.FULL)

            for other in others:
                self._release(room, other)
                # the vacated seat no longer belongs to this socket
                other.id = ''

            if player is not None:
                player.id = socket_id
                player.name = name
                player.connected = True
                return RoomResult(room=room, player=player)

            player = Player(id=socket_id, name=name, player_index=player_index)
            room.seat(player)
            return RoomResult(room=room, player=player)

    def remove_player(self, code: str, socket_id: str) -> Optional[Room]:
        """Free the seats held by ``socket_id``; returns the room if any seat was removed."""
        with self.registry.locked(code):
            room = self.registry.get_room(code)
            if room is None:
                return None
            seats = room.seats_for_socket(socket_id)
            if not seats:
                return None
            for player in seats:
                room.players.remove(player)
            self._drop_if_empty_lobby(room)
            return room

    def disconnect_from(self, code: str, socket_id: str) -> Optional[Room]:
        """Vacate (after start) or drop (in the lobby) the seats ``socket_id`` holds in one room.

        Returns the room when a seat changed. Callers that broadcast the change
        should hold ``registry.locked(code)`` around this call and the broadcast.
        """
        with self.registry.locked(code):
            room = self.registry.get_room(code)
            if room is None:
                return None
            seats = room.seats_for_socket(socket_id)
            if not seats:
                return None
            for player in seats:
                self._release(room, player)
            self._drop_if_empty_lobby(room)
            return room

    def handle_disconnect(self, socket_id: str) -> List[Tuple[str, Room]]:
        """Apply ``disconnect_from`` to every room; returns the rooms that changed."""
        affected = []
        for room in self.registry.list_rooms():
            changed = self.disconnect_from(room.code, socket_id)
            if changed is not None:
                affected.append((changed.code, changed))
        return affected

    def _release(self, room: Room, player: Player) -> None:
        if room.started:
            player.connected = False
        else:
            room.players.remove(player)

    def _drop_if_empty_lobby(self, room: Room) -> None:
        if self.drop_empty_lobbies and not room.started and not room.players:
            self.registry.delete_room(room.code)
