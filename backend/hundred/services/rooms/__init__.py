"""Room services: registry, membership, state sync and persistence.

These are transport-free; Socket.IO handlers and HTTP routes reach them
through ``get_room_services()`` and own the broadcasting.
"""

from flask import current_app

from .membership import MembershipManager
from .registry import RoomRegistry
from .results import RoomError, RoomResult
from .sync import GameSynchronizer


class RoomServices:

    def __init__(self, registry, store):
        self.registry = registry
        self.store = store
        # without a database nothing can bring an abandoned lobby back
        self.membership = MembershipManager(registry, drop_empty_lobbies=not store.enabled)
        self.sync = GameSynchronizer(registry)

    def hydrate(self) -> int:
        rooms = self.store.load_all()
        for room in rooms:
            self.registry.load_room(room)
        return len(rooms)

    def flush(self) -> int:
        return self.store.save_all(self.registry.list_rooms())


def get_room_services() -> RoomServices:
    return current_app.extensions['rooms']


__all__ = [
    'GameSynchronizer',
    'MembershipManager',
    'RoomError',
    'RoomRegistry',
    'RoomResult',
    'RoomServices',
    'get_room_services',
]
