from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .state import Player, Room


class RoomError(Enum):
    """Domain errors; the value is the message shown to the requesting client."""
    NOT_FOUND = 'Room not found'
    REJOIN_NOT_FOUND = 'Room not found - game may have ended'
    ALREADY_STARTED = 'Game already started'
    FULL = 'Room is full'
    NOT_HOST = 'Only host can start the game'
    INVALID_STATE = 'Invalid game state'
    INVALID_SEAT = 'Invalid player index'

    @property
    def message(self) -> str:
        return self.value


@dataclass
class RoomResult:
    room: Optional[Room] = None
    error: Optional[RoomError] = None
    player: Optional[Player] = None
    version: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def player_index(self) -> Optional[int]:
        return self.player.player_index if self.player else None

    @classmethod
    def failure(cls, error: RoomError) -> 'RoomResult':
        return cls(error=error)
