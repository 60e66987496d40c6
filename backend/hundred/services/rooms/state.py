"""In-memory room, seat and capacity types.

The game-state payload stays an opaque dict; the only field the server
owns on it is ``version``.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


DEFAULT_HAND_SIZE = 4
DEFAULT_MIN_CARDS_PER_TURN = 2
DEFAULT_MAX_CARD = 99
DEFAULT_BACKTRACK_AMOUNT = 10


class CapacityMode(str, Enum):
    UNBOUNDED = 'unbounded'
    BOUNDED = 'bounded'


@dataclass
class Capacity:
    """Seat limit of a room.

    Rooms stay UNBOUNDED until the game starts, at which point the limit is
    frozen to the number of seats. A limit declared at creation is only
    enforced when ``enforced`` is set.
    """
    mode: CapacityMode = CapacityMode.UNBOUNDED
    limit: Optional[int] = None
    enforced: bool = False

    @classmethod
    def unbounded(cls) -> 'Capacity':
        return cls()

    @classmethod
    def declared(cls, limit: int) -> 'Capacity':
        return cls(mode=CapacityMode.BOUNDED, limit=limit, enforced=True)

    def freeze(self, seat_count: int) -> None:
        self.mode = CapacityMode.BOUNDED
        self.limit = seat_count

    def admits(self, seat_count: int) -> bool:
        if not self.enforced or self.mode is CapacityMode.UNBOUNDED:
            return True
        return seat_count < self.limit


@dataclass
class Player:
    id: str
    name: str
    player_index: int
    connected: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'playerIndex': self.player_index,
            'connected': self.connected,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Player':
        return cls(
            id=data.get('id') or '',
            name=data.get('name') or '',
            player_index=int(data['playerIndex']),
            connected=bool(data.get('connected', True)),
        )


@dataclass
class Room:
    code: str
    hand_size: int = DEFAULT_HAND_SIZE
    min_cards_per_turn: int = DEFAULT_MIN_CARDS_PER_TURN
    max_card: int = DEFAULT_MAX_CARD
    backtrack_amount: int = DEFAULT_BACKTRACK_AMOUNT
    players: List[Player] = field(default_factory=list)
    game_state: Optional[Dict[str, Any]] = None
    started: bool = False
    capacity: Capacity = field(default_factory=Capacity.unbounded)
    created_at: float = field(default_factory=time.time)

    @property
    def num_players(self) -> Optional[int]:
        return self.capacity.limit

    @property
    def host(self) -> Optional[Player]:
        return self.find_by_index(0)

    def find_by_index(self, player_index: int) -> Optional[Player]:
        for player in self.players:
            if player.player_index == player_index:
                return player
        return None

    def find_by_socket(self, socket_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == socket_id:
                return player
        return None

    def seats_for_socket(self, socket_id: str) -> List[Player]:
        return [p for p in self.players if p.id == socket_id]

    def lowest_free_index(self) -> int:
        taken = {p.player_index for p in self.players}
        index = 0
        while index in taken:
            index += 1
        return index

    def seat(self, player: Player) -> None:
        """Add a seat and keep the list ordered by player index."""
        self.players.append(player)
        self.players.sort(key=lambda p: p.player_index)

    def config_dict(self) -> Dict[str, Any]:
        return {
            'numPlayers': self.num_players,
            'handSize': self.hand_size,
            'minCardsPerTurn': self.min_cards_per_turn,
            'maxCard': self.max_card,
            'backtrackAmount': self.backtrack_amount,
        }

    def update_payload(self) -> Dict[str, Any]:
        """Body of the ``room-update`` broadcast."""
        payload = {'players': [p.to_dict() for p in self.players]}
        payload.update(self.config_dict())
        payload['started'] = self.started
        return payload

    def to_dict(self) -> Dict[str, Any]:
        data = {'code': self.code}
        data.update(self.config_dict())
        data.update({
            'capacityEnforced': self.capacity.enforced,
            'players': [p.to_dict() for p in self.players],
            'gameState': self.game_state,
            'started': self.started,
            # milliseconds, as clients and older snapshots expect
            'createdAt': int(round(self.created_at * 1000)),
        })
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Room':
        num_players = data.get('numPlayers')
        if num_players is None:
            capacity = Capacity.unbounded()
        else:
            capacity = Capacity(
                mode=CapacityMode.BOUNDED,
                limit=int(num_players),
                enforced=bool(data.get('capacityEnforced', False)),
            )
        created_at = data.get('createdAt')
        room = cls(
            code=data['code'],
            hand_size=data.get('handSize') or DEFAULT_HAND_SIZE,
            min_cards_per_turn=data.get('minCardsPerTurn') or DEFAULT_MIN_CARDS_PER_TURN,
            max_card=data.get('maxCard') or DEFAULT_MAX_CARD,
            backtrack_amount=data.get('backtrackAmount') or DEFAULT_BACKTRACK_AMOUNT,
            game_state=data.get('gameState'),
            started=bool(data.get('started', False)),
            capacity=capacity,
            created_at=created_at / 1000.0 if created_at else time.time(),
        )
        for entry in data.get('players') or []:
            room.seat(Player.from_dict(entry))
        return room
