import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from service.models import DEFAULT_GAMES, DEFAULT_RATING, Handle, MatchRecord, Player, PlayerRow, UpdatedPlayer

logger = logging.getLogger(__name__)

# (player_id, position) -> write-back handle for a newly discovered player.
HandleFactory = Callable[[str, int], Handle]

@dataclass(frozen=True)
class NewPlayer:
    player_id: str
    name: str

class PlayerRegistry:
    """In-memory player map for one rating run, with write-back handles."""
    def __init__(self) -> None:
        self._players: Dict[str, Player] = {}
        self._handles: Dict[str, Handle] = {}
        self._new_ids: List[str] = []

    def __contains__(self, player_id: object) -> bool:
        return player_id in self._players

    def __len__(self) -> int:
        return len(self._players)

    def __iter__(self) -> Iterator[Player]:
        return iter(self._players.values())

    def get(self, player_id: str) -> Optional[Player]:
        return self._players.get(player_id)

    def handle_for(self, player_id: str) -> Handle:
        return self._handles[player_id]

    def add(self, player: Player, handle: Handle, *, is_new: bool = False) -> None:
        self._players[player.player_id] = player
        self._handles[player.player_id] = handle
        if is_new:
            self._new_ids.append(player.player_id)

    def new_rows(self) -> List[PlayerRow]:
        """Players added during discovery, in discovery order."""
        return [PlayerRow(handle=self._handles[pid], player=self._players[pid]) for pid in self._new_ids]

    def apply(self, update: UpdatedPlayer) -> None:
        player = self._players[update.player_id]
        player.name = update.name
        player.rating = update.rating
        player.games = update.games
        player.last_played = update.last_played
        self._handles[update.player_id] = update.handle

def _text(value: object) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None

def discover_new_players(matches: Iterable[MatchRecord], registry: PlayerRegistry) -> List[NewPlayer]:
    """Ids seen in match seats but missing from the registry, in first-seen order.

    The name comes from the first row naming the id; the id stands in when no
    row does.
    """
    order: List[str] = []
    names: Dict[str, Optional[str]] = {}
    for match in matches:
        for seat in match.seats:
            pid = _text(seat.player_id)
            if pid is None or pid in registry:
                continue
            if pid not in names:
                order.append(pid)
                names[pid] = None
            if names[pid] is None:
                names[pid] = _text(seat.player_name)
    return [NewPlayer(player_id=pid, name=names[pid] or pid) for pid in order]

def build_registry(
    existing_rows: Iterable[PlayerRow],
    matches: Iterable[MatchRecord] = (),
    handle_factory: Optional[HandleFactory] = None,
    default_rating: float = DEFAULT_RATING,
) -> PlayerRegistry:
    """Registry of stored players plus every new player found in ``matches``.

    New players are materialized with default rating and games. Their handle
    defaults to the next row position after the stored rows.
    """
    registry = PlayerRegistry()
    position = 0
    for row in existing_rows:
        position += 1
        if row.player.player_id in registry:
            logger.warning("Duplicate stored player id=%s; keeping the first row", row.player.player_id)
            continue
        registry.add(row.player, row.handle)

    for new_player in discover_new_players(list(matches), registry):
        handle = handle_factory(new_player.player_id, position) if handle_factory else position
        registry.add(
            Player(player_id=new_player.player_id, name=new_player.name, rating=default_rating, games=DEFAULT_GAMES),
            handle,
            is_new=True,
        )
        position += 1
    if registry.new_rows():
        logger.info("Discovered %s new players", len(registry.new_rows()))
    return registry
