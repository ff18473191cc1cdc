from typing import Dict, Iterable, List
from repos.rows import player_from_row, player_to_row, update_to_row
from service.errors import RepositoryError
from service.models import Handle, PlayerRow, UpdatedPlayer
from service.supabase_service import SupabaseService

class PlayerRepository:
    """Handles persistence of player ratings and names in the `players` table (SRP).

    The write-back handle of a stored player is its player_id.
    """
    table = "players"

    def __init__(self, supabase: SupabaseService):
        self._db = supabase

    def load_players(self) -> List[PlayerRow]:
        rows = self._db.fetch_all(self.table, order_by="player_id")
        players: List[PlayerRow] = []
        for row in rows:
            try:
                player = player_from_row(row)
            except (TypeError, ValueError) as err:
                raise RepositoryError(f"Malformed row in {self.table}: {err}") from err
            players.append(PlayerRow(handle=player.player_id, player=player))
        return players

    def new_handle(self, player_id: str, position: int) -> Handle:
        return player_id

    def add_players(self, new_players: Iterable[PlayerRow]) -> None:
        self._db.insert_many(self.table, [player_to_row(row.player) for row in new_players])

    def update_players(self, updates: Dict[Handle, UpdatedPlayer]) -> None:
        self._db.upsert(self.table, [update_to_row(update) for update in updates.values()])

    def save_snapshot(self, rows: Iterable[PlayerRow]) -> None:
        data = [
            {"player_id": row.player.player_id, "prior_rating": row.player.prior_rating, "prior_games": row.player.prior_games}
            for row in rows
        ]
        self._db.upsert(self.table, data)
