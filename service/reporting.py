from dataclasses import dataclass, replace
from typing import Iterable, List

from service.models import Player, PlayerRow

@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    player_id: str
    name: str
    rating: float
    games: int
    rating_change: float
    games_change: int

def snapshot_players(rows: Iterable[PlayerRow]) -> List[PlayerRow]:
    """Start a new reporting period: current rating/games become the prior pair."""
    return [
        PlayerRow(
            handle=row.handle,
            player=replace(row.player, prior_rating=row.player.rating, prior_games=row.player.games),
        )
        for row in rows
    ]

def build_leaderboard(players: Iterable[Player], min_games: int = 0) -> List[LeaderboardEntry]:
    eligible = [p for p in players if p.games >= min_games]
    # Ties keep a stable order by games played, then id.
    eligible.sort(key=lambda p: (-p.rating, -p.games, p.player_id))
    return [
        LeaderboardEntry(
            rank=rank,
            player_id=p.player_id,
            name=p.name,
            rating=p.rating,
            games=p.games,
            rating_change=round(p.rating - p.prior_rating, 2),
            games_change=p.games - p.prior_games,
        )
        for rank, p in enumerate(eligible, start=1)
    ]
