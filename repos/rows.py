"""Column layout of the player and match sheets/tables.

Both the spreadsheet export and the Supabase tables use these column names.
"""

import math
from typing import Any, Dict, List, Mapping, Optional

from service.match_validator import parse_timestamp
from service.models import DEFAULT_GAMES, DEFAULT_RATING, MatchRecord, Player, SEATS, Seat, UpdatedPlayer

PLAYER_COLUMNS = ["player_id", "name", "rating", "games", "last_played", "prior_rating", "prior_games"]

SEAT_FIELDS = ["id", "name", "score", "adjusted_score"]
MATCH_COLUMNS = ["start_time", "end_time"] + [
    f"p{seat}_{field}" for seat in range(1, SEATS + 1) for field in SEAT_FIELDS
]

def _blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()

def _float(value: Any, default: float) -> float:
    if _blank(value):
        return default
    return float(value)

def _int(value: Any, default: int) -> int:
    if _blank(value):
        return default
    return int(float(value))

def _text(value: Any) -> Any:
    """Cell text with surrounding whitespace removed; blanks become None."""
    if _blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        # Numeric ids read back from a sheet as floats.
        return str(int(value))
    return str(value).strip()

def player_from_row(row: Mapping[str, Any]) -> Player:
    player_id = _text(row.get("player_id"))
    if player_id is None:
        raise ValueError(f"player row without player_id: {dict(row)!r}")
    return Player(
        player_id=player_id,
        name=_text(row.get("name")) or player_id,
        rating=_float(row.get("rating"), DEFAULT_RATING),
        games=_int(row.get("games"), DEFAULT_GAMES),
        last_played=parse_timestamp(row.get("last_played")),
        prior_rating=_float(row.get("prior_rating"), DEFAULT_RATING),
        prior_games=_int(row.get("prior_games"), DEFAULT_GAMES),
    )

def _iso(value: Any) -> Optional[str]:
    return value.isoformat() if value is not None else None

def player_to_row(player: Player) -> Dict[str, Any]:
    return {
        "player_id": player.player_id,
        "name": player.name,
        "rating": player.rating,
        "games": player.games,
        "last_played": _iso(player.last_played),
        "prior_rating": player.prior_rating,
        "prior_games": player.prior_games,
    }

def update_to_row(update: UpdatedPlayer) -> Dict[str, Any]:
    """Only the columns a rating update changes."""
    return {
        "player_id": update.player_id,
        "name": update.name,
        "rating": update.rating,
        "games": update.games,
        "last_played": _iso(update.last_played),
    }

def match_from_row(row: Mapping[str, Any]) -> MatchRecord:
    seats: List[Seat] = []
    for seat in range(1, SEATS + 1):
        seats.append(Seat(
            player_id=_text(row.get(f"p{seat}_id")),
            player_name=_text(row.get(f"p{seat}_name")),
            score=row.get(f"p{seat}_score"),
            adjusted_score=row.get(f"p{seat}_adjusted_score"),
        ))
    return MatchRecord(start_time=row.get("start_time"), end_time=row.get("end_time"), seats=seats)

def match_to_row(match: MatchRecord) -> Dict[str, Any]:
    row: Dict[str, Any] = {"start_time": match.start_time, "end_time": match.end_time}
    for seat_no, seat in enumerate(match.seats, start=1):
        row[f"p{seat_no}_id"] = seat.player_id
        row[f"p{seat_no}_name"] = seat.player_name
        row[f"p{seat_no}_score"] = seat.score
        row[f"p{seat_no}_adjusted_score"] = seat.adjusted_score
    return row
