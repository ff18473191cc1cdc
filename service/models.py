from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Hashable, List, Optional

DEFAULT_RATING = 1500.0
DEFAULT_GAMES = 0
SEATS = 4

# Opaque write-back position: a sheet row index or a database key.
Handle = Hashable

@dataclass
class Player:
    player_id: str
    name: str
    rating: float = DEFAULT_RATING
    games: int = DEFAULT_GAMES
    last_played: Optional[datetime] = None
    # Snapshot of the previous reporting period; the rating core never touches it.
    prior_rating: float = DEFAULT_RATING
    prior_games: int = DEFAULT_GAMES

@dataclass(frozen=True)
class PlayerRow:
    """A stored player together with the handle it is written back to."""
    handle: Handle
    player: Player

@dataclass(frozen=True)
class Seat:
    player_id: Any
    player_name: Any
    score: Any
    adjusted_score: Any = None

@dataclass(frozen=True)
class MatchRecord:
    """A raw four-seat match row. Seat 0 finished first, seat 3 last."""
    start_time: Any
    end_time: Any
    seats: List[Seat] = field(default_factory=list)

@dataclass(frozen=True)
class UpdatedPlayer:
    handle: Handle
    player_id: str
    name: str
    rating: float
    games: int
    last_played: datetime
    rating_change: float

@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)

@dataclass(frozen=True)
class MatchResult:
    success: bool
    updates: Dict[Handle, UpdatedPlayer] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)

@dataclass
class BatchResult:
    success: bool = True
    processed_count: int = 0
    failed_count: int = 0
    player_updates: Dict[Handle, UpdatedPlayer] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    latest_end_time: Optional[datetime] = None
