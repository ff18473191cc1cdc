from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol

from service.match_validator import parse_timestamp
from service.models import Handle, MatchRecord, PlayerRow, UpdatedPlayer

class PlayerStore(Protocol):
    def load_players(self) -> List[PlayerRow]: ...

    def add_players(self, new_players: Iterable[PlayerRow]) -> None: ...

    def update_players(self, updates: Dict[Handle, UpdatedPlayer]) -> None: ...

    def save_snapshot(self, rows: Iterable[PlayerRow]) -> None: ...

    def new_handle(self, player_id: str, position: int) -> Handle: ...

class MatchSource(Protocol):
    def load_matches(self) -> List[MatchRecord]: ...

    def load_new_matches(self, watermark: Optional[datetime]) -> List[MatchRecord]: ...

class WatermarkStore(Protocol):
    def get_watermark(self) -> Optional[datetime]: ...

    def set_watermark(self, instant: datetime) -> None: ...

def filter_new_matches(matches: Iterable[MatchRecord], watermark: Optional[datetime]) -> List[MatchRecord]:
    """Matches ending after ``watermark``; everything when there is none.

    Rows whose end time cannot be parsed are kept so validation reports them.
    """
    watermark = parse_timestamp(watermark)
    if watermark is None:
        return list(matches)
    selected: List[MatchRecord] = []
    for match in matches:
        end_time = parse_timestamp(match.end_time)
        if end_time is None or end_time > watermark:
            selected.append(match)
    return selected

def sort_by_end_time(matches: Iterable[MatchRecord]) -> List[MatchRecord]:
    """Chronological order; unparseable end times go last, original order kept."""
    def key(match: MatchRecord):
        end_time = parse_timestamp(match.end_time)
        return (end_time is None, end_time.timestamp() if end_time else 0.0)
    return sorted(matches, key=key)
