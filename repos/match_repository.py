from datetime import datetime
from typing import List, Optional

from repos.base import filter_new_matches
from repos.rows import match_from_row
from service.models import MatchRecord
from service.supabase_service import SupabaseService


class MatchRepository:
    """Read access to the `matches` log table."""

    table = "matches"

    def __init__(self, supabase: SupabaseService):
        self._db = supabase

    def load_matches(self) -> List[MatchRecord]:
        return [match_from_row(row) for row in self._db.fetch_all(self.table, order_by="end_time")]

    def load_new_matches(self, watermark: Optional[datetime]) -> List[MatchRecord]:
        return filter_new_matches(self.load_matches(), watermark)
