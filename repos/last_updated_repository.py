from datetime import datetime
from typing import Optional

from service.match_validator import parse_timestamp
from service.supabase_service import SupabaseService


class LastUpdatedRepository:
    """Stores and retrieves watermark timestamps from the `last_updated` table."""

    def __init__(self, supabase: SupabaseService, key: str = "matches_end_time"):
        self._db = supabase
        self.key = key

    def get_timestamp(self, key: str) -> Optional[datetime]:
        rows = self._db.select_eq("last_updated", "last_updated", key)
        if not rows:
            return None
        return parse_timestamp(rows[0].get("timestamp"))

    def set_timestamp(self, key: str, timestamp: datetime) -> None:
        self._db.upsert(
            "last_updated",
            [{"last_updated": key, "timestamp": timestamp.isoformat()}],
        )

    def get_watermark(self) -> Optional[datetime]:
        return self.get_timestamp(self.key)

    def set_watermark(self, instant: datetime) -> None:
        self.set_timestamp(self.key, instant)
