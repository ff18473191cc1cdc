"""
Pytest configuration and shared fixtures.

Provides match builders, in-memory stores standing in for the sheet and
Supabase backends, and a fake SupabaseService.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from repos.base import filter_new_matches
from service.models import MatchRecord, Player, PlayerRow, Seat


def make_match(ids, names=None, scores=(25.0, 5.0, -10.0, -20.0), start="2024-05-01T18:00:00+00:00",
               end="2024-05-01T19:00:00+00:00") -> MatchRecord:
    """Build a match with seats in finishing order."""
    names = names or [None] * len(ids)
    seats = [
        Seat(player_id=pid, player_name=name, score=score, adjusted_score=score)
        for pid, name, score in zip(ids, names, scores)
    ]
    return MatchRecord(start_time=start, end_time=end, seats=seats)


class InMemoryPlayerStore:
    def __init__(self, players: Optional[List[Player]] = None):
        self.rows: List[PlayerRow] = [PlayerRow(handle=i, player=p) for i, p in enumerate(players or [])]
        self.added: List[PlayerRow] = []
        self.updates: List[Dict] = []

    def load_players(self):
        return [PlayerRow(handle=r.handle, player=Player(**vars(r.player))) for r in self.rows]

    def new_handle(self, player_id, position):
        return position

    def add_players(self, new_players):
        for row in new_players:
            self.added.append(row)
            self.rows.append(PlayerRow(handle=row.handle, player=Player(**vars(row.player))))

    def update_players(self, updates):
        self.updates.append(dict(updates))
        for handle, update in updates.items():
            player = self.rows[handle].player
            player.name = update.name
            player.rating = update.rating
            player.games = update.games
            player.last_played = update.last_played

    def save_snapshot(self, rows):
        for row in rows:
            self.rows[row.handle] = PlayerRow(handle=row.handle, player=Player(**vars(row.player)))


class InMemoryMatchSource:
    def __init__(self, matches: Optional[List[MatchRecord]] = None):
        self.matches = list(matches or [])

    def load_matches(self):
        return list(self.matches)

    def load_new_matches(self, watermark):
        return filter_new_matches(self.matches, watermark)


class InMemoryWatermarkStore:
    def __init__(self, watermark: Optional[datetime] = None):
        self.watermark = watermark
        self.history: List[datetime] = []

    def get_watermark(self):
        return self.watermark

    def set_watermark(self, instant):
        self.watermark = instant
        self.history.append(instant)


class FakeSupabase:
    """Records table operations instead of talking to Supabase."""

    def __init__(self, tables: Optional[Dict[str, List[dict]]] = None):
        self.tables = tables or {}
        self.upserts: List[tuple] = []
        self.inserts: List[tuple] = []

    def fetch_all(self, table, order_by=None):
        rows = list(self.tables.get(table, []))
        if order_by:
            rows.sort(key=lambda r: str(r.get(order_by)))
        return rows

    def select_eq(self, table, column, value):
        return [r for r in self.tables.get(table, []) if r.get(column) == value]

    def upsert(self, table, rows):
        self.upserts.append((table, list(rows)))

    def insert_many(self, table, rows):
        rows = list(rows)
        self.inserts.append((table, rows))
        self.tables.setdefault(table, []).extend(rows)
        return len(rows)


@pytest.fixture
def fixed_now():
    return datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def four_new_ids():
    return ["p1", "p2", "p3", "p4"]
