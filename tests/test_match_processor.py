"""
Unit tests for rating one match.
"""

from datetime import datetime, timezone

import pytest

from conftest import make_match
from service.match_processor import MatchProcessor
from service.models import Player, PlayerRow
from service.registry_builder import build_registry


@pytest.fixture
def processor():
    return MatchProcessor()


def registry_of(*players):
    return build_registry([PlayerRow(handle=i, player=p) for i, p in enumerate(players)])


class TestProcessMatch:
    def test_four_newcomers(self, processor):
        registry = registry_of(*(Player(player_id=pid, name=pid.upper()) for pid in ["a", "b", "c", "d"]))

        result = processor.process_match(make_match(["a", "b", "c", "d"]), registry)

        assert result.success
        assert [u.rating for u in result.updates.values()] == [1530.0, 1510.0, 1490.0, 1470.0]
        assert all(u.games == 1 for u in result.updates.values())
        assert all(u.last_played == datetime(2024, 5, 1, 19, 0, tzinfo=timezone.utc) for u in result.updates.values())

    def test_updates_are_keyed_by_handle(self, processor):
        registry = registry_of(*(Player(player_id=pid, name=pid) for pid in ["a", "b", "c", "d"]))

        result = processor.process_match(make_match(["d", "c", "b", "a"]), registry)

        assert result.updates[3].player_id == "d"
        assert result.updates[3].rating == 1530.0
        assert result.updates[0].player_id == "a"
        assert result.updates[0].rating == 1470.0

    def test_table_average_uses_current_ratings(self, processor):
        """A 1400 player among three 1600 players sees an average of 1550."""
        registry = registry_of(
            Player(player_id="low", name="Low", rating=1400.0),
            Player(player_id="h1", name="H1", rating=1600.0),
            Player(player_id="h2", name="H2", rating=1600.0),
            Player(player_id="h3", name="H3", rating=1600.0),
        )

        result = processor.process_match(make_match(["h1", "h2", "h3", "low"]), registry)

        by_id = {u.player_id: u for u in result.updates.values()}
        assert by_id["low"].rating_change == pytest.approx(-30 + 150 / 40)
        assert by_id["low"].rating == 1373.75
        assert by_id["h1"].rating == round(1600 + 30 - 50 / 40, 2)

    def test_match_name_preferred_over_stored_name(self, processor):
        registry = registry_of(*(Player(player_id=pid, name="old " + pid) for pid in ["a", "b", "c", "d"]))

        result = processor.process_match(make_match(["a", "b", "c", "d"], names=["Alice", "", None, "Dave"]), registry)

        assert [u.name for u in result.updates.values()] == ["Alice", "old b", "old c", "Dave"]

    def test_registry_is_not_mutated(self, processor):
        registry = registry_of(*(Player(player_id=pid, name=pid) for pid in ["a", "b", "c", "d"]))

        processor.process_match(make_match(["a", "b", "c", "d"]), registry)

        assert all(p.rating == 1500.0 and p.games == 0 for p in registry)

    def test_invalid_match_returns_validation_errors(self, processor):
        registry = registry_of(*(Player(player_id=pid, name=pid) for pid in ["a", "b", "c", "d"]))

        result = processor.process_match(make_match(["a", "b", "b", "d"]), registry)

        assert not result.success
        assert result.updates == {}
        assert result.errors == ["duplicate player ids: b"]

    def test_unknown_player_fails_whole_match(self, processor):
        registry = registry_of(*(Player(player_id=pid, name=pid) for pid in ["a", "b", "c"]))

        result = processor.process_match(make_match(["a", "b", "c", "ghost"]), registry)

        assert not result.success
        assert result.updates == {}
        assert result.errors == ["unknown player id: ghost"]

    def test_veteran_moves_less(self, processor):
        registry = registry_of(
            Player(player_id="vet", name="Vet", games=500),
            *(Player(player_id=pid, name=pid) for pid in ["b", "c", "d"]),
        )

        result = processor.process_match(make_match(["vet", "b", "c", "d"]), registry)

        assert result.updates[0].rating == 1506.0
        assert result.updates[0].games == 501
