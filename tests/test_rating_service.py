"""
Unit tests for the placement rating formula.

Covers the placement table, the table-average correction, the experience
damping and the rounding applied to new ratings.
"""

import pytest

from service.models import Player
from service.rating_service import RatingParams, RatingService, round_rating


@pytest.fixture
def service():
    return RatingService()


class TestRatingChange:
    """Tests for RatingService.rating_change."""

    @pytest.mark.parametrize("rating,games", [(1500.0, 0), (1820.5, 45), (1200.0, 299), (1650.0, 1200)])
    def test_average_player_wins_and_loses(self, service, rating, games):
        """At the table average, 1st place gains and 4th place loses."""
        player = Player(player_id="a", name="A", rating=rating, games=games)

        assert service.rating_change(player, 1, rating) > 0
        assert service.rating_change(player, 4, rating) < 0

    def test_newcomer_gets_full_placement_points(self, service):
        player = Player(player_id="a", name="A")

        changes = [service.rating_change(player, placement, 1500.0) for placement in range(1, 5)]

        assert changes == pytest.approx([30.0, 10.0, -10.0, -30.0])

    def test_below_average_player_is_nudged_up(self, service):
        """A player 100 below the table average gains 100/40 on top of the placement point."""
        player = Player(player_id="a", name="A", rating=1400.0)

        assert service.rating_change(player, 4, 1500.0) == pytest.approx(-27.5)
        assert service.rating_change(player, 1, 1500.0) == pytest.approx(32.5)

    def test_above_average_player_is_nudged_down(self, service):
        player = Player(player_id="a", name="A", rating=1580.0)

        assert service.rating_change(player, 2, 1500.0) == pytest.approx(8.0)

    def test_experience_damps_changes(self, service):
        player = Player(player_id="a", name="A", games=100)

        assert service.rating_change(player, 1, 1500.0) == pytest.approx(24.0)

    def test_invalid_placement_raises(self, service):
        with pytest.raises(ValueError):
            service.rating_change(Player(player_id="a", name="A"), 5, 1500.0)


class TestGamesCorrection:
    """The damping decays linearly, then drops to the floor at the cap."""

    @pytest.mark.parametrize("games,expected", [(0, 1.0), (150, 0.7), (299, 0.402), (300, 0.2), (5000, 0.2)])
    def test_games_correction(self, service, games, expected):
        assert service.games_correction(games) == pytest.approx(expected)


class TestRatingParams:
    def test_default_placement_points_strictly_decrease(self):
        points = RatingParams().placement_points

        assert points[0] > points[1] > points[2] > points[3]

    @pytest.mark.parametrize("points", [(30, 10, 10, -30), (10, 30, -10, -30), (30, 10, -10)])
    def test_rejects_bad_placement_tables(self, points):
        with pytest.raises(ValueError):
            RatingParams(placement_points=points)

    def test_rejects_non_positive_correction_factor(self):
        with pytest.raises(ValueError):
            RatingParams(correction_factor=0)

    def test_custom_params_are_used(self):
        service = RatingService(RatingParams(placement_points=(45, 15, -15, -45), min_correction=0.5, max_correction_games=10))

        veteran = Player(player_id="a", name="A", games=10)

        assert service.rating_change(veteran, 1, 1500.0) == pytest.approx(22.5)


class TestRoundRating:
    """New ratings are rounded to cents, halves away from zero."""

    @pytest.mark.parametrize("value,expected", [
        (1500.125, 1500.13),
        (1510.1875, 1510.19),
        (2.675, 2.68),
        (-0.125, -0.13),
        (1499.994, 1499.99),
    ])
    def test_round_half_away_from_zero(self, value, expected):
        assert round_rating(value) == expected
