from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Tuple

from service.models import DEFAULT_RATING, Player

@dataclass(frozen=True)
class RatingParams:
    """Constants of the placement rating formula."""
    placement_points: Tuple[float, ...] = (30.0, 10.0, -10.0, -30.0)
    correction_factor: float = 40.0
    max_correction_games: int = 300
    games_factor: float = 0.002
    min_correction: float = 0.2
    default_rating: float = DEFAULT_RATING

    def __post_init__(self) -> None:
        points = tuple(self.placement_points)
        if len(points) != 4:
            raise ValueError(f"placement_points needs one value per seat (4), got {len(points)}.")
        if any(a <= b for a, b in zip(points, points[1:])):
            raise ValueError(f"placement_points must be strictly decreasing, got {points}.")
        if self.correction_factor <= 0:
            raise ValueError("correction_factor must be positive.")
        object.__setattr__(self, "placement_points", points)

def round_rating(value: float) -> float:
    """Round to 2 decimals, halves away from zero (1500.125 -> 1500.13)."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))

class RatingService:
    """Encapsulates the per-seat rating formula (SRP + Open/Closed)."""
    def __init__(self, params: RatingParams | None = None):
        self.params = params or RatingParams()

    def games_correction(self, games: int) -> float:
        p = self.params
        if games < p.max_correction_games:
            return 1 - games * p.games_factor
        return p.min_correction

    def rating_change(self, player: Player, placement: int, table_avg_rating: float) -> float:
        """Delta for one seat.

        The placement point is nudged towards the table average, then the whole
        amount is damped by experience so veterans move slower than newcomers.
        """
        if not 1 <= placement <= len(self.params.placement_points):
            raise ValueError(f"placement must be between 1 and 4, got {placement}.")
        placement_point = self.params.placement_points[placement - 1]
        avg_rating_correction = (table_avg_rating - player.rating) / self.params.correction_factor
        return self.games_correction(player.games) * (placement_point + avg_rating_correction)
