"""Random match rows for fixtures and dry runs.

Raw scores are drawn in 100-point units and always total STARTING_TOTAL. The
stored score is the balance against STARTING_POINTS, so every generated table
is zero-sum in both its score and adjusted score columns.
"""

import random
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from service.models import MatchRecord, SEATS, Seat

STARTING_POINTS = 25000
STARTING_TOTAL = STARTING_POINTS * SEATS
SCORE_UNIT = 100
UMA = (15.0, 5.0, -5.0, -15.0)

def adjusted_scores(raw_scores: Sequence[int]) -> List[float]:
    """Convert placement-ordered raw scores to thousands-of-points plus uma."""
    return [round((raw - STARTING_POINTS) / 1000 + uma, 1) for raw, uma in zip(raw_scores, UMA)]

def _raw_scores(rng: random.Random) -> List[int]:
    units = STARTING_TOTAL // SCORE_UNIT
    # Three cut points split the total into four non-negative parts.
    cuts = sorted(rng.randint(0, units) for _ in range(SEATS - 1))
    parts = [b - a for a, b in zip([0] + cuts, cuts + [units])]
    return sorted((p * SCORE_UNIT for p in parts), reverse=True)

def generate_matches(
    players: Sequence[tuple],
    count: int,
    *,
    start: Optional[datetime] = None,
    game_minutes: int = 60,
    gap_minutes: int = 10,
    seed: Optional[int] = None,
) -> List[MatchRecord]:
    """Build ``count`` chronologically ordered matches among ``players``.

    ``players`` holds (player_id, name) pairs; at least four are needed.
    Seats are written in finishing order, highest raw score first.
    """
    if len(players) < SEATS:
        raise ValueError(f"need at least {SEATS} players, got {len(players)}")
    rng = random.Random(seed)
    when = start or datetime.now(timezone.utc).replace(microsecond=0)
    matches: List[MatchRecord] = []
    for _ in range(count):
        table = rng.sample(list(players), SEATS)
        raw = _raw_scores(rng)
        adjusted = adjusted_scores(raw)
        end = when + timedelta(minutes=game_minutes)
        matches.append(MatchRecord(
            start_time=when.isoformat(),
            end_time=end.isoformat(),
            seats=[
                Seat(player_id=pid, player_name=name, score=points - STARTING_POINTS, adjusted_score=adj)
                for (pid, name), points, adj in zip(table, raw, adjusted)
            ],
        ))
        when = end + timedelta(minutes=gap_minutes)
    return matches
