import logging
from typing import Dict, List

from service.match_validator import MatchValidator, parse_timestamp
from service.models import Handle, MatchRecord, MatchResult, Player, UpdatedPlayer
from service.rating_service import RatingService, round_rating
from service.registry_builder import PlayerRegistry

logger = logging.getLogger(__name__)

class MatchProcessor:
    """Turns one match row into rating updates for its four seats.

    The registry is only read here; folding updates back into it is the batch
    driver's job.
    """
    def __init__(self, rating_service: RatingService | None = None, validator: MatchValidator | None = None):
        self.rating_service = rating_service or RatingService()
        self.validator = validator or MatchValidator()

    def process_match(self, match: MatchRecord, registry: PlayerRegistry) -> MatchResult:
        validation = self.validator.validate(match)
        if not validation.valid:
            return MatchResult(success=False, errors=list(validation.errors))

        seat_ids = [str(seat.player_id).strip() for seat in match.seats]
        missing = [pid for pid in seat_ids if pid not in registry]
        if missing:
            return MatchResult(success=False, errors=[f"unknown player id: {pid}" for pid in missing])

        players: List[Player] = [registry.get(pid) for pid in seat_ids]  # type: ignore[misc]
        table_avg_rating = sum(p.rating for p in players) / len(players)
        end_time = parse_timestamp(match.end_time)

        updates: Dict[Handle, UpdatedPlayer] = {}
        for placement, (seat, player) in enumerate(zip(match.seats, players), start=1):
            delta = self.rating_service.rating_change(player, placement, table_avg_rating)
            seat_name = seat.player_name.strip() if isinstance(seat.player_name, str) else ""
            handle = registry.handle_for(player.player_id)
            updates[handle] = UpdatedPlayer(
                handle=handle,
                player_id=player.player_id,
                name=seat_name or player.name,
                rating=round_rating(player.rating + delta),
                games=player.games + 1,
                last_played=end_time,  # type: ignore[arg-type]
                rating_change=delta,
            )
            logger.debug(
                "Seat %s player=%s rating=%.2f games=%s avg=%.2f delta=%+.3f",
                placement, player.player_id, player.rating, player.games, table_avg_rating, delta,
            )
        return MatchResult(success=True, updates=updates)
