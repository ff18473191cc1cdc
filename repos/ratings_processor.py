import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional

from repos.base import MatchSource, PlayerStore, WatermarkStore, sort_by_end_time
from service.batch_service import BatchService
from service.models import BatchResult
from service.rating_service import RatingParams
from service.registry_builder import PlayerRegistry, build_registry
from service.reporting import LeaderboardEntry, build_leaderboard, snapshot_players

logger = logging.getLogger(__name__)

@dataclass
class RunSummary:
    """What one rating run found, computed and persisted."""
    new_matches: int = 0
    new_players: List[str] = field(default_factory=list)
    batch: BatchResult = field(default_factory=BatchResult)
    persisted: bool = False
    watermark: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return self.batch.success

    @property
    def errors(self) -> List[str]:
        return self.batch.errors

class RatingsProcessor:
    """Loads new matches and players, rates the matches and writes results back.

    Repository faults propagate as RepositoryError before the watermark moves.
    """
    def __init__(
        self,
        players_repo: PlayerStore,
        matches_repo: MatchSource,
        watermark_store: WatermarkStore,
        batch_service: Optional[BatchService] = None,
        params: Optional[RatingParams] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.players_repo = players_repo
        self.matches_repo = matches_repo
        self.watermark_store = watermark_store
        self.batch_service = batch_service or BatchService()
        self.params = params or RatingParams()
        self.clock = clock

    def load_registry(self, matches=()) -> PlayerRegistry:
        return build_registry(
            self.players_repo.load_players(),
            matches,
            handle_factory=self.players_repo.new_handle,
            default_rating=self.params.default_rating,
        )

    def run(self, *, dry_run: bool = False, persist_partial: bool = True) -> RunSummary:
        """Rate every match that ended after the stored watermark.

        With ``persist_partial`` the successful subset is written even when some
        matches fail, and the watermark moves to the latest successful end time.
        Without it nothing but new players is written on failure.
        """
        summary = RunSummary()
        watermark = self.watermark_store.get_watermark()
        matches = sort_by_end_time(self.matches_repo.load_new_matches(watermark))
        summary.new_matches = len(matches)
        logger.info("Found %s new matches after watermark=%s", len(matches), watermark)

        registry = self.load_registry(matches)
        new_rows = registry.new_rows()
        summary.new_players = [row.player.player_id for row in new_rows]
        if new_rows and not dry_run:
            self.players_repo.add_players(new_rows)

        summary.batch = self.batch_service.process_batch(matches, registry)
        if dry_run:
            logger.info("Dry run: nothing persisted")
            return summary

        if not summary.batch.success and not persist_partial:
            logger.warning("Batch had %s failed matches; not persisting updates", summary.batch.failed_count)
            return summary

        self.players_repo.update_players(summary.batch.player_updates)
        summary.persisted = True

        next_watermark = summary.batch.latest_end_time
        if next_watermark is None and summary.batch.success:
            next_watermark = self.clock()
        if next_watermark is not None and (watermark is None or next_watermark > watermark):
            self.watermark_store.set_watermark(next_watermark)
            summary.watermark = next_watermark
            logger.info("Watermark advanced to %s", next_watermark.isoformat())
        return summary

    def snapshot(self) -> int:
        """Close the reporting period for every stored player."""
        rows = snapshot_players(self.players_repo.load_players())
        self.players_repo.save_snapshot(rows)
        logger.info("Snapshot taken for %s players", len(rows))
        return len(rows)

    def leaderboard(self, min_games: int = 0) -> List[LeaderboardEntry]:
        return build_leaderboard((row.player for row in self.players_repo.load_players()), min_games=min_games)
