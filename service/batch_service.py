import logging
from typing import Iterable

from service.match_processor import MatchProcessor
from service.models import BatchResult, MatchRecord
from service.registry_builder import PlayerRegistry

logger = logging.getLogger(__name__)

class BatchService:
    """Replays matches in the given order, folding each result into the registry."""
    def __init__(self, match_processor: MatchProcessor | None = None):
        self.match_processor = match_processor or MatchProcessor()

    def process_batch(self, matches: Iterable[MatchRecord], registry: PlayerRegistry) -> BatchResult:
        result = BatchResult()
        for index, match in enumerate(matches):
            outcome = self.match_processor.process_match(match, registry)
            if not outcome.success:
                # The end time locates the row in the sheet; the index is the position after sorting.
                message = f"match {index}: {'; '.join(outcome.errors)} (end time {match.end_time!r})"
                result.errors.append(message)
                result.failed_count += 1
                logger.warning("Skipping %s", message)
                continue

            for handle, update in outcome.updates.items():
                result.player_updates[handle] = update
                # Later matches in this batch must see the post-match rating.
                registry.apply(update)
            result.processed_count += 1
            end_time = next(iter(outcome.updates.values())).last_played
            if result.latest_end_time is None or end_time > result.latest_end_time:
                result.latest_end_time = end_time

        result.success = not result.errors
        logger.info(
            "Processed %s matches (%s failed, %s players updated)",
            result.processed_count, result.failed_count, len(result.player_updates),
        )
        return result
