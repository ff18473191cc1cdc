"""CLI entry-point to rate new matches and write player ratings back.

Workflow:
- Read the stored watermark (latest processed match end time)
- Load matches that ended after it, oldest first
- Register players seen for the first time (rating 1500, 0 games)
- Rate the matches in order and write updated players back
- Advance the watermark

Example:
  py update_ratings.py --backend sheet --players data/players.csv --matches data/matches.csv
  py update_ratings.py --backend supabase --strict
  py update_ratings.py --leaderboard --min-games 10
"""

from __future__ import annotations

import argparse
import logging

from config import EnvironmentConfig, StorageSettings
from repos.ratings_processor import RatingsProcessor
from repos.sheet_repository import JsonWatermarkStore, SheetMatchRepository, SheetPlayerRepository
from service.batch_service import BatchService
from service.match_processor import MatchProcessor
from service.match_validator import MatchValidator
from service.rating_service import RatingService


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Rate new four-player matches and update the player sheet.")
    p.add_argument("--backend", default=None, choices=["sheet", "supabase"], help="Storage backend (default: RATINGS_BACKEND).")
    p.add_argument("--players", default=None, help="Player sheet CSV path (sheet backend).")
    p.add_argument("--matches", default=None, help="Match sheet CSV path (sheet backend).")
    p.add_argument("--watermark", default=None, help="Watermark JSON path (sheet backend).")
    p.add_argument(
        "--strict",
        action="store_true",
        help="Persist nothing when any match fails validation (default persists the successful subset).",
    )
    p.add_argument(
        "--require-zero-sum",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Reject matches whose four scores do not sum to zero.",
    )
    p.add_argument("--dry-run", action="store_true", help="Compute rating changes without writing anything.")
    p.add_argument("--snapshot", action="store_true", help="Copy current ratings into the prior-period columns and exit.")
    p.add_argument("--leaderboard", action="store_true", help="Print the current leaderboard and exit.")
    p.add_argument("--min-games", type=int, default=0, help="Leaderboard: minimum games played.")
    p.add_argument(
        "--log-level",
        default="INFO",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="Logging verbosity.",
    )
    return p


def build_processor(storage: StorageSettings) -> RatingsProcessor:
    params = EnvironmentConfig.load_rating_params()
    batch_service = BatchService(
        MatchProcessor(RatingService(params), MatchValidator(require_zero_sum=storage.require_zero_sum))
    )
    if storage.backend == "supabase":
        # Imported lazily so the sheet backend works without Supabase credentials.
        from repos.last_updated_repository import LastUpdatedRepository
        from repos.match_repository import MatchRepository
        from repos.player_repository import PlayerRepository
        from service.supabase_service import SupabaseService

        supabase = SupabaseService(EnvironmentConfig.load())
        return RatingsProcessor(
            PlayerRepository(supabase),
            MatchRepository(supabase),
            LastUpdatedRepository(supabase, key=storage.watermark_key),
            batch_service=batch_service,
            params=params,
        )
    return RatingsProcessor(
        SheetPlayerRepository(storage.players_path),
        SheetMatchRepository(storage.matches_path),
        JsonWatermarkStore(storage.watermark_path, key=storage.watermark_key),
        batch_service=batch_service,
        params=params,
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Keep output focused: httpx request logs (used by Supabase) are very noisy at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    storage = EnvironmentConfig.load_storage()
    storage = StorageSettings(
        backend=args.backend or storage.backend,
        players_path=args.players or storage.players_path,
        matches_path=args.matches or storage.matches_path,
        watermark_path=args.watermark or storage.watermark_path,
        watermark_key=storage.watermark_key,
        require_zero_sum=storage.require_zero_sum if args.require_zero_sum is None else args.require_zero_sum,
    )
    processor = build_processor(storage)

    if args.leaderboard:
        for entry in processor.leaderboard(min_games=args.min_games):
            print(
                f"{entry.rank:>4} {entry.name:<24} {entry.rating:>8.2f} "
                f"({entry.rating_change:+.2f}) games={entry.games} (+{entry.games_change})"
            )
        return 0

    if args.snapshot:
        count = processor.snapshot()
        print(f"Snapshot taken for {count} players.")
        return 0

    logger.info("Starting rating run backend=%s dry_run=%s strict=%s", storage.backend, args.dry_run, args.strict)
    summary = processor.run(dry_run=args.dry_run, persist_partial=not args.strict)

    print(
        f"New matches={summary.new_matches} processed={summary.batch.processed_count} "
        f"failed={summary.batch.failed_count} new players={len(summary.new_players)} "
        f"updated players={len(summary.batch.player_updates)}"
    )
    if args.dry_run:
        for update in summary.batch.player_updates.values():
            print(f"  {update.player_id:<16} {update.name:<24} {update.rating:>8.2f} games={update.games}")
    if summary.watermark is not None:
        print(f"Updated watermark = {summary.watermark.isoformat()}")
    for error in summary.errors:
        print(f"ERROR {error}")

    return 0 if summary.success else 1


if __name__ == "__main__":
    raise SystemExit(main())
