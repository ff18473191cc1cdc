"""Write random zero-sum matches to a match sheet, for trying out a rating run.

Example:
  py generate_matches.py --players data/players.csv --count 20 --seed 7
  py generate_matches.py --player-ids alice bob carol dave erin --count 5
"""

from __future__ import annotations

import argparse
import logging

from config import EnvironmentConfig
from repos.sheet_repository import SheetMatchRepository, SheetPlayerRepository
from service.match_generator import generate_matches


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Generate random four-player matches into a CSV match sheet.")
    p.add_argument("--players", default=None, help="Player sheet to draw players from.")
    p.add_argument("--player-ids", nargs="+", default=None, help="Player ids to use instead of a player sheet.")
    p.add_argument("--matches", default=None, help="Match sheet CSV to write (default: RATINGS_MATCHES_PATH).")
    p.add_argument("--count", type=int, default=10, help="Number of matches to generate.")
    p.add_argument("--seed", type=int, default=None, help="Random seed for reproducible output.")
    p.add_argument("--overwrite", action="store_true", help="Replace the match sheet instead of appending.")
    p.add_argument(
        "--log-level",
        default="INFO",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="Logging verbosity.",
    )
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    storage = EnvironmentConfig.load_storage()
    if args.player_ids:
        players = [(pid, pid) for pid in args.player_ids]
    else:
        rows = SheetPlayerRepository(args.players or storage.players_path).load_players()
        players = [(row.player.player_id, row.player.name) for row in rows]

    matches = generate_matches(players, args.count, seed=args.seed)
    path = args.matches or storage.matches_path
    SheetMatchRepository(path).save_matches(matches, append=not args.overwrite)
    logger.info("Wrote %s matches for %s players to %s", len(matches), len(players), path)
    print(f"Wrote {len(matches)} matches to {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
