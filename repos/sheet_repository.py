"""CSV exports of the rating spreadsheet.

The player sheet is rewritten in place; a player's handle is its row position,
and new players are appended after the last row.
"""

import json
import logging
import os
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import pandas as pd

from repos.base import filter_new_matches
from repos.rows import MATCH_COLUMNS, PLAYER_COLUMNS, match_from_row, match_to_row, player_from_row, player_to_row, update_to_row
from service.errors import RepositoryError
from service.match_validator import parse_timestamp
from service.models import Handle, MatchRecord, PlayerRow, UpdatedPlayer

logger = logging.getLogger(__name__)

def _read_sheet(path: str, columns: List[str]) -> pd.DataFrame:
    if not os.path.exists(path):
        return pd.DataFrame(columns=columns)
    try:
        df = pd.read_csv(path, dtype=object)
    except pd.errors.EmptyDataError:
        return pd.DataFrame(columns=columns)
    except (OSError, pd.errors.ParserError) as err:
        raise RepositoryError(f"Could not read sheet {path}: {err}") from err
    missing = [c for c in columns if c not in df.columns]
    for column in missing:
        df[column] = None
    return df

def _write_sheet(df: pd.DataFrame, path: str) -> None:
    directory = os.path.dirname(path)
    try:
        if directory:
            os.makedirs(directory, exist_ok=True)
        df.to_csv(path, index=False)
    except OSError as err:
        raise RepositoryError(f"Could not write sheet {path}: {err}") from err

def _records(df: pd.DataFrame) -> List[Dict]:
    return df.astype(object).where(df.notna(), None).to_dict(orient="records")

class SheetPlayerRepository:
    def __init__(self, path: str):
        self.path = path

    def _frame(self) -> pd.DataFrame:
        return _read_sheet(self.path, PLAYER_COLUMNS).reset_index(drop=True)

    def load_players(self) -> List[PlayerRow]:
        rows: List[PlayerRow] = []
        for position, record in enumerate(_records(self._frame())):
            try:
                player = player_from_row(record)
            except (TypeError, ValueError) as err:
                raise RepositoryError(f"Malformed player row {position} in {self.path}: {err}") from err
            rows.append(PlayerRow(handle=position, player=player))
        return rows

    def new_handle(self, player_id: str, position: int) -> Handle:
        return position

    def _check_handle(self, df: pd.DataFrame, handle: Handle) -> None:
        if not isinstance(handle, int) or not 0 <= handle < len(df):
            raise RepositoryError(f"No player row at position {handle!r} in {self.path}.")

    def add_players(self, new_players: Iterable[PlayerRow]) -> None:
        new_players = list(new_players)
        if not new_players:
            return
        df = self._frame()
        for row in new_players:
            if row.handle != len(df):
                raise RepositoryError(f"Handle {row.handle} for {row.player.player_id} is not the next row ({len(df)}).")
            values = player_to_row(row.player)
            df.loc[len(df)] = [values.get(column) for column in df.columns]
        _write_sheet(df, self.path)
        logger.info("Appended %s players to %s", len(new_players), self.path)

    def update_players(self, updates: Dict[Handle, UpdatedPlayer]) -> None:
        if not updates:
            return
        df = self._frame()
        for handle, update in updates.items():
            self._check_handle(df, handle)
            if str(df.at[handle, "player_id"]).strip() != update.player_id:
                raise RepositoryError(
                    f"Row {handle} in {self.path} holds {df.at[handle, 'player_id']!r}, expected {update.player_id!r}."
                )
            for column, value in update_to_row(update).items():
                df.at[handle, column] = value
        _write_sheet(df, self.path)

    def save_snapshot(self, rows: Iterable[PlayerRow]) -> None:
        df = self._frame()
        for row in rows:
            self._check_handle(df, row.handle)
            df.at[row.handle, "prior_rating"] = row.player.prior_rating
            df.at[row.handle, "prior_games"] = row.player.prior_games
        _write_sheet(df, self.path)

class SheetMatchRepository:
    def __init__(self, path: str):
        self.path = path

    def load_matches(self) -> List[MatchRecord]:
        return [match_from_row(record) for record in _records(_read_sheet(self.path, MATCH_COLUMNS))]

    def load_new_matches(self, watermark: Optional[datetime]) -> List[MatchRecord]:
        return filter_new_matches(self.load_matches(), watermark)

    def save_matches(self, matches: Iterable[MatchRecord], append: bool = True) -> None:
        new_rows = pd.DataFrame([match_to_row(m) for m in matches], columns=MATCH_COLUMNS)
        if append:
            existing = _read_sheet(self.path, MATCH_COLUMNS)
            if not existing.empty:
                new_rows = pd.concat([existing[MATCH_COLUMNS], new_rows], ignore_index=True)
        _write_sheet(new_rows, self.path)

class JsonWatermarkStore:
    """Watermarks kept in a small JSON file, keyed like the `last_updated` table."""
    def __init__(self, path: str, key: str = "matches_end_time"):
        self.path = path
        self.key = key

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as err:
            raise RepositoryError(f"Could not read watermark file {self.path}: {err}") from err

    def get_watermark(self) -> Optional[datetime]:
        return parse_timestamp(self._load().get(self.key))

    def set_watermark(self, instant: datetime) -> None:
        data = self._load()
        data[self.key] = instant.isoformat()
        directory = os.path.dirname(self.path)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.path, "w") as f:
                json.dump(data, f, indent=2)
        except OSError as err:
            raise RepositoryError(f"Could not write watermark file {self.path}: {err}") from err
