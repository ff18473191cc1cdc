from dataclasses import dataclass
import os
from typing import Tuple
from dotenv import load_dotenv

from service.rating_service import RatingParams

load_dotenv()

@dataclass(frozen=True)
class DatabaseCredentials:
    url: str
    api_key: str
    email: str
    password: str

@dataclass(frozen=True)
class StorageSettings:
    backend: str
    players_path: str
    matches_path: str
    watermark_path: str
    watermark_key: str
    require_zero_sum: bool

BACKENDS = ("sheet", "supabase")

def _parse_points(raw: str) -> Tuple[float, ...]:
    try:
        return tuple(float(p) for p in raw.split(","))
    except ValueError:
        raise ValueError(f"RATING_PLACEMENT_POINTS must be comma-separated numbers, got {raw!r}.")

def _read_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}.")

def _read_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}

class EnvironmentConfig:
    """Loads and validates required environment configuration."""
    @staticmethod
    def load() -> DatabaseCredentials:
        database_url = os.getenv("DATABASE_API_URL")
        database_api = os.getenv("DATABASE_API_KEY")
        if not database_url or not database_api:
            raise ValueError("DATABASE_API_URL and DATABASE_API_KEY must be set in the environment variables.")

        email = os.getenv("DATABASE_LOGIN_EMAIL")
        password = os.getenv("DATABASE_LOGIN_PASSWORD")
        if not email or not password:
            raise ValueError("DATABASE_LOGIN_EMAIL and DATABASE_LOGIN_PASSWORD must be set in the environment variables.")

        return DatabaseCredentials(
            url=database_url,
            api_key=database_api,
            email=email,
            password=password,
        )

    @staticmethod
    def load_rating_params() -> RatingParams:
        """Rating constants, overridable through RATING_* variables.

        RatingParams itself rejects a non-decreasing placement table.
        """
        defaults = RatingParams()
        raw_points = os.getenv("RATING_PLACEMENT_POINTS")
        points = _parse_points(raw_points) if raw_points else defaults.placement_points
        return RatingParams(
            placement_points=points,
            correction_factor=_read_float("RATING_CORRECTION_FACTOR", defaults.correction_factor),
            max_correction_games=int(_read_float("RATING_MAX_CORRECTION_GAMES", defaults.max_correction_games)),
            games_factor=_read_float("RATING_GAMES_FACTOR", defaults.games_factor),
            min_correction=_read_float("RATING_MIN_CORRECTION", defaults.min_correction),
            default_rating=_read_float("RATING_DEFAULT", defaults.default_rating),
        )

    @staticmethod
    def load_storage() -> StorageSettings:
        backend = os.getenv("RATINGS_BACKEND", "sheet").strip().lower()
        if backend not in BACKENDS:
            raise ValueError(f"RATINGS_BACKEND must be one of {', '.join(BACKENDS)}, got {backend!r}.")
        return StorageSettings(
            backend=backend,
            players_path=os.getenv("RATINGS_PLAYERS_PATH", "data/players.csv"),
            matches_path=os.getenv("RATINGS_MATCHES_PATH", "data/matches.csv"),
            watermark_path=os.getenv("RATINGS_WATERMARK_PATH", "data/last_updated.json"),
            watermark_key=os.getenv("RATINGS_WATERMARK_KEY", "matches_end_time"),
            require_zero_sum=_read_bool("RATINGS_REQUIRE_ZERO_SUM", False),
        )
