import math
from datetime import datetime, timezone
from typing import Any, List, Optional

from service.models import MatchRecord, SEATS, ValidationResult

ZERO_SUM_TOLERANCE = 1e-6

def parse_timestamp(value: Any) -> Optional[datetime]:
    """Best-effort conversion of a sheet or database cell to an aware datetime.

    Accepts datetimes (pandas Timestamps included), ISO-8601 strings (a
    trailing Z included) and Unix epoch seconds as numbers or numeric text.
    Naive values are read as UTC. Returns None when the value
    cannot be interpreted.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        # Epoch cells come back from the CSV sheet as text.
        epoch = parse_score(text)
        if epoch is not None:
            return parse_timestamp(epoch)
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    # NaT is a datetime subclass that fails every comparison.
    if parsed != parsed:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed

def parse_score(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number

def _clean_id(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None

class MatchValidator:
    """Structural checks on a raw match row. Never raises for bad data."""
    def __init__(self, require_zero_sum: bool = False):
        self.require_zero_sum = require_zero_sum

    def validate(self, match: MatchRecord) -> ValidationResult:
        errors: List[str] = []
        if parse_timestamp(match.start_time) is None:
            errors.append(f"invalid start time: {match.start_time!r}")
        if parse_timestamp(match.end_time) is None:
            errors.append(f"invalid end time: {match.end_time!r}")

        seats = list(match.seats)[:SEATS]
        ids = [_clean_id(seat.player_id) for seat in seats]
        present = [pid for pid in ids if pid is not None]
        if len(present) != SEATS:
            errors.append(f"expected {SEATS} player ids, found {len(present)}")
        duplicates = sorted({pid for pid in present if present.count(pid) > 1})
        if duplicates:
            errors.append(f"duplicate player ids: {', '.join(duplicates)}")

        scores = [parse_score(seat.score) for seat in seats]
        numeric = [s for s in scores if s is not None]
        if len(numeric) != SEATS:
            errors.append(f"expected {SEATS} numeric scores, found {len(numeric)}")
        elif self.require_zero_sum and abs(sum(numeric)) > ZERO_SUM_TOLERANCE:
            errors.append(f"scores do not sum to zero: {sum(numeric):g}")

        if len(match.seats) > SEATS:
            errors.append(f"expected {SEATS} seats, found {len(match.seats)}")
        return ValidationResult(valid=not errors, errors=errors)

def validate(match: MatchRecord) -> ValidationResult:
    return MatchValidator().validate(match)
