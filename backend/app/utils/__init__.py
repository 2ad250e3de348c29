import re
from datetime import datetime, timezone

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def as_utc(dt: datetime | None) -> datetime | None:
    """None-safe UTC conversion for JSON serialization.

    MongoDB hands datetimes back without tzinfo. Use at API response
    boundaries so ``lastUpdated`` serializes with a '+00:00' suffix instead of
    being read as local time by clients.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def first_present(payload: dict, keys: tuple[str, ...]):
    """Return the first value under ``keys`` that is neither None nor blank.

    Precedence follows the order of ``keys``; used to resolve accepted field
    aliases at the ingestion boundary.
    """
    for key in keys:
        value = payload.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def parse_score(value) -> int | None:
    """Parse a score like JavaScript's parseInt; None when nothing usable.

    "2" -> 2, "3 (aet)" -> 3, 1.0 -> 1, "x" -> None, -1 -> None.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        score = value
    elif isinstance(value, float):
        if value != value:  # NaN
            return None
        score = int(value)
    else:
        m = _LEADING_INT.match(str(value))
        if not m:
            return None
        score = int(m.group(1))
    return score if score >= 0 else None
