"""
backend/app/services/batch_normalizer.py

Purpose:
    Ingestion boundary for match batch payloads. Resolves every accepted field
    alias exactly once, validates required fields, and returns a typed result
    so nothing downstream has to branch on alias presence.

Dependencies:
    - app.models.match_batch
    - app.errors
    - app.utils
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from app.errors import BatchValidationError
from app.models.match_batch import UNKNOWN_TEAM, MatchBatch, MatchRecord
from app.utils import first_present, parse_score, utcnow

logger = logging.getLogger("matchbatch.normalizer")

# Alias precedence per field: first non-blank key wins.
MATCH_LIST_KEYS = ("matches", "allMatches")
TOURNAMENT_KEYS = ("trn", "tournament")
HOME_TEAM_KEYS = ("homeTeam", "home")
AWAY_TEAM_KEYS = ("awayTeam", "away", "visitor")

KEY_DELIMITER = "-"


@dataclass
class NormalizationResult:
    batch: MatchBatch | None = None
    error: BatchValidationError | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


def normalize_league(league: Any) -> str:
    return str(league or "").strip().lower()


def normalize_key_part(value: Any) -> str | None:
    """Season/tournament/week as stored: stripped string, None when blank."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_team(value: Any) -> str:
    name = str(value).strip().upper() if value is not None else ""
    return name or UNKNOWN_TEAM


def normalize_match(raw: Any, index: int, warnings: list[str]) -> MatchRecord:
    if not isinstance(raw, dict):
        warnings.append(f"matches[{index}]: not an object, stored as UNKNOWN v UNKNOWN")
        raw = {}

    scores = {}
    for key in ("homeScore", "awayScore"):
        parsed = parse_score(raw.get(key))
        if parsed is None:
            warnings.append(f"matches[{index}].{key}: unparsable value {raw.get(key)!r}, defaulted to 0")
            parsed = 0
        scores[key] = parsed

    return MatchRecord(
        homeTeam=normalize_team(first_present(raw, HOME_TEAM_KEYS)),
        awayTeam=normalize_team(first_present(raw, AWAY_TEAM_KEYS)),
        **scores,
    )


def batch_id(league: str, season: Any, tournament: Any, week: Any) -> str:
    """Derived primary key: ``{league}-{season}-{tournament}-{week}``."""
    return KEY_DELIMITER.join([normalize_league(league), str(season), str(tournament), str(week)])


def delimiter_warnings(season: str, tournament: str, week: str) -> list[str]:
    """Key parts containing the delimiter can derive the same id as a different tuple."""
    return [
        f"{name} {value!r} contains '{KEY_DELIMITER}'; the batch id may collide with "
        "another season/tournament/week"
        for name, value in (("season", season), ("tournament", tournament), ("week", week))
        if KEY_DELIMITER in value
    ]


def validate_batch_payload(payload: Any) -> NormalizationResult:
    """Turn a raw ingestion payload into a MatchBatch, or a validation error.

    Never raises for bad input; the caller decides how to surface the error.
    """
    if not isinstance(payload, dict):
        return NormalizationResult(
            error=BatchValidationError("missing_matches", "Batch payload must be a JSON object.")
        )

    league = normalize_league(payload.get("league"))
    if not league:
        return NormalizationResult(
            error=BatchValidationError("missing_league", "League parameter is required.", "league")
        )

    raw_matches = first_present(payload, MATCH_LIST_KEYS)
    if not isinstance(raw_matches, list) or not raw_matches:
        return NormalizationResult(
            error=BatchValidationError("missing_matches", "No match data provided.", "matches")
        )

    keys = {
        "season": normalize_key_part(first_present(payload, ("season",))),
        "tournament": normalize_key_part(first_present(payload, TOURNAMENT_KEYS)),
        "week": normalize_key_part(first_present(payload, ("week",))),
    }
    for name, value in keys.items():
        if value is None:
            return NormalizationResult(
                error=BatchValidationError("missing_field", f"Field '{name}' is required.", name)
            )
    season, tournament, week = keys.values()

    warnings = delimiter_warnings(season, tournament, week)
    matches = [normalize_match(m, i, warnings) for i, m in enumerate(raw_matches)]

    batch_key = batch_id(league, season, tournament, week)
    for warning in warnings:
        logger.warning("Batch %s: %s", batch_key, warning)

    batch = MatchBatch(
        _id=batch_key,
        league=league,
        season=season,
        trn=tournament,
        week=week,
        matches=matches,
        lastUpdated=utcnow(),
    )
    return NormalizationResult(batch=batch, warnings=warnings)


def normalize_batch(payload: Any) -> NormalizationResult:
    """Like validate_batch_payload, but raises BatchValidationError on rejection."""
    result = validate_batch_payload(payload)
    if result.error is not None:
        raise result.error
    return result
