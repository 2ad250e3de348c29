"""
backend/app/services/pattern_fingerprint.py

Purpose:
    Duplicate/pattern detection between match batches. Each match list is
    reduced to five canonical fingerprints; a candidate batch is classified
    against the current one by the strongest fingerprint they share.

    Precedence (first hit wins, one alert per candidate):
        exact             -> Exact Sequence Match
        scrambled         -> Rearranged Sequence
        pairing_scrambled -> Team Pattern Match
        pairing_seq       -> Identical Fixture List
        outcome           -> Score Pattern Match

    Pure functions only: no I/O, no shared state, inputs are never mutated.

Dependencies:
    - app.models.match_batch
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence, Union

from app.models.match_batch import MatchBatch, MatchRecord, PatternAlert, PatternKind
from app.utils import parse_score

MatchLike = Union[MatchRecord, Mapping]

SEPARATOR = "|"


@dataclass(frozen=True)
class Fingerprints:
    exact: str = ""
    scrambled: str = ""
    outcome: str = ""
    pairing_seq: str = ""
    pairing_scrambled: str = ""
    match_count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.match_count == 0


EMPTY_FINGERPRINTS = Fingerprints()

# Strongest first.
_PRECEDENCE: tuple[tuple[str, PatternKind], ...] = (
    ("exact", PatternKind.exact_sequence),
    ("scrambled", PatternKind.rearranged_sequence),
    ("pairing_scrambled", PatternKind.team_pattern),
    ("pairing_seq", PatternKind.identical_fixture_list),
    ("outcome", PatternKind.score_pattern),
)


def _team_key(name) -> str:
    return str(name or "").strip().lower()


def _fields(match: MatchLike) -> tuple[str, str, int, int]:
    if isinstance(match, MatchRecord):
        return (
            _team_key(match.homeTeam),
            _team_key(match.awayTeam),
            match.homeScore,
            match.awayScore,
        )
    return (
        _team_key(match.get("homeTeam")),
        _team_key(match.get("awayTeam")),
        parse_score(match.get("homeScore")) or 0,
        parse_score(match.get("awayScore")) or 0,
    )


def compute_fingerprints(matches: Sequence[MatchLike]) -> Fingerprints:
    """Build the fingerprint set for a match list (order as given)."""
    if not matches:
        return EMPTY_FINGERPRINTS

    exact_tokens: list[str] = []
    outcome_tokens: list[str] = []
    pairing_tokens: list[str] = []
    unordered_pairs: list[str] = []
    for match in matches:
        home, away, home_score, away_score = _fields(match)
        score = f"{home_score}-{away_score}"
        exact_tokens.append(f"{home}:{score}:{away}")
        outcome_tokens.append(score)
        pairing_tokens.append(f"{home} v {away}")
        unordered_pairs.append(" v ".join(sorted((home, away))))

    return Fingerprints(
        exact=SEPARATOR.join(exact_tokens),
        scrambled=SEPARATOR.join(sorted(exact_tokens)),
        outcome=SEPARATOR.join(outcome_tokens),
        pairing_seq=SEPARATOR.join(pairing_tokens),
        pairing_scrambled=SEPARATOR.join(sorted(unordered_pairs)),
        match_count=len(matches),
    )


def classify(current: Fingerprints, candidate: Fingerprints) -> PatternKind | None:
    """Return the strongest shared pattern, or None.

    An empty fingerprint set never matches anything, including another
    empty set.
    """
    if current.is_empty or candidate.is_empty:
        return None
    for attr, kind in _PRECEDENCE:
        if getattr(current, attr) == getattr(candidate, attr):
            return kind
    return None


def build_alert(kind: PatternKind, candidate: MatchBatch) -> PatternAlert:
    return PatternAlert(
        type=kind,
        label=kind.label,
        batchId=candidate.id,
        season=candidate.season,
        trn=candidate.tournament,
        week=candidate.week,
    )


def scan_for_patterns(
    current_id: str,
    current_matches: Sequence[MatchLike],
    candidates: Iterable[MatchBatch],
) -> list[PatternAlert]:
    """Classify every candidate against the current batch.

    Alerts keep the candidates' order. The current batch itself (same id) is
    skipped if it appears among the candidates.
    """
    current = compute_fingerprints(current_matches)
    if current.is_empty:
        return []

    alerts: list[PatternAlert] = []
    for candidate in candidates:
        if candidate.id == current_id:
            continue
        kind = classify(current, compute_fingerprints(candidate.matches))
        if kind is not None:
            alerts.append(build_alert(kind, candidate))
    return alerts
