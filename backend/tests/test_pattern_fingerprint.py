"""
backend/tests/test_pattern_fingerprint.py

Purpose:
    Unit tests for fingerprint construction and first-match-wins pattern
    classification between match batches.
"""

from __future__ import annotations

import itertools
import sys

import pytest

sys.path.insert(0, "backend")

from app.models.match_batch import MatchBatch, MatchRecord, PatternKind
from app.services.pattern_fingerprint import (
    EMPTY_FINGERPRINTS,
    classify,
    compute_fingerprints,
    scan_for_patterns,
)


def _m(home: str, away: str, hs: int, as_: int) -> MatchRecord:
    return MatchRecord(homeTeam=home, awayTeam=away, homeScore=hs, awayScore=as_)


def _batch(batch_id: str, matches: list[MatchRecord], week: str = "1") -> MatchBatch:
    return MatchBatch(
        _id=batch_id, league="english", season="2024", trn="1", week=week, matches=matches,
    )


WEEK = [
    _m("ARSENAL", "CHELSEA", 2, 1),
    _m("LIVERPOOL", "EVERTON", 0, 0),
    _m("FULHAM", "BRENTFORD", 1, 3),
]


def _classify(a: list, b: list) -> PatternKind | None:
    return classify(compute_fingerprints(a), compute_fingerprints(b))


def test_fingerprint_strings_use_lowercase_names_and_pipe_separator():
    fp = compute_fingerprints([_m(" Arsenal ", "CHELSEA", 2, 1), _m("b", "A", 0, 0)])

    assert fp.exact == "arsenal:2-1:chelsea|b:0-0:a"
    assert fp.scrambled == "arsenal:2-1:chelsea|b:0-0:a"
    assert fp.outcome == "2-1|0-0"
    assert fp.pairing_seq == "arsenal v chelsea|b v a"
    assert fp.pairing_scrambled == "a v b|arsenal v chelsea"
    assert fp.match_count == 2


def test_fingerprints_accept_raw_documents():
    raw = [{"homeTeam": "ARSENAL", "awayTeam": "CHELSEA", "homeScore": 2, "awayScore": 1}]
    assert compute_fingerprints(raw) == compute_fingerprints([_m("ARSENAL", "CHELSEA", 2, 1)])


def test_raw_documents_with_unusable_scores_count_as_zero():
    raw = [{"homeTeam": "ARSENAL", "awayTeam": "CHELSEA", "homeScore": "x", "awayScore": -1}]
    assert compute_fingerprints(raw) == compute_fingerprints([_m("ARSENAL", "CHELSEA", 0, 0)])


def test_fingerprints_are_deterministic():
    assert compute_fingerprints(WEEK) == compute_fingerprints(list(WEEK))


def test_empty_match_list_yields_sentinel_that_never_matches():
    assert compute_fingerprints([]) is EMPTY_FINGERPRINTS
    assert _classify([], WEEK) is None
    assert _classify(WEEK, []) is None
    assert _classify([], []) is None


def test_identical_content_is_exact_sequence_match():
    assert _classify(WEEK, list(WEEK)) == PatternKind.exact_sequence


@pytest.mark.parametrize("perm", [p for p in itertools.permutations(range(3)) if p != (0, 1, 2)])
def test_any_reordering_is_rearranged_sequence(perm):
    reordered = [WEEK[i] for i in perm]
    a, b = compute_fingerprints(WEEK), compute_fingerprints(reordered)

    assert a.scrambled == b.scrambled
    assert a.exact != b.exact
    assert classify(a, b) == PatternKind.rearranged_sequence


def test_single_match_reorder_is_trivially_exact():
    single = [_m("A", "B", 1, 0)]
    assert _classify(single, list(single)) == PatternKind.exact_sequence


def test_side_swap_with_scores_attached_is_team_pattern():
    swapped = [_m(m.awayTeam, m.homeTeam, m.awayScore, m.homeScore) for m in WEEK]
    a, b = compute_fingerprints(WEEK), compute_fingerprints(swapped)

    assert a.pairing_seq != b.pairing_seq
    assert a.pairing_scrambled == b.pairing_scrambled
    assert classify(a, b) == PatternKind.team_pattern


def test_swapped_sides_same_scoreline_is_team_pattern_not_score_pattern():
    result = _classify([_m("A", "B", 2, 1)], [_m("B", "A", 2, 1)])
    assert result == PatternKind.team_pattern


def test_same_pairings_different_scores_in_order_is_team_pattern():
    rescored = [_m(m.homeTeam, m.awayTeam, m.homeScore + 1, m.awayScore) for m in WEEK]
    # pairing_scrambled is checked before pairing_seq, so it wins.
    assert _classify(WEEK, rescored) == PatternKind.team_pattern


def test_identical_fixture_list_is_unreachable_behind_team_pattern():
    # Same pairings in the same order always share pairing_scrambled too.
    rescored = [_m(m.homeTeam, m.awayTeam, 9, 9) for m in WEEK]
    a, b = compute_fingerprints(WEEK), compute_fingerprints(rescored)
    assert a.pairing_seq == b.pairing_seq
    assert classify(a, b) != PatternKind.identical_fixture_list


def test_same_scores_unrelated_teams_is_score_pattern():
    other = [_m(f"X{i}", f"Y{i}", m.homeScore, m.awayScore) for i, m in enumerate(WEEK)]
    assert _classify(WEEK, other) == PatternKind.score_pattern


def test_unrelated_batches_do_not_alert():
    other = [_m("X", "Y", 4, 4), _m("Z", "W", 5, 0), _m("Q", "R", 0, 7)]
    assert _classify(WEEK, other) is None


def test_scan_skips_current_batch_and_keeps_candidate_order():
    current = _batch("english-2024-1-5", WEEK, week="5")
    candidates = [
        current,
        _batch("english-2024-1-4", list(reversed(WEEK)), week="4"),
        _batch("english-2024-1-3", [_m("X", "Y", 4, 4)], week="3"),
        _batch("english-2024-1-2", list(WEEK), week="2"),
    ]

    alerts = scan_for_patterns(current.id, current.matches, candidates)

    assert [(a.batchId, a.type) for a in alerts] == [
        ("english-2024-1-4", PatternKind.rearranged_sequence),
        ("english-2024-1-2", PatternKind.exact_sequence),
    ]
    assert alerts[1].label == "Exact Sequence Match"
    assert alerts[1].week == "2"
    assert alerts[1].trn == "1"


def test_scan_does_not_mutate_inputs():
    matches = list(WEEK)
    candidates = [_batch("c", list(reversed(WEEK)))]
    before = [c.model_dump() for c in candidates]

    scan_for_patterns("x", matches, candidates)

    assert matches == WEEK
    assert [c.model_dump() for c in candidates] == before


def test_scan_with_empty_current_batch_returns_no_alerts():
    assert scan_for_patterns("x", [], [_batch("c", WEEK)]) == []
