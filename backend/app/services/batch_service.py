"""
backend/app/services/batch_service.py

Purpose:
    Ingestion and query orchestration over the batch store and the pattern
    fingerprint engine. Validation always happens before the store is touched.

Dependencies:
    - app.services.batch_normalizer
    - app.services.batch_store
    - app.services.pattern_fingerprint
"""

from __future__ import annotations

import logging
from typing import Any

from app.errors import BatchNotFound, BatchValidationError
from app.models.match_batch import BatchDetailResponse, IngestResult, MatchBatch, MatchupRecord
from app.services.batch_normalizer import batch_id, normalize_batch, normalize_key_part, normalize_league
from app.services.batch_store import MatchBatchStore
from app.services.pattern_fingerprint import scan_for_patterns

logger = logging.getLogger("matchbatch.batch_service")


def _require_league(league: str | None) -> str:
    clean = normalize_league(league)
    if not clean:
        raise BatchValidationError("missing_league", "League parameter is required.", "league")
    return clean


def _clean_keys(*parts: Any) -> tuple[str | None, ...]:
    """Strip season/tournament/week the same way ingestion does; blank means no filter."""
    return tuple(normalize_key_part(part) for part in parts)


async def ingest_batch(store: MatchBatchStore, payload: Any) -> IngestResult:
    result = normalize_batch(payload)
    batch = result.batch
    outcome = await store.upsert_batch(batch)
    return IngestResult(
        id=batch.id,
        action="created" if outcome["created"] else "updated",
        matchCount=len(batch.matches),
        warnings=result.warnings,
    )


async def get_batch_with_alerts(
    store: MatchBatchStore,
    league: str,
    season: str,
    tournament: str,
    week: str,
) -> BatchDetailResponse:
    """Load one fully specified batch and classify the rest of the league against it."""
    league = _require_league(league)
    season, tournament, week = _clean_keys(season, tournament, week)
    batch = await store.find_batch(league, season, tournament, week)
    if batch is None:
        raise BatchNotFound(batch_id(league, season, tournament, week))

    candidates = await store.list_candidates(league, exclude_id=batch.id)
    alerts = scan_for_patterns(batch.id, batch.matches, candidates)
    if alerts:
        logger.info(
            "Batch %s: %d pattern alert(s) across %d candidates",
            batch.id, len(alerts), len(candidates),
        )
    return BatchDetailResponse(batch=batch, matches=batch.matches, alerts=alerts)


async def list_batches(
    store: MatchBatchStore,
    league: str,
    *,
    season: str | None = None,
    tournament: str | None = None,
    week: str | None = None,
) -> list[MatchBatch]:
    league = _require_league(league)
    season, tournament, week = _clean_keys(season, tournament, week)
    return await store.query_batches(league, season=season, tournament=tournament, week=week)


async def matchup_history(
    store: MatchBatchStore, league: str, home_team: str, away_team: str,
) -> list[MatchupRecord]:
    league = _require_league(league)
    return await store.find_matchup_history(league, home_team, away_team)
