"""
backend/app/routers/batches.py

Purpose:
    HTTP surface for match batches: ingest (POST) and a single read endpoint
    that switches between list, matchup-history and single-batch-with-alerts
    modes depending on which query parameters are present.

Dependencies:
    - app.services.batch_service
    - app.services.batch_store
    - app.database
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query

from app.database import MongoConnectionPool, get_pool
from app.models.match_batch import IngestResult
from app.services import batch_service
from app.services.batch_normalizer import normalize_key_part
from app.services.batch_store import MatchBatchStore

logger = logging.getLogger("matchbatch.batches")
router = APIRouter(prefix="/api/batches", tags=["batches"])


def get_store(pool: MongoConnectionPool = Depends(get_pool)) -> MatchBatchStore:
    return MatchBatchStore(pool)


@router.post("", response_model=IngestResult)
async def ingest_batch(
    payload: Any = Body(...),
    store: MatchBatchStore = Depends(get_store),
):
    """Create or fully replace the batch for league/season/trn/week."""
    return await batch_service.ingest_batch(store, payload)


@router.get("")
async def read_batches(
    league: Optional[str] = Query(None),
    season: Optional[str] = Query(None),
    trn: Optional[str] = Query(None),
    tournament: Optional[str] = Query(None, description="Alias of trn"),
    week: Optional[str] = Query(None),
    home_team: Optional[str] = Query(None, alias="homeTeam"),
    away_team: Optional[str] = Query(None, alias="awayTeam"),
    store: MatchBatchStore = Depends(get_store),
):
    """Read batches of one league.

    - homeTeam + awayTeam: matchup history across the whole league.
    - season + trn + week: that batch, its matches and pattern alerts.
    - otherwise: filtered list, most recent first.
    """
    season, trn, week = (normalize_key_part(v) for v in (season, trn or tournament, week))
    if home_team and away_team:
        return await batch_service.matchup_history(store, league, home_team, away_team)
    if season and trn and week:
        return await batch_service.get_batch_with_alerts(store, league, season, trn, week)
    return await batch_service.list_batches(
        store, league, season=season, tournament=trn, week=week,
    )
