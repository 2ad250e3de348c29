"""
backend/app/services/batch_store.py

Purpose:
    Persistence access layer for match batches. One collection per league,
    one document per (league, season, trn, week) keyed by the derived id.
    Writes are full-document upserts (last writer wins); reads are sorted
    most recent first using numeric string ordering.

Dependencies:
    - app.database
    - app.config
    - pymongo
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from pymongo import ASCENDING, DESCENDING
from pymongo.collation import Collation
from pymongo.errors import ConnectionFailure

from app.config import settings
from app.database import MongoConnectionPool
from app.errors import StorageUnavailable
from app.models.match_batch import MatchBatch, MatchupRecord
from app.services.batch_normalizer import batch_id, normalize_league, normalize_team

logger = logging.getLogger("matchbatch.store")

# "10" must sort above "9" for season/trn/week strings.
NUMERIC_COLLATION = Collation(locale="en", numericOrdering=True)
RECENT_FIRST = [("season", DESCENDING), ("trn", DESCENDING), ("week", DESCENDING)]


def collection_key(league: str | None) -> str:
    """Partition (collection) name for a league. Pure and total."""
    clean = normalize_league(league)
    if not clean:
        return settings.DEFAULT_PARTITION
    return f"{clean}{settings.PARTITION_SUFFIX}"


def _batch_filter(season: str | None, tournament: str | None, week: str | None) -> dict[str, str]:
    query: dict[str, str] = {}
    if season:
        query["season"] = str(season)
    if tournament:
        query["trn"] = str(tournament)
    if week:
        query["week"] = str(week)
    return query


class MatchBatchStore:
    def __init__(self, pool: MongoConnectionPool):
        self._pool = pool

    @asynccontextmanager
    async def _guard(self, operation: str):
        try:
            yield
        except ConnectionFailure as exc:
            self._pool.mark_stale()
            logger.error("MongoDB unavailable during %s: %s", operation, exc)
            raise StorageUnavailable(f"{operation} failed: {exc}") from exc

    async def _collection(self, league: str | None):
        db = await self._pool.database()
        return db[collection_key(league)]

    async def upsert_batch(self, batch: MatchBatch) -> dict[str, bool]:
        """Replace the stored document for batch.id, creating it if absent."""
        async with self._guard("upsert_batch"):
            collection = await self._collection(batch.league)
            result = await collection.replace_one(
                {"_id": batch.id},
                batch.to_document(),
                upsert=True,
            )
            created = result.upserted_id is not None
            if created:
                await self._ensure_indexes(collection)
        logger.info(
            "Batch %s %s (%d matches)",
            batch.id, "created" if created else "updated", len(batch.matches),
        )
        return {"created": created}

    async def query_batches(
        self,
        league: str,
        *,
        season: str | None = None,
        tournament: str | None = None,
        week: str | None = None,
    ) -> list[MatchBatch]:
        query = _batch_filter(season, tournament, week)
        limit = None if query else settings.UNFILTERED_QUERY_LIMIT
        async with self._guard("query_batches"):
            collection = await self._collection(league)
            cursor = collection.find(query, collation=NUMERIC_COLLATION).sort(RECENT_FIRST)
            if limit:
                cursor = cursor.limit(limit)
            docs = await cursor.to_list(length=limit)
        return [MatchBatch.model_validate(doc) for doc in docs]

    async def find_batch(
        self, league: str, season: str, tournament: str, week: str,
    ) -> MatchBatch | None:
        async with self._guard("find_batch"):
            collection = await self._collection(league)
            doc = await collection.find_one({"_id": batch_id(league, season, tournament, week)})
        return MatchBatch.model_validate(doc) if doc else None

    async def list_candidates(self, league: str, exclude_id: str) -> list[MatchBatch]:
        """Every other batch of the league, most recent first."""
        async with self._guard("list_candidates"):
            collection = await self._collection(league)
            cursor = collection.find({}, collation=NUMERIC_COLLATION).sort(RECENT_FIRST)
            docs = await cursor.to_list(length=None)
        # Excluded by exact id here: numeric collation treats "01" and "1" as equal.
        return [MatchBatch.model_validate(doc) for doc in docs if doc.get("_id") != exclude_id]

    async def find_matchup_history(
        self, league: str, home_team: str, away_team: str,
    ) -> list[MatchupRecord]:
        home = normalize_team(home_team)
        away = normalize_team(away_team)
        limit = settings.MATCHUP_HISTORY_LIMIT
        async with self._guard("find_matchup_history"):
            collection = await self._collection(league)
            cursor = collection.find(
                {"matches": {"$elemMatch": {"homeTeam": home, "awayTeam": away}}},
                {"season": 1, "trn": 1, "week": 1, "lastUpdated": 1, "matches": 1},
                collation=NUMERIC_COLLATION,
            ).sort(RECENT_FIRST).limit(limit)
            docs = await cursor.to_list(length=limit)

        history: list[MatchupRecord] = []
        for doc in docs:
            for match in doc.get("matches") or []:
                if match.get("homeTeam") != home or match.get("awayTeam") != away:
                    continue
                history.append(MatchupRecord(
                    homeTeam=match["homeTeam"],
                    awayTeam=match["awayTeam"],
                    homeScore=match.get("homeScore", 0),
                    awayScore=match.get("awayScore", 0),
                    season=str(doc.get("season", "")),
                    trn=str(doc.get("trn", "")),
                    week=str(doc.get("week", "")),
                    lastUpdated=doc.get("lastUpdated"),
                ))
        return history

    async def _ensure_indexes(self, collection: Any) -> None:
        await collection.create_index(
            [("season", DESCENDING), ("trn", DESCENDING), ("week", DESCENDING)],
            name="recent_first",
            collation=NUMERIC_COLLATION,
        )
        await collection.create_index(
            [("matches.homeTeam", ASCENDING), ("matches.awayTeam", ASCENDING)],
            name="matchup_lookup",
        )
