"""
backend/app/models/match_batch.py

Purpose:
    Pydantic models for stored match batches, matchup history rows, pattern
    alerts and ingest results. Field aliases mirror the stored Mongo document
    shape (`_id`, `trn`, `lastUpdated`) so existing documents load unchanged.

Dependencies:
    - pydantic
    - app.utils
"""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from app.utils import as_utc, parse_score

UNKNOWN_TEAM = "UNKNOWN"


class MatchRecord(BaseModel):
    """One normalized result inside a batch."""
    homeTeam: str
    awayTeam: str
    homeScore: int = Field(0, ge=0)
    awayScore: int = Field(0, ge=0)

    # Older documents can hold negative or non-numeric scores; read them as 0.
    @field_validator("homeScore", "awayScore", mode="before")
    @classmethod
    def _clamp_score(cls, value):
        return parse_score(value) or 0


class MatchBatch(BaseModel):
    """Batch document as stored in a league partition."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    league: str
    season: str
    tournament: str = Field(..., alias="trn")
    week: str
    matches: list[MatchRecord] = []
    updated_at: Optional[datetime] = Field(None, alias="lastUpdated")

    @field_serializer("updated_at")
    def _serialize_updated_at(self, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class MatchupRecord(BaseModel):
    homeTeam: str
    awayTeam: str
    homeScore: int
    awayScore: int
    season: str
    trn: str
    week: str
    lastUpdated: Optional[datetime] = None

    @field_validator("homeScore", "awayScore", mode="before")
    @classmethod
    def _clamp_score(cls, value):
        return parse_score(value) or 0

    @field_serializer("lastUpdated")
    def _serialize_last_updated(self, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class PatternKind(str, Enum):
    exact_sequence = "exact_sequence"
    rearranged_sequence = "rearranged_sequence"
    team_pattern = "team_pattern"
    identical_fixture_list = "identical_fixture_list"
    score_pattern = "score_pattern"

    @property
    def label(self) -> str:
        return PATTERN_LABELS[self]


PATTERN_LABELS: dict[PatternKind, str] = {
    PatternKind.exact_sequence: "Exact Sequence Match",
    PatternKind.rearranged_sequence: "Rearranged Sequence",
    PatternKind.team_pattern: "Team Pattern Match",
    PatternKind.identical_fixture_list: "Identical Fixture List",
    PatternKind.score_pattern: "Score Pattern Match",
}


class PatternAlert(BaseModel):
    type: PatternKind
    label: str
    batchId: str
    season: str
    trn: str
    week: str


class BatchDetailResponse(BaseModel):
    batch: MatchBatch
    matches: list[MatchRecord]
    alerts: list[PatternAlert]


class IngestResult(BaseModel):
    success: bool = True
    id: str
    action: Literal["created", "updated"]
    matchCount: int
    warnings: list[str] = []
