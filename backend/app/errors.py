"""
backend/app/errors.py

Purpose:
    Error taxonomy shared by the batch normalizer, store and service layers.
    Each class maps to exactly one HTTP outcome in app.main.

Dependencies:
    - typing
"""

from typing import Literal

ValidationCode = Literal["missing_league", "missing_field", "missing_matches"]


class MatchBatchError(Exception):
    """Base class for all match batch errors."""


class BatchValidationError(MatchBatchError):
    """Rejected payload or query. Client error, never retried."""

    def __init__(self, code: ValidationCode, message: str, field: str | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        out = {"code": self.code, "message": self.message}
        if self.field:
            out["field"] = self.field
        return out


class StorageUnavailable(MatchBatchError):
    """MongoDB could not be reached in time. The whole request may be retried."""


class BatchNotFound(MatchBatchError):
    """A fully specified season/tournament/week query matched no batch."""

    def __init__(self, batch_id: str):
        super().__init__(f"No batch stored under {batch_id}")
        self.batch_id = batch_id
