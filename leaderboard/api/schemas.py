"""Request and response bodies for the HTTP API."""

from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, Field, StrictInt, StrictStr


class ScoreSubmission(BaseModel):
    """Body of ``POST /scores``."""

    name: StrictStr = Field(..., description="Display name; may repeat across entries")
    score: StrictInt = Field(..., description="Signed integer score")


class RankedEntryResponse(BaseModel):
    """One row of ``GET /scores``."""

    name: str
    score: int
    rank: int = Field(..., description="Dense rank (1-based); ties share a rank")


class StatusResponse(BaseModel):
    status: str


class HealthResponse(BaseModel):
    """Body of ``GET /health``; returned with 503 when the store is unreachable."""

    status: str = Field(..., description='"ok" or "unavailable"')
    version: str
    pool: Dict[str, int] = Field(
        ..., description="pool_size, checked_out, checked_in, overflow"
    )
    log_records_dropped: int = Field(
        ..., description="Log records discarded because the log queue was full"
    )
