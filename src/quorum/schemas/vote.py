# src/quorum/schemas/vote.py
"""Vote-related Pydantic schemas."""

from pydantic import BaseModel, Field


class VoteCreate(BaseModel):
    """Schema for casting a vote: 1 for up, -1 for down."""

    score: int = Field(..., ge=-1, le=1, description="1 or -1")


class VoteResult(BaseModel):
    changed: bool
    score: int
