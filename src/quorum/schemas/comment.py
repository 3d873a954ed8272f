# src/quorum/schemas/comment.py
"""Comment-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000, description="Markdown content")


class CommentResponse(BaseModel):
    """Schema for comment information returned by the API."""

    id: int
    post_id: int | None = None
    answer_id: int | None = None
    author: str
    content: str
    created: datetime

    model_config = ConfigDict(from_attributes=True)
