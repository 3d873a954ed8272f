# src/quorum/schemas/answer.py
"""Answer-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from quorum.models import Answer

from .comment import CommentResponse


class AnswerCreate(BaseModel):
    """Schema for answering a question."""

    content: str = Field(..., min_length=1, description="Markdown content")
    images: list[int] | None = Field(None, description="Attachment ids to bind")
    anonymous: bool = False


class AnswerUpdate(BaseModel):
    content: str = Field(..., min_length=1, description="Markdown content")
    images: list[int] | None = None


class AnswerResponse(BaseModel):
    """Schema for answer information returned by the API."""

    id: int
    post_id: int
    author: str
    content: str
    anonymous: bool
    created: datetime
    updated: datetime | None = None
    updated_by: str | None = None
    score: int
    correct: bool
    comments: list[CommentResponse] = Field(default_factory=list)
    own_vote: int | None = None

    @classmethod
    def from_answer(cls, answer: Answer, viewer: str | None) -> AnswerResponse:
        """Render ``answer`` as ``viewer`` may see it."""
        own_vote = None
        if viewer is not None:
            own_vote = next((v.score for v in answer.votes if v.user_ref == viewer), None)
        return cls(
            id=answer.id,
            post_id=answer.post_id,
            author=answer.display_author(viewer),
            content=answer.content,
            anonymous=answer.anonymous,
            created=answer.created,
            updated=answer.updated,
            updated_by=answer.display_updated_by(viewer),
            score=answer.score,
            correct=answer.correct,
            comments=[CommentResponse.model_validate(c) for c in answer.comments],
            own_vote=own_vote,
        )


class AnswersResponse(BaseModel):
    answers: list[AnswerResponse]
    total: int
