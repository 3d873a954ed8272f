# src/quorum/schemas/post.py
"""Post-related Pydantic schemas."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator

from quorum.models import Post
from quorum.models.post import POST_TYPE_LINK

from .answer import AnswerResponse
from .comment import CommentResponse


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    title: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1, description="Markdown content")
    type: str = Field("question", pattern="^(question|article|link)$")
    tags: list[str] | None = None
    entities: list[str] | None = None
    images: list[int] | None = Field(None, description="Attachment ids to bind")
    anonymous: bool = False
    url: str | None = None
    header_image: str | None = None

    @model_validator(mode="after")
    def _require_url_for_links(self) -> PostCreate:
        if self.type == POST_TYPE_LINK and not self.url:
            raise ValueError("Link posts require a url")
        return self


class PostUpdate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1)
    tags: list[str] | None = None
    entities: list[str] | None = None
    images: list[int] | None = None
    url: str | None = None
    header_image: str | None = None


class PostListParams(BaseModel):
    """Query parameters accepted when listing posts."""

    type: str | None = None
    limit: int = Field(20, ge=1, le=100)
    offset: int = Field(0, ge=0)
    author: list[str] | None = None
    order_by: str | None = None
    order: str = Field("desc", pattern="^(asc|desc)$")
    no_correct_answer: bool = False
    no_answers: bool = False
    no_votes: bool = False
    favorite: bool = False
    tags: list[str] | None = None
    tags_relation: str = Field("and", pattern="^(and|or)$")
    entity: str | None = None
    include_answers: bool = False
    include_votes: bool = False
    include_entities: bool = True
    include_trend: bool = False
    random: bool = False
    search_query: str | None = None
    from_date: date | None = None
    to_date: date | None = None
    collection_id: int | None = None


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: int
    type: str
    author: str
    title: str
    content: str
    url: str | None = None
    header_image: str | None = None
    anonymous: bool
    created: datetime
    updated: datetime | None = None
    updated_by: str | None = None
    score: int
    views: int
    trend: float
    tags: list[str] = Field(default_factory=list)
    entities: list[str] = Field(default_factory=list)
    answers_count: int = 0
    correct_answer_id: int | None = None
    favorite: bool = False
    favorites_count: int = 0
    own_vote: int | None = None
    comments: list[CommentResponse] = Field(default_factory=list)
    answers: list[AnswerResponse] | None = None

    @classmethod
    def from_post(
        cls,
        post: Post,
        viewer: str | None,
        *,
        include_answers: bool = False,
    ) -> PostResponse:
        """Render ``post`` as ``viewer`` may see it, anonymizing the author."""
        favorited_by = post.favorited_by
        own_vote = None
        if viewer is not None:
            own_vote = next((v.score for v in post.votes if v.user_ref == viewer), None)
        answers = None
        if include_answers:
            answers = [AnswerResponse.from_answer(a, viewer) for a in post.answers]
        return cls(
            id=post.id,
            type=post.type,
            author=post.display_author(viewer),
            title=post.title,
            content=post.content,
            url=post.url,
            header_image=post.header_image,
            anonymous=post.anonymous,
            created=post.created,
            updated=post.updated,
            updated_by=post.display_updated_by(viewer),
            score=post.score,
            views=post.views,
            trend=post.trend,
            tags=post.tag_names,
            entities=post.entity_refs,
            answers_count=post.answers_count,
            correct_answer_id=post.correct_answer_id,
            favorite=viewer in favorited_by,
            favorites_count=len(favorited_by),
            own_vote=own_vote,
            comments=[CommentResponse.model_validate(c) for c in post.comments],
            answers=answers,
        )


class PostsResponse(BaseModel):
    posts: list[PostResponse]
    total: int
