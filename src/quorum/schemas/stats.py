# src/quorum/schemas/stats.py
"""Statistics Pydantic schemas."""

from datetime import date

from pydantic import BaseModel, ConfigDict


class StatisticResponse(BaseModel):
    author: str | None = None
    total: int
    position: int | None = None

    model_config = ConfigDict(from_attributes=True)


class UserStatsResponse(BaseModel):
    """Per-user activity totals."""

    user_ref: str
    total_views: int
    total_questions: int
    total_answers: int
    total_comments: int
    total_votes: int
    total_articles: int

    model_config = ConfigDict(from_attributes=True)


class GlobalStatResponse(BaseModel):
    date: date
    total_users: int
    total_questions: int
    total_articles: int
    total_links: int
    total_answers: int
    total_comments: int
    total_votes: int
    total_views: int
    total_tags: int

    model_config = ConfigDict(from_attributes=True)


class UserStatResponse(BaseModel):
    user_ref: str
    date: date
    total_views: int
    total_questions: int
    total_articles: int
    total_answers: int
    total_comments: int
    total_votes: int

    model_config = ConfigDict(from_attributes=True)
