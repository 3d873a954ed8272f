"""Query options and result containers for the content store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from quorum.models import Answer, Collection, Post

ORDER_ASC = "asc"
ORDER_DESC = "desc"


@dataclass
class PostOptions:
    """Filters, ordering and loading flags for listing posts."""

    type: str | None = None
    limit: int | None = None
    offset: int | None = None
    author: str | list[str] | None = None
    order_by: str | None = None
    order: str = ORDER_DESC
    no_correct_answer: bool = False
    no_answers: bool = False
    no_votes: bool = False
    favorite: bool = False
    tags: list[str] | None = None
    # "and" requires every tag, "or" any of them.
    tags_relation: str = "and"
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


@dataclass
class AnswersOptions:
    """Filters and ordering for listing answers."""

    limit: int | None = None
    offset: int | None = None
    author: str | None = None
    post_id: int | None = None
    no_correct_answer: bool = False
    no_votes: bool = False
    order_by: str | None = None
    order: str = ORDER_DESC
    tags: list[str] | None = None
    entity: str | None = None
    search_query: str | None = None
    from_date: date | None = None
    to_date: date | None = None


@dataclass
class CollectionOptions:
    limit: int | None = None
    offset: int | None = None
    owner: str | None = None
    search_query: str | None = None
    order_by: str | None = None
    order: str = ORDER_DESC


@dataclass
class StatisticsOptions:
    limit: int | None = 10
    # Only count content created in the last ``period_days`` days.
    period_days: int | None = None


@dataclass
class Posts:
    posts: list[Post]
    total: int


@dataclass
class Answers:
    answers: list[Answer]
    total: int


@dataclass
class Collections:
    collections: list[Collection]
    total: int


@dataclass(frozen=True)
class Statistic:
    """One ranked row of a statistics query."""

    total: int
    id: int | None = None
    author: str | None = None
    position: int | None = None


@dataclass(frozen=True)
class TagResponse:
    id: int
    tag: str
    description: str | None
    posts_count: int
    follower_count: int


@dataclass(frozen=True)
class EntityResponse:
    id: int
    entity_ref: str
    posts_count: int
    follower_count: int


@dataclass(frozen=True)
class UserResponse:
    """Per-user activity totals."""

    user_ref: str
    total_views: int = 0
    total_questions: int = 0
    total_answers: int = 0
    total_comments: int = 0
    total_votes: int = 0
    total_articles: int = 0


@dataclass(frozen=True)
class AttachmentParameters:
    uuid: str
    location_type: str
    location_uri: str
    extension: str
    mime_type: str
    path: str | None = None
    binary_image: bytes | None = None
    creator: str | None = None

