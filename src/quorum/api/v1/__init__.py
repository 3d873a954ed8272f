# src/quorum/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    answers_router,
    attachments_router,
    collections_router,
    posts_router,
    stats_router,
    tags_router,
)

__all__ = [
    "answers_router",
    "attachments_router",
    "collections_router",
    "posts_router",
    "stats_router",
    "tags_router",
]
