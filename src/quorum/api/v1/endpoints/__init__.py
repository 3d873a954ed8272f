# src/quorum/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .answers import router as answers_router
from .attachments import router as attachments_router
from .collections import router as collections_router
from .posts import router as posts_router
from .stats import router as stats_router
from .tags import router as tags_router

__all__ = [
    "answers_router",
    "attachments_router",
    "collections_router",
    "posts_router",
    "stats_router",
    "tags_router",
]
