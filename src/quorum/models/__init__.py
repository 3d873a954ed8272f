# src/quorum/models/__init__.py
"""SQLAlchemy models for the Quorum application."""

from .answer import Answer
from .attachment import Attachment
from .collection import AccessLevel, Collection, CollectionPost
from .comment import Comment
from .post import Post, PostFavorite, PostView
from .stats import GlobalStat, UserStat
from .tag import Entity, Tag, UserEntity, UserTag
from .vote import AnswerVote, PostVote

__all__ = [
    "Answer",
    "Attachment",
    "AccessLevel", "Collection", "CollectionPost",
    "Comment",
    "Post", "PostFavorite", "PostView",
    "GlobalStat", "UserStat",
    "Entity", "Tag", "UserEntity", "UserTag",
    "AnswerVote", "PostVote",
]
