# src/quorum/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .answer import AnswerCreate, AnswerResponse, AnswersResponse, AnswerUpdate
from .attachment import AttachmentCreate, AttachmentResponse
from .collection import (
    CollectionCreate,
    CollectionPostRequest,
    CollectionResponse,
    CollectionsResponse,
    CollectionUpdate,
)
from .comment import CommentCreate, CommentResponse
from .notification import Notification, NotificationPayload, NotificationRecipients
from .post import PostCreate, PostListParams, PostResponse, PostsResponse, PostUpdate
from .tag import EntityResponse, FollowResult, TagResponse, TagUpdate
from .vote import VoteCreate, VoteResult

__all__ = [
    "AnswerCreate", "AnswerResponse", "AnswersResponse", "AnswerUpdate",
    "AttachmentCreate", "AttachmentResponse",
    "CollectionCreate", "CollectionPostRequest", "CollectionResponse",
    "CollectionsResponse", "CollectionUpdate",
    "CommentCreate", "CommentResponse",
    "EntityResponse", "FollowResult", "TagResponse", "TagUpdate",
    "Notification", "NotificationPayload", "NotificationRecipients",
    "PostCreate", "PostListParams", "PostResponse", "PostsResponse", "PostUpdate",
    "VoteCreate", "VoteResult",
]
