"""The content store: one object exposing every persistence operation."""

from __future__ import annotations

from .answer_repo import AnswerRepository
from .attachment_repo import AttachmentRepository
from .collection_repo import CollectionRepository
from .follow_repo import FollowRepository
from .post_repo import PostRepository
from .stats_repo import StatsRepository

__all__ = ["ContentStore"]


class ContentStore(
    PostRepository,
    AnswerRepository,
    FollowRepository,
    CollectionRepository,
    StatsRepository,
    AttachmentRepository,
):
    """Posts, answers, comments, votes, follows, collections and statistics.

    Reads return ``None`` for missing rows. Mutations raise
    :class:`~quorum.core.exceptions.ResourceNotFoundError` for missing targets,
    :class:`~quorum.core.exceptions.ForbiddenError` when the ownership or
    criteria precondition fails, and
    :class:`~quorum.core.exceptions.InvariantViolationError` when a data
    invariant would break. Each mutation commits its own transaction.
    """
