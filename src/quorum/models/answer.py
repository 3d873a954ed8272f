# src/quorum/models/answer.py
"""SQLAlchemy model for answers to question posts."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quorum.db.session import Base
from quorum.db.time import utcnow

from .post import ANONYMOUS_AUTHOR

if TYPE_CHECKING:
    from .comment import Comment
    from .post import Post
    from .vote import AnswerVote


class Answer(Base):
    """Response to a question-type post."""

    __tablename__ = "answer"
    __table_args__ = (Index("ix_answer_post_id", "post_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=False,
    )
    author: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_by: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Derived: always the sum of answer_vote.score for this answer.
    score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    correct: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    post: Mapped[Post] = relationship(back_populates="answers")
    comments: Mapped[list[Comment]] = relationship(
        back_populates="answer",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Comment.id",
    )
    votes: Mapped[list[AnswerVote]] = relationship(
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def display_author(self, viewer: str | None) -> str:
        """Return the author reference as the given viewer may see it."""
        if self.anonymous and viewer != self.author:
            return ANONYMOUS_AUTHOR
        return self.author

    def display_updated_by(self, viewer: str | None) -> str | None:
        """Return the last editor, hidden like the author when they are the same user."""
        if self.updated_by is not None and self.updated_by == self.author:
            return self.display_author(viewer)
        return self.updated_by


# Partial unique index: a question can hold at most one accepted answer.
Index(
    "uq_answer_correct_per_post",
    Answer.post_id,
    unique=True,
    sqlite_where=Answer.correct.is_(True),
    postgresql_where=Answer.correct.is_(True),
)
