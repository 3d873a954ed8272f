# src/quorum/models/comment.py
"""SQLAlchemy model for comments attached to posts or answers."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quorum.db.session import Base
from quorum.db.time import utcnow

if TYPE_CHECKING:
    from .answer import Answer
    from .post import Post


class Comment(Base):
    """Threaded remark owned by exactly one post or one answer."""

    __tablename__ = "comment"
    __table_args__ = (
        CheckConstraint(
            "(post_id IS NULL) <> (answer_id IS NULL)",
            name="ck_comment_single_parent",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    answer_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("answer.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    author: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    post: Mapped[Post | None] = relationship(back_populates="comments")
    answer: Mapped[Answer | None] = relationship(back_populates="comments")

    @property
    def parent_type(self) -> str:
        return "post" if self.post_id is not None else "answer"

    @property
    def parent_id(self) -> int:
        return self.post_id if self.post_id is not None else self.answer_id  # type: ignore[return-value]
