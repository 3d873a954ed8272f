# src/quorum/models/vote.py
"""Models capturing voting interactions on posts and answers."""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    SmallInteger,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from quorum.db.session import Base
from quorum.db.time import utcnow


class PostVote(Base):
    """Per-user vote on a post."""

    __tablename__ = "post_vote"
    __table_args__ = (
        CheckConstraint("score IN (1, -1)", name="ck_post_vote_score"),
        Index("ix_post_vote_post_id", "post_id"),
    )

    post_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("post.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_ref: Mapped[str] = mapped_column(Text, primary_key=True)

    # Composite primary key prevents duplicate votes from the same user.

    # 1 = upvote, -1 = downvote.
    score: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class AnswerVote(Base):
    """Per-user vote on an answer."""

    __tablename__ = "answer_vote"
    __table_args__ = (
        CheckConstraint("score IN (1, -1)", name="ck_answer_vote_score"),
        Index("ix_answer_vote_answer_id", "answer_id"),
    )

    answer_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("answer.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_ref: Mapped[str] = mapped_column(Text, primary_key=True)
    score: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
