# src/quorum/models/post.py
"""SQLAlchemy models for posts and their direct associations."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quorum.db.session import Base
from quorum.db.time import utcnow

if TYPE_CHECKING:
    from .answer import Answer
    from .comment import Comment
    from .tag import Entity, Tag
    from .vote import PostVote

POST_TYPE_QUESTION = "question"
POST_TYPE_ARTICLE = "article"
POST_TYPE_LINK = "link"
POST_TYPES = (POST_TYPE_QUESTION, POST_TYPE_ARTICLE, POST_TYPE_LINK)

ANONYMOUS_AUTHOR = "anonymous"

post_tag = Table(
    "post_tag",
    Base.metadata,
    Column("post_id", BigInteger, ForeignKey("post.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", BigInteger, ForeignKey("tag.id", ondelete="CASCADE"), primary_key=True),
)

post_entity = Table(
    "post_entity",
    Base.metadata,
    Column("post_id", BigInteger, ForeignKey("post.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "entity_id",
        BigInteger,
        ForeignKey("entity.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Post(Base):
    """Top-level content unit: a question, an article or a shared link."""

    __tablename__ = "post"
    __table_args__ = (
        CheckConstraint(
            "type IN ('question', 'article', 'link')",
            name="ck_post_type",
        ),
        Index("ix_post_author", "author"),
        Index("ix_post_created", "created"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False, default=POST_TYPE_QUESTION)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # Only link posts carry a target URL.
    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    header_image: Mapped[str | None] = mapped_column(Text, nullable=True)
    anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_by: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Derived: always the sum of post_vote.score for this post.
    score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    trend: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    answers: Mapped[list[Answer]] = relationship(
        back_populates="post",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Answer.id",
    )
    comments: Mapped[list[Comment]] = relationship(
        back_populates="post",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Comment.id",
    )
    votes: Mapped[list[PostVote]] = relationship(
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    favorites: Mapped[list[PostFavorite]] = relationship(
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    tags: Mapped[list[Tag]] = relationship(secondary=post_tag, order_by="Tag.tag")
    entities: Mapped[list[Entity]] = relationship(
        secondary=post_entity,
        order_by="Entity.entity_ref",
    )

    @property
    def tag_names(self) -> list[str]:
        return [tag.tag for tag in self.tags]

    @property
    def entity_refs(self) -> list[str]:
        return [entity.entity_ref for entity in self.entities]

    @property
    def favorited_by(self) -> set[str]:
        return {favorite.user_ref for favorite in self.favorites}

    @property
    def correct_answer_id(self) -> int | None:
        """Identifier of the accepted answer, derived from the answer rows."""
        for answer in self.answers:
            if answer.correct:
                return answer.id
        return None

    @property
    def answers_count(self) -> int:
        return len(self.answers)

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


class PostFavorite(Base):
    """A user's bookmark on a post; presence implies favorited."""

    __tablename__ = "post_favorite"

    post_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("post.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_ref: Mapped[str] = mapped_column(Text, primary_key=True)
    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class PostView(Base):
    """One recorded read of a post through the view-recording path."""

    __tablename__ = "post_view"
    __table_args__ = (Index("ix_post_view_post_id", "post_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_ref: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
