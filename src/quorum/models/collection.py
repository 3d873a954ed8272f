# src/quorum/models/collection.py
"""SQLAlchemy models for curated post collections."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quorum.db.session import Base
from quorum.db.time import utcnow


class AccessLevel(str, Enum):
    """Who may read or edit a collection besides its owner."""

    PRIVATE = "private"
    PUBLIC = "public"


class Collection(Base):
    """Access-controlled, ordered set of posts curated by one owner."""

    __tablename__ = "collection"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    header_image: Mapped[str | None] = mapped_column(Text, nullable=True)
    read_access: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=AccessLevel.PRIVATE.value,
    )
    edit_access: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=AccessLevel.PRIVATE.value,
    )
    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    items: Mapped[list[CollectionPost]] = relationship(
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CollectionPost.position",
    )

    @property
    def post_ids(self) -> list[int]:
        return [item.post_id for item in self.items]


class CollectionPost(Base):
    """Membership of a post in a collection, with its position."""

    __tablename__ = "collection_post"

    collection_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("collection.id", ondelete="CASCADE"),
        primary_key=True,
    )
    post_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("post.id", ondelete="CASCADE"),
        primary_key=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
