# src/quorum/models/tag.py
"""Tag and catalog entity association records, plus their follow tables."""

from sqlalchemy import BigInteger, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from quorum.db.session import Base


class Tag(Base):
    """Free-form topic label attached to posts."""

    __tablename__ = "tag"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tag: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Entity(Base):
    """Reference to an external catalog entity, e.g. ``component:default/x``."""

    __tablename__ = "entity"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entity_ref: Mapped[str] = mapped_column(Text, unique=True, nullable=False)


class UserTag(Base):
    """Join table mapping followers onto tags."""

    __tablename__ = "user_tag"

    user_ref: Mapped[str] = mapped_column(Text, primary_key=True)
    tag_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("tag.id", ondelete="CASCADE"),
        primary_key=True,
    )
    # No timestamps; presence implies following.


class UserEntity(Base):
    """Join table mapping followers onto entities."""

    __tablename__ = "user_entity"

    user_ref: Mapped[str] = mapped_column(Text, primary_key=True)
    entity_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("entity.id", ondelete="CASCADE"),
        primary_key=True,
    )
