# src/quorum/models/attachment.py
"""Attachment metadata; binary storage lives outside this service."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, LargeBinary, Text
from sqlalchemy.orm import Mapped, mapped_column

from quorum.db.session import Base
from quorum.db.time import utcnow


class Attachment(Base):
    """Uploaded file descriptor, optionally bound to a post, answer or collection."""

    __tablename__ = "attachment"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    location_type: Mapped[str] = mapped_column(Text, nullable=False)
    location_uri: Mapped[str] = mapped_column(Text, nullable=False)
    extension: Mapped[str] = mapped_column(Text, nullable=False)
    mime_type: Mapped[str] = mapped_column(Text, nullable=False)
    path: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Only populated for the "database" location type.
    binary_image: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    creator: Mapped[str | None] = mapped_column(Text, nullable=True)
    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    post_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("post.id", ondelete="SET NULL"),
        nullable=True,
    )
    answer_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("answer.id", ondelete="SET NULL"),
        nullable=True,
    )
    collection_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("collection.id", ondelete="SET NULL"),
        nullable=True,
    )
