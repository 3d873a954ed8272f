# src/quorum/models/stats.py
"""Daily statistic rollups; rows are append-only per calendar date."""

from datetime import date

from sqlalchemy import Date, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from quorum.db.session import Base


class GlobalStat(Base):
    """Platform-wide counts captured once per date."""

    __tablename__ = "global_stat"

    date: Mapped[date] = mapped_column(Date, primary_key=True)
    total_users: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_articles: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_links: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_answers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_comments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_tags: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class UserStat(Base):
    """Per-user counts captured once per date."""

    __tablename__ = "user_stat"

    user_ref: Mapped[str] = mapped_column(Text, primary_key=True)
    date: Mapped[date] = mapped_column(Date, primary_key=True)
    total_views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_articles: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_answers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_comments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
