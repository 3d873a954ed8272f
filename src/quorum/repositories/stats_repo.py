"""Leaderboards, counters and the daily statistic rollups."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

from sqlalchemy import ColumnElement, delete, func, select, union
from sqlalchemy.orm import Session

from quorum.core.exceptions import InvalidInputError
from quorum.db.time import utcnow
from quorum.models import (
    Answer,
    AnswerVote,
    Comment,
    GlobalStat,
    Post,
    PostView,
    PostVote,
    Tag,
    UserStat,
)
from quorum.models.post import POST_TYPE_ARTICLE, POST_TYPE_LINK, POST_TYPE_QUESTION

from .base import RepositoryBase
from .options import Statistic, StatisticsOptions, UserResponse

__all__ = ["StatsRepository", "COUNTABLE_TABLES"]

COUNTABLE_TABLES = ("posts", "answers", "comments", "votes", "views", "tags")


def _count(session: Session, stmt) -> int:  # type: ignore[no-untyped-def]
    return session.scalar(stmt) or 0


class StatsRepository(RepositoryBase):
    """Read-only aggregates plus the rollup tables they are saved into."""

    # Leaderboards ---------------------------------------------------------

    def get_most_upvoted_posts(
        self,
        author: str | None = None,
        options: StatisticsOptions | None = None,
    ) -> list[Statistic]:
        return self._leaderboard(Post, func.sum(Post.score), author, options)

    def get_total_posts(
        self,
        author: str | None = None,
        options: StatisticsOptions | None = None,
    ) -> list[Statistic]:
        return self._leaderboard(Post, func.count(Post.id), author, options)

    def get_most_upvoted_answers(
        self,
        author: str | None = None,
        options: StatisticsOptions | None = None,
    ) -> list[Statistic]:
        return self._leaderboard(Answer, func.sum(Answer.score), author, options)

    def get_most_upvoted_correct_answers(
        self,
        author: str | None = None,
        options: StatisticsOptions | None = None,
    ) -> list[Statistic]:
        return self._leaderboard(
            Answer,
            func.sum(Answer.score),
            author,
            options,
            Answer.correct.is_(True),
        )

    def get_total_answers(
        self,
        author: str | None = None,
        options: StatisticsOptions | None = None,
    ) -> list[Statistic]:
        return self._leaderboard(Answer, func.count(Answer.id), author, options)

    def _leaderboard(
        self,
        model: type[Post] | type[Answer],
        aggregate: Any,
        author: str | None,
        options: StatisticsOptions | None,
        *extra: ColumnElement[bool],
    ) -> list[Statistic]:
        """Rank authors by ``aggregate``; with ``author`` return just their row.

        Anonymous rows are left out so a ranking never credits their authors.
        """
        options = options or StatisticsOptions()
        author_column = model.author
        clauses = [model.anonymous.is_(False), *extra]
        if options.period_days:
            clauses.append(model.created >= utcnow() - timedelta(days=options.period_days))

        ranked = (
            select(
                author_column.label("author"),
                func.coalesce(aggregate, 0).label("total"),
                func.row_number()
                .over(order_by=(func.coalesce(aggregate, 0).desc(), author_column.asc()))
                .label("position"),
            )
            .where(*clauses)
            .group_by(author_column)
            .subquery()
        )
        stmt = select(ranked.c.author, ranked.c.total, ranked.c.position).order_by(ranked.c.position)
        if author is not None:
            stmt = stmt.where(ranked.c.author == author)
        elif options.limit is not None:
            stmt = stmt.limit(options.limit)
        return [
            Statistic(author=row.author, total=int(row.total), position=int(row.position))
            for row in self.session.execute(stmt)
        ]

    # Counters -------------------------------------------------------------

    def get_count(self, table: str, *, author: str | None = None, type: str | None = None) -> int:
        """Count rows of one content table, optionally for one author."""
        if table == "posts":
            stmt = select(func.count(Post.id))
            if author:
                stmt = stmt.where(Post.author == author)
            if type:
                stmt = stmt.where(Post.type == type)
            return _count(self.session, stmt)
        if table == "answers":
            stmt = select(func.count(Answer.id))
            if author:
                stmt = stmt.where(Answer.author == author)
            return _count(self.session, stmt)
        if table == "comments":
            stmt = select(func.count(Comment.id))
            if author:
                stmt = stmt.where(Comment.author == author)
            return _count(self.session, stmt)
        if table == "votes":
            post_votes = select(func.count()).select_from(PostVote)
            answer_votes = select(func.count()).select_from(AnswerVote)
            if author:
                post_votes = post_votes.where(PostVote.user_ref == author)
                answer_votes = answer_votes.where(AnswerVote.user_ref == author)
            return _count(self.session, post_votes) + _count(self.session, answer_votes)
        if table == "views":
            stmt = select(func.count(PostView.id))
            if author:
                stmt = stmt.where(PostView.user_ref == author)
            return _count(self.session, stmt)
        if table == "tags":
            return _count(self.session, select(func.count(Tag.id)))
        raise InvalidInputError(f"Cannot count '{table}'")

    def get_total_views(
        self,
        user_ref: str,
        last_days: int | None = None,
        exclude_user: bool = False,
    ) -> int:
        """Views recorded on ``user_ref``'s posts."""
        stmt = (
            select(func.count(PostView.id))
            .join(Post, Post.id == PostView.post_id)
            .where(Post.author == user_ref)
        )
        if last_days:
            stmt = stmt.where(PostView.timestamp >= utcnow() - timedelta(days=last_days))
        if exclude_user:
            stmt = stmt.where(PostView.user_ref != user_ref)
        return _count(self.session, stmt)

    # Users ----------------------------------------------------------------

    def get_users(self) -> list[UserResponse]:
        """Every user that has written, commented or voted, with totals."""
        everyone = union(
            select(Post.author.label("user_ref")),
            select(Answer.author.label("user_ref")),
            select(Comment.author.label("user_ref")),
            select(PostVote.user_ref.label("user_ref")),
            select(AnswerVote.user_ref.label("user_ref")),
        ).subquery()
        refs = self.session.scalars(select(everyone.c.user_ref).order_by(everyone.c.user_ref))
        return [self._user_totals(user_ref) for user_ref in refs]

    def get_user(self, user_ref: str) -> UserResponse | None:
        totals = self._user_totals(user_ref)
        links = self.get_count("posts", author=user_ref, type=POST_TYPE_LINK)
        counts = (
            totals.total_questions,
            totals.total_articles,
            totals.total_answers,
            totals.total_comments,
            totals.total_votes,
            links,
        )
        return totals if any(counts) else None

    def _user_totals(self, user_ref: str) -> UserResponse:
        return UserResponse(
            user_ref=user_ref,
            total_views=self.get_total_views(user_ref),
            total_questions=self.get_count("posts", author=user_ref, type=POST_TYPE_QUESTION),
            total_articles=self.get_count("posts", author=user_ref, type=POST_TYPE_ARTICLE),
            total_answers=self.get_count("answers", author=user_ref),
            total_comments=self.get_count("comments", author=user_ref),
            total_votes=self.get_count("votes", author=user_ref),
        )

    # Rollups --------------------------------------------------------------

    def save_global_stats(self, day: date) -> GlobalStat:
        """Write the platform totals for ``day``; re-running overwrites the row."""
        row = GlobalStat(
            date=day,
            total_users=len(self.get_users()),
            total_questions=self.get_count("posts", type=POST_TYPE_QUESTION),
            total_articles=self.get_count("posts", type=POST_TYPE_ARTICLE),
            total_links=self.get_count("posts", type=POST_TYPE_LINK),
            total_answers=self.get_count("answers"),
            total_comments=self.get_count("comments"),
            total_votes=self.get_count("votes"),
            total_views=self.get_count("views"),
            total_tags=self.get_count("tags"),
        )
        row = self.session.merge(row)
        self._commit()
        return row

    def save_user_stats(self, user: UserResponse, day: date) -> UserStat:
        """Write one user's totals for ``day``; re-running overwrites the row."""
        row = self.session.merge(
            UserStat(
                user_ref=user.user_ref,
                date=day,
                total_views=user.total_views,
                total_questions=user.total_questions,
                total_articles=user.total_articles,
                total_answers=user.total_answers,
                total_comments=user.total_comments,
                total_votes=user.total_votes,
            )
        )
        self._commit()
        return row

    def clean_stats(self, days: int, as_of: date) -> int:
        """Delete rollup rows older than ``days`` before ``as_of``."""
        cutoff = as_of - timedelta(days=days)
        removed = self.session.execute(delete(GlobalStat).where(GlobalStat.date < cutoff)).rowcount
        removed += self.session.execute(delete(UserStat).where(UserStat.date < cutoff)).rowcount
        self._commit()
        return removed or 0

    def get_global_stats(self) -> list[GlobalStat]:
        return list(self.session.scalars(select(GlobalStat).order_by(GlobalStat.date.desc())))

    def get_user_stats(self, user_ref: str) -> list[UserStat]:
        stmt = select(UserStat).where(UserStat.user_ref == user_ref).order_by(UserStat.date.desc())
        return list(self.session.scalars(stmt))
