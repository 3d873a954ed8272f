"""Data access for answers, their comments and votes, and accepted answers."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ColumnElement, delete, exists, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import aliased, selectinload

from quorum.core.exceptions import (
    InvalidInputError,
    InvariantViolationError,
    ResourceNotFoundError,
)
from quorum.db.time import utcnow
from quorum.models import Answer, AnswerVote, Attachment, Comment, Entity, Post, Tag
from quorum.models.post import POST_TYPE_QUESTION, post_entity, post_tag
from quorum.permissions.criteria import Criteria
from quorum.permissions.resources import ResourceType

from .base import (
    RepositoryBase,
    date_range_clauses,
    normalize_labels,
    require_text,
    search_pattern,
    validate_order,
)
from .options import Answers, AnswersOptions

__all__ = ["AnswerRepository"]

_ANSWER_ORDER_COLUMNS = {
    "created": Answer.created,
    "updated": func.coalesce(Answer.updated, Answer.created),
    "score": Answer.score,
    "author": Answer.author,
}


class AnswerRepository(RepositoryBase):
    """Answers to question posts."""

    def get_answers(
        self,
        user_ref: str,
        options: AnswersOptions | None = None,
        criteria: Criteria | None = None,
    ) -> Answers:
        """Return one page of answers and the total number of matches."""
        options = options or AnswersOptions()
        clauses = self._answer_filters(options)
        if criteria is not None:
            clauses.append(self.criteria_clause(criteria, ResourceType.ANSWER))

        total = self.session.scalar(select(func.count(Answer.id)).where(*clauses)) or 0

        key = options.order_by or "created"
        if key not in _ANSWER_ORDER_COLUMNS:
            raise InvalidInputError(f"Cannot order answers by '{key}'")
        column = _ANSWER_ORDER_COLUMNS[key]
        if validate_order(options.order):
            ordering = [column.asc(), Answer.id.asc()]
        else:
            ordering = [column.desc(), Answer.id.desc()]

        stmt = (
            select(Answer)
            .where(*clauses)
            .order_by(*ordering)
            .options(selectinload(Answer.comments), selectinload(Answer.votes))
        )
        if options.offset:
            stmt = stmt.offset(options.offset)
        if options.limit is not None:
            stmt = stmt.limit(options.limit)
        return Answers(answers=list(self.session.scalars(stmt)), total=total)

    def get_answer(self, user_ref: str, answer_id: int) -> Answer | None:
        return self.session.get(Answer, answer_id)

    def get_answer_comment(self, comment_id: int) -> Comment | None:
        return self.session.scalar(
            select(Comment).where(Comment.id == comment_id, Comment.answer_id.is_not(None))
        )

    def answer_post(
        self,
        *,
        user_ref: str,
        post_id: int,
        content: str,
        images: list[int] | None = None,
        anonymous: bool = False,
        created: datetime | None = None,
    ) -> Answer:
        """Attach a new answer to a question post.

        Raises:
            ResourceNotFoundError: If the post does not exist.
            InvariantViolationError: If the post is not a question.
        """
        post = self._get_or_raise(Post, post_id, "post")
        if post.type != POST_TYPE_QUESTION:
            raise InvariantViolationError(f"Post {post_id} is a {post.type}, not a question")
        answer = Answer(
            post_id=post.id,
            author=user_ref,
            content=require_text(content, "content"),
            anonymous=anonymous,
            created=created or utcnow(),
        )
        self.session.add(answer)
        self.session.flush()
        self._bind_images(images, answer_id=answer.id)
        self._update_trend(post)
        self._commit()
        return answer

    def update_answer(
        self,
        *,
        user_ref: str,
        post_id: int,
        answer_id: int,
        content: str,
        images: list[int] | None = None,
        criteria: Criteria | None = None,
    ) -> Answer:
        answer = self._get_answer_of_post(post_id, answer_id)
        self._ensure_permitted(
            ResourceType.ANSWER, answer.id, user_ref=user_ref, owner=answer.author, criteria=criteria
        )
        answer.content = require_text(content, "content")
        answer.updated = utcnow()
        answer.updated_by = user_ref
        self.session.flush()
        self._bind_images(images, answer_id=answer.id)
        self._commit()
        return answer

    def delete_answer(self, user_ref: str, answer_id: int, criteria: Criteria | None = None) -> None:
        """Hard-delete an answer with its comments and votes."""
        answer = self._get_or_raise(Answer, answer_id, "answer")
        self._ensure_permitted(
            ResourceType.ANSWER, answer.id, user_ref=user_ref, owner=answer.author, criteria=criteria
        )
        post = answer.post
        self.session.execute(
            update(Attachment)
            .where(Attachment.answer_id == answer_id)
            .values(answer_id=None)
            .execution_options(synchronize_session=False)
        )
        self.session.delete(answer)
        self.session.flush()
        self._update_trend(post)
        self._commit()

    def comment_answer(self, user_ref: str, answer_id: int, content: str) -> Comment:
        answer = self._get_or_raise(Answer, answer_id, "answer", lock=False)
        comment = Comment(
            answer=answer,
            author=user_ref,
            content=require_text(content, "content"),
        )
        self.session.add(comment)
        self._commit()
        return comment

    def delete_answer_comment(
        self,
        user_ref: str,
        answer_id: int,
        comment_id: int,
        criteria: Criteria | None = None,
    ) -> None:
        """Delete an answer comment; only its author may do so."""
        comment = self.session.scalar(
            select(Comment).where(Comment.id == comment_id, Comment.answer_id == answer_id)
        )
        if comment is None:
            raise ResourceNotFoundError("comment", comment_id)
        self._ensure_comment_author(comment, user_ref, criteria)
        self.session.delete(comment)
        self._commit()

    def vote_answer(self, user_ref: str, answer_id: int, score: int) -> bool:
        """Cast or replace the caller's vote; return True if anything changed."""
        answer = self._get_or_raise(Answer, answer_id, "answer")
        if answer.author == user_ref:
            raise InvariantViolationError("Cannot vote on your own answer")
        changed = self._upsert_vote(
            AnswerVote, {"answer_id": answer_id, "user_ref": user_ref}, score
        )
        if not changed:
            return self._unchanged()
        self._after_answer_vote(answer)
        return True

    def remove_answer_vote(self, user_ref: str, answer_id: int) -> bool:
        answer = self._get_or_raise(Answer, answer_id, "answer")
        result = self.session.execute(
            delete(AnswerVote).where(
                AnswerVote.answer_id == answer_id,
                AnswerVote.user_ref == user_ref,
            )
        )
        if not result.rowcount:
            return self._unchanged()
        self._after_answer_vote(answer)
        return True

    def mark_answer_correct(self, user_ref: str, post_id: int, answer_id: int) -> bool:
        """Accept ``answer_id`` as the post's correct answer.

        Returns False without changing anything when the post already has an
        accepted answer (this one or another); the prior answer must be
        unmarked first.
        """
        self._get_or_raise(Post, post_id, "post")
        answer = self._get_answer_of_post(post_id, answer_id)
        already_correct = self.session.scalar(
            select(Answer.id).where(Answer.post_id == post_id, Answer.correct.is_(True))
        )
        if already_correct is not None:
            return self._unchanged()
        try:
            with self.session.begin_nested():
                answer.correct = True
                self.session.flush()
        except IntegrityError:
            # Another request accepted an answer for this post first.
            return self._unchanged()
        self._commit()
        return True

    def mark_answer_incorrect(self, user_ref: str, post_id: int, answer_id: int) -> bool:
        """Clear the accepted flag; return False when it was not set."""
        self._get_or_raise(Post, post_id, "post")
        answer = self._get_answer_of_post(post_id, answer_id)
        if not answer.correct:
            return self._unchanged()
        answer.correct = False
        self._commit()
        return True

    def _get_answer_of_post(self, post_id: int, answer_id: int) -> Answer:
        answer = self._get_or_raise(Answer, answer_id, "answer")
        if answer.post_id != post_id:
            raise InvariantViolationError(f"Answer {answer_id} does not belong to post {post_id}")
        return answer

    def _after_answer_vote(self, answer: Answer) -> None:
        self.session.flush()
        self._recompute_score(Answer, AnswerVote, AnswerVote.answer_id, answer.id)
        self.session.refresh(answer)
        self._commit()

    def _answer_filters(self, options: AnswersOptions) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = []
        if options.author:
            clauses.append(Answer.author == options.author)
        if options.post_id is not None:
            clauses.append(Answer.post_id == options.post_id)
        if options.no_correct_answer:
            accepted = aliased(Answer)
            clauses.append(
                Answer.post_id.not_in(select(accepted.post_id).where(accepted.correct.is_(True)))
            )
        if options.no_votes:
            clauses.append(~exists().where(AnswerVote.answer_id == Answer.id))
        for tag in normalize_labels(options.tags, lower=True):
            clauses.append(
                Answer.post_id.in_(
                    select(post_tag.c.post_id)
                    .join(Tag, Tag.id == post_tag.c.tag_id)
                    .where(Tag.tag == tag)
                )
            )
        if options.entity:
            clauses.append(
                Answer.post_id.in_(
                    select(post_entity.c.post_id)
                    .join(Entity, Entity.id == post_entity.c.entity_id)
                    .where(Entity.entity_ref == options.entity)
                )
            )
        if options.search_query:
            clauses.append(Answer.content.ilike(search_pattern(options.search_query), escape="\\"))
        clauses.extend(date_range_clauses(Answer.created, options.from_date, options.to_date))
        return clauses
