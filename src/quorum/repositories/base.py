"""Shared plumbing for the content store repositories."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, date, datetime, time, timedelta
from typing import Any, TypeVar

from sqlalchemy import ColumnElement, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from quorum.core.exceptions import (
    ForbiddenError,
    InvalidInputError,
    InvariantViolationError,
    ResourceNotFoundError,
)
from quorum.core.settings import settings
from quorum.db.time import as_utc, utcnow
from quorum.models import Answer, Attachment, Collection, Comment, Entity, Post, Tag
from quorum.permissions.criteria import Criteria
from quorum.permissions.resources import ResourceType
from quorum.permissions.rules import RuleRegistry, default_rule_registry

from .options import ORDER_ASC, ORDER_DESC

ModelT = TypeVar("ModelT")

VALID_VOTE_SCORES = (-1, 1)

_RESOURCE_MODELS: dict[ResourceType, Any] = {
    ResourceType.POST: Post,
    ResourceType.ANSWER: Answer,
    ResourceType.COMMENT: Comment,
    ResourceType.COLLECTION: Collection,
}


def compute_trend(
    *,
    views: int,
    score: int,
    answers_count: int,
    created: datetime,
    now: datetime | None = None,
) -> float:
    """Activity weighted by age: recent, busy posts rank first."""
    current = now or utcnow()
    age_days = max((current - as_utc(created)).total_seconds() / 86400.0, 0.0)
    activity = views + 2 * score + 3 * answers_count
    return activity / (age_days + 1.0) ** settings.trend_gravity


def require_text(value: str | None, field_name: str) -> str:
    """Return ``value`` stripped, rejecting empty content."""
    text = (value or "").strip()
    if not text:
        raise InvalidInputError(f"{field_name} must not be empty")
    return text


def validate_order(order: str) -> bool:
    """Return True for ascending order."""
    if order not in (ORDER_ASC, ORDER_DESC):
        raise InvalidInputError(f"Unknown order '{order}'")
    return order == ORDER_ASC


def date_range_clauses(column, from_date: date | None, to_date: date | None) -> list[ColumnElement[bool]]:  # type: ignore[no-untyped-def]
    """Inclusive calendar-date range over a timestamp column."""
    clauses: list[ColumnElement[bool]] = []
    if from_date is not None:
        clauses.append(column >= datetime.combine(from_date, time.min, tzinfo=UTC))
    if to_date is not None:
        clauses.append(column < datetime.combine(to_date + timedelta(days=1), time.min, tzinfo=UTC))
    return clauses


def normalize_labels(values: Iterable[str] | None, *, lower: bool) -> list[str]:
    """Strip, optionally lower-case and de-duplicate labels, keeping order."""
    seen: dict[str, None] = {}
    for value in values or []:
        label = value.strip()
        if lower:
            label = label.lower()
        if label:
            seen.setdefault(label, None)
    return list(seen)


def search_pattern(query: str) -> str:
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class RepositoryBase:
    """Holds the session and the permission rule registry."""

    def __init__(self, session: Session, rules: RuleRegistry | None = None) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session
        self.rules = rules or default_rule_registry()

    # Transactions ---------------------------------------------------------

    def _commit(self) -> None:
        """Commit the current unit of work, mapping constraint failures."""
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise InvariantViolationError(f"Constraint violated: {exc.orig}") from exc

    def _unchanged(self) -> bool:
        """Close a mutation that changed nothing; row locks and earlier writes are released."""
        self._commit()
        return False

    def _get_or_raise(self, model: type[ModelT], resource_id: int, name: str, *, lock: bool = True) -> ModelT:
        """Load a mutation target, locking its row where the backend supports it."""
        instance = self.session.get(model, resource_id, with_for_update=lock or None)
        if instance is None:
            raise ResourceNotFoundError(name, resource_id)
        return instance

    # Permission criteria --------------------------------------------------

    def criteria_clause(self, criteria: Criteria, resource_type: ResourceType) -> ColumnElement[bool]:
        return self.rules.to_clause(criteria, resource_type)

    def matches_criteria(self, resource_type: ResourceType, resource_id: int, criteria: Criteria) -> bool:
        """Return True when the row ``resource_id`` satisfies ``criteria``."""
        model = _RESOURCE_MODELS[resource_type]
        stmt = select(model.id).where(
            model.id == resource_id,
            self.criteria_clause(criteria, resource_type),
        )
        return self.session.scalar(stmt) is not None

    def _ensure_permitted(
        self,
        resource_type: ResourceType,
        resource_id: int,
        *,
        user_ref: str,
        owner: str,
        criteria: Criteria | None,
    ) -> None:
        """Check a mutation precondition.

        Without criteria only the owner may mutate; with criteria the row must
        satisfy them, which may admit curators who are not the owner.
        """
        if criteria is None:
            if owner != user_ref:
                raise ForbiddenError(f"{user_ref} does not own {resource_type.value} {resource_id}")
            return
        if not self.matches_criteria(resource_type, resource_id, criteria):
            raise ForbiddenError(
                f"{user_ref} is not permitted to modify {resource_type.value} {resource_id}",
            )

    def _ensure_comment_author(
        self,
        comment: Comment,
        user_ref: str,
        criteria: Criteria | None,
    ) -> None:
        if comment.author != user_ref:
            raise ForbiddenError(f"{user_ref} did not write comment {comment.id}")
        if criteria is not None and not self.matches_criteria(
            ResourceType.COMMENT, comment.id, criteria
        ):
            raise ForbiddenError(f"{user_ref} is not permitted to delete comment {comment.id}")

    # Tags and entities ----------------------------------------------------

    def _get_or_create(self, model: Any, column: Any, value: str, **values: str) -> Any:
        instance = self.session.scalar(select(model).where(column == value))
        if instance is not None:
            return instance
        try:
            with self.session.begin_nested():
                instance = model(**values)
                self.session.add(instance)
        except IntegrityError:
            instance = self.session.scalar(select(model).where(column == value))
        return instance

    def _resolve_tags(self, tags: Iterable[str] | None) -> list[Tag]:
        return [
            self._get_or_create(Tag, Tag.tag, label, tag=label)
            for label in normalize_labels(tags, lower=True)
        ]

    def _resolve_entities(self, entities: Iterable[str] | None) -> list[Entity]:
        return [
            self._get_or_create(Entity, Entity.entity_ref, ref, entity_ref=ref)
            for ref in normalize_labels(entities, lower=False)
        ]

    # Votes ----------------------------------------------------------------

    def _upsert_vote(self, model: type[ModelT], key: dict[str, Any], score: int) -> bool:
        """Insert or replace one vote row; return False when nothing changed."""
        if score not in VALID_VOTE_SCORES:
            raise InvalidInputError("Vote score must be 1 or -1")

        existing = self.session.get(model, key, with_for_update=True)
        if existing is None:
            try:
                with self.session.begin_nested():
                    self.session.add(model(**key, score=score))
                return True
            except IntegrityError:
                # A concurrent request inserted the same (voter, target) first.
                existing = self.session.get(model, key, populate_existing=True)
                if existing is None:
                    raise

        if existing.score == score:  # type: ignore[attr-defined]
            return False
        existing.score = score  # type: ignore[attr-defined]
        existing.timestamp = utcnow()  # type: ignore[attr-defined]
        self.session.flush()
        return True

    def _recompute_score(self, model: Any, vote_model: Any, fk_column: Any, target_id: int) -> None:
        """Set ``score`` to the live sum of vote rows in one statement."""
        total = (
            select(func.coalesce(func.sum(vote_model.score), 0))
            .where(fk_column == target_id)
            .scalar_subquery()
        )
        self.session.execute(
            update(model)
            .where(model.id == target_id)
            .values(score=total)
            .execution_options(synchronize_session=False)
        )

    def _update_trend(self, post: Post) -> None:
        answers_count = self.session.scalar(
            select(func.count(Answer.id)).where(Answer.post_id == post.id)
        ) or 0
        post.trend = compute_trend(
            views=post.views,
            score=post.score,
            answers_count=answers_count,
            created=post.created,
        )

    # Attachments ----------------------------------------------------------

    def _bind_images(self, images: list[int] | None, **owner: int) -> None:
        if not images:
            return
        self.session.execute(update(Attachment).where(Attachment.id.in_(images)).values(**owner))
