"""Permission rules: how each criteria leaf is evaluated per resource type.

Every rule carries two evaluators that must agree: ``to_clause`` pushes the
predicate down into a SQLAlchemy ``WHERE`` clause, while ``apply`` checks an
already loaded object in memory (used by tests and callers without a
database). Adding a new predicate kind means registering a new rule; the
combinator walk in :func:`quorum.permissions.criteria.fold` is untouched.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy import ColumnElement, and_, false, or_, select, true

from quorum.core.exceptions import InvalidInputError
from quorum.models import Answer, Collection, Comment, Entity, Post, Tag
from quorum.models.post import post_entity, post_tag

from .criteria import Condition, Criteria, fold
from .resources import ResourceType

IS_AUTHOR = "IS_AUTHOR"
HAS_ENTITIES = "HAS_ENTITIES"
HAS_TAGS = "HAS_TAGS"
HAS_READ_ACCESS = "HAS_READ_ACCESS"
HAS_EDIT_ACCESS = "HAS_EDIT_ACCESS"

ClauseBuilder = Callable[[Mapping[str, Any]], ColumnElement[bool]]
ObjectPredicate = Callable[[Any, Mapping[str, Any]], bool]


@dataclass(frozen=True)
class PermissionRule:
    """A named predicate for one resource type."""

    name: str
    resource_type: ResourceType
    description: str
    to_clause: ClauseBuilder
    apply: ObjectPredicate


class RuleRegistry:
    """Lookup of permission rules keyed by ``(resource_type, rule name)``."""

    def __init__(self, rules: Iterable[PermissionRule] = ()) -> None:
        self._rules: dict[tuple[ResourceType, str], PermissionRule] = {}
        for rule in rules:
            self.register(rule)

    def register(self, rule: PermissionRule) -> None:
        self._rules[(rule.resource_type, rule.name)] = rule

    def get(self, resource_type: ResourceType | str, name: str) -> PermissionRule:
        key = (ResourceType(resource_type), name)
        rule = self._rules.get(key)
        if rule is None:
            raise InvalidInputError(f"Unknown permission rule {name} for {key[0].value}")
        return rule

    def to_clause(self, criteria: Criteria, resource_type: ResourceType | str) -> ColumnElement[bool]:
        """Translate ``criteria`` into a single SQL predicate for ``resource_type``."""
        kind = ResourceType(resource_type)

        def leaf(condition: Condition) -> ColumnElement[bool]:
            return self._rule_for_leaf(condition, kind).to_clause(condition.params)

        return fold(
            criteria,
            leaf=leaf,
            conjunction=lambda children: and_(*children) if children else true(),
            disjunction=lambda children: or_(*children) if children else false(),
        )

    def matches(self, criteria: Criteria, resource_type: ResourceType | str, resource: Any) -> bool:
        """Evaluate ``criteria`` against an in-memory resource object."""
        kind = ResourceType(resource_type)

        def leaf(condition: Condition) -> bool:
            return bool(self._rule_for_leaf(condition, kind).apply(resource, condition.params))

        return fold(criteria, leaf=leaf, conjunction=all, disjunction=any)

    def _rule_for_leaf(self, condition: Condition, kind: ResourceType) -> PermissionRule:
        if condition.resource_type != kind.value:
            raise InvalidInputError(
                f"Criteria for {condition.resource_type} cannot filter {kind.value} resources",
            )
        return self.get(kind, condition.rule)


# Condition factories ------------------------------------------------------


def is_author(resource_type: ResourceType, user_ref: str) -> Condition:
    return Condition(IS_AUTHOR, resource_type.value, {"user_ref": user_ref})


def has_entities(resource_type: ResourceType, entity_refs: Sequence[str]) -> Condition:
    """Resource must be associated with ALL of ``entity_refs``."""
    return Condition(HAS_ENTITIES, resource_type.value, {"entity_refs": list(entity_refs)})


def has_tags(resource_type: ResourceType, tags: Sequence[str]) -> Condition:
    """Resource must carry ALL of ``tags``."""
    return Condition(HAS_TAGS, resource_type.value, {"tags": list(tags)})


def has_read_access(level: str) -> Condition:
    return Condition(HAS_READ_ACCESS, ResourceType.COLLECTION.value, {"level": level})


def has_edit_access(level: str) -> Condition:
    return Condition(HAS_EDIT_ACCESS, ResourceType.COLLECTION.value, {"level": level})


# SQL helpers --------------------------------------------------------------


def _refs(params: Mapping[str, Any], key: str) -> list[str]:
    value = params.get(key) or []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value]


def _tags(params: Mapping[str, Any]) -> list[str]:
    # Tags are stored stripped and lowercased.
    return list(dict.fromkeys(tag.strip().lower() for tag in _refs(params, "tags") if tag.strip()))


def _posts_with_entity(entity_ref: str):  # type: ignore[no-untyped-def]
    return (
        select(post_entity.c.post_id)
        .join(Entity, Entity.id == post_entity.c.entity_id)
        .where(Entity.entity_ref == entity_ref)
    )


def _posts_with_tag(tag: str):  # type: ignore[no-untyped-def]
    return select(post_tag.c.post_id).join(Tag, Tag.id == post_tag.c.tag_id).where(Tag.tag == tag)


def _post_id_has_all(post_id_column, refs: list[str], subquery) -> ColumnElement[bool]:  # type: ignore[no-untyped-def]
    # An empty list matches nothing rather than everything.
    if not refs:
        return false()
    return and_(*[post_id_column.in_(subquery(ref)) for ref in refs])


def _has_all(values: Iterable[str], refs: list[str]) -> bool:
    return bool(refs) and set(refs).issubset(set(values))


# Built-in rules -----------------------------------------------------------

POST_RULES = (
    PermissionRule(
        name=IS_AUTHOR,
        resource_type=ResourceType.POST,
        description="Post was written by the given user",
        to_clause=lambda p: Post.author == p["user_ref"],
        apply=lambda post, p: post.author == p["user_ref"],
    ),
    PermissionRule(
        name=HAS_ENTITIES,
        resource_type=ResourceType.POST,
        description="Post is associated with all of the given entities",
        to_clause=lambda p: _post_id_has_all(Post.id, _refs(p, "entity_refs"), _posts_with_entity),
        apply=lambda post, p: _has_all(post.entity_refs, _refs(p, "entity_refs")),
    ),
    PermissionRule(
        name=HAS_TAGS,
        resource_type=ResourceType.POST,
        description="Post carries all of the given tags",
        to_clause=lambda p: _post_id_has_all(Post.id, _tags(p), _posts_with_tag),
        apply=lambda post, p: _has_all(post.tag_names, _tags(p)),
    ),
)

ANSWER_RULES = (
    PermissionRule(
        name=IS_AUTHOR,
        resource_type=ResourceType.ANSWER,
        description="Answer was written by the given user",
        to_clause=lambda p: Answer.author == p["user_ref"],
        apply=lambda answer, p: answer.author == p["user_ref"],
    ),
    PermissionRule(
        name=HAS_ENTITIES,
        resource_type=ResourceType.ANSWER,
        description="Answered question is associated with all of the given entities",
        to_clause=lambda p: _post_id_has_all(
            Answer.post_id, _refs(p, "entity_refs"), _posts_with_entity
        ),
        apply=lambda answer, p: _has_all(answer.post.entity_refs, _refs(p, "entity_refs")),
    ),
    PermissionRule(
        name=HAS_TAGS,
        resource_type=ResourceType.ANSWER,
        description="Answered question carries all of the given tags",
        to_clause=lambda p: _post_id_has_all(Answer.post_id, _tags(p), _posts_with_tag),
        apply=lambda answer, p: _has_all(answer.post.tag_names, _tags(p)),
    ),
)

COMMENT_RULES = (
    PermissionRule(
        name=IS_AUTHOR,
        resource_type=ResourceType.COMMENT,
        description="Comment was written by the given user",
        to_clause=lambda p: Comment.author == p["user_ref"],
        apply=lambda comment, p: comment.author == p["user_ref"],
    ),
)

COLLECTION_RULES = (
    PermissionRule(
        name=IS_AUTHOR,
        resource_type=ResourceType.COLLECTION,
        description="Collection is owned by the given user",
        to_clause=lambda p: Collection.owner == p["user_ref"],
        apply=lambda collection, p: collection.owner == p["user_ref"],
    ),
    PermissionRule(
        name=HAS_READ_ACCESS,
        resource_type=ResourceType.COLLECTION,
        description="Collection read access equals the given level",
        to_clause=lambda p: Collection.read_access == p["level"],
        apply=lambda collection, p: collection.read_access == p["level"],
    ),
    PermissionRule(
        name=HAS_EDIT_ACCESS,
        resource_type=ResourceType.COLLECTION,
        description="Collection edit access equals the given level",
        to_clause=lambda p: Collection.edit_access == p["level"],
        apply=lambda collection, p: collection.edit_access == p["level"],
    ),
)


def default_rule_registry() -> RuleRegistry:
    """Return a registry holding every built-in rule."""
    return RuleRegistry((*POST_RULES, *ANSWER_RULES, *COMMENT_RULES, *COLLECTION_RULES))
