"""Permission criteria trees.

A criteria tree is immutable: leaves are :class:`Condition` instances naming a
rule registered for one resource type, and the two combinators :class:`AllOf`
and :class:`AnyOf` nest arbitrarily. Evaluation lives elsewhere; this module
only builds, walks and (de)serialises trees.

Wire format::

    {"anyOf": [
        {"rule": "IS_AUTHOR", "resourceType": "post", "params": {"user_ref": "user:default/alice"}},
        {"rule": "HAS_ENTITIES", "resourceType": "post", "params": {"entity_refs": ["component:default/x"]}}
    ]}
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeAlias, TypeVar

from quorum.core.exceptions import InvalidInputError

T = TypeVar("T")


@dataclass(frozen=True)
class Condition:
    """Leaf predicate: ``rule`` applied to ``resource_type`` with ``params``."""

    rule: str
    resource_type: str
    params: Mapping[str, Any] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class AllOf:
    """Conjunction: every child must hold. Empty means true."""

    criteria: tuple[Criteria, ...]


@dataclass(frozen=True)
class AnyOf:
    """Disjunction: at least one child must hold. Empty means false."""

    criteria: tuple[Criteria, ...]


Criteria: TypeAlias = Condition | AllOf | AnyOf


def all_of(*criteria: Criteria) -> AllOf:
    return AllOf(tuple(criteria))


def any_of(*criteria: Criteria) -> AnyOf:
    return AnyOf(tuple(criteria))


def fold(
    criteria: Criteria,
    *,
    leaf: Callable[[Condition], T],
    conjunction: Callable[[list[T]], T],
    disjunction: Callable[[list[T]], T],
) -> T:
    """Walk ``criteria`` once, mapping leaves and combining children bottom-up."""
    if isinstance(criteria, AllOf):
        return conjunction([fold(c, leaf=leaf, conjunction=conjunction, disjunction=disjunction)
                            for c in criteria.criteria])
    if isinstance(criteria, AnyOf):
        return disjunction([fold(c, leaf=leaf, conjunction=conjunction, disjunction=disjunction)
                            for c in criteria.criteria])
    return leaf(criteria)


def parse_criteria(payload: Mapping[str, Any]) -> Criteria:
    """Build a criteria tree from its JSON representation.

    Raises:
        InvalidInputError: If a node is neither a combinator nor a leaf.
    """
    if not isinstance(payload, Mapping):
        raise InvalidInputError("Criteria node must be an object")
    if "allOf" in payload:
        return AllOf(tuple(parse_criteria(child) for child in _children(payload["allOf"])))
    if "anyOf" in payload:
        return AnyOf(tuple(parse_criteria(child) for child in _children(payload["anyOf"])))
    rule = payload.get("rule")
    resource_type = payload.get("resourceType")
    if not rule or not resource_type:
        raise InvalidInputError("Criteria leaf requires 'rule' and 'resourceType'")
    params = payload.get("params") or {}
    if not isinstance(params, Mapping):
        raise InvalidInputError("Criteria leaf 'params' must be an object")
    return Condition(rule=str(rule), resource_type=str(resource_type), params=dict(params))


def to_payload(criteria: Criteria) -> dict[str, Any]:
    """Serialise a criteria tree into its JSON representation."""
    return fold(
        criteria,
        leaf=lambda c: {"rule": c.rule, "resourceType": c.resource_type, "params": dict(c.params)},
        conjunction=lambda children: {"allOf": children},
        disjunction=lambda children: {"anyOf": children},
    )


def _children(value: object) -> Sequence[Mapping[str, Any]]:
    if not isinstance(value, list):
        raise InvalidInputError("Criteria combinator expects a list of children")
    return value
