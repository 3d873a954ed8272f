"""Decision policy: turns an action request into allow, deny or conditional.

The routing table is the customization surface. Operators swap the whole
:class:`PolicyTable` (or derive one with :meth:`PolicyTable.with_routes`)
rather than editing the decision engine. A conditional decision carries a
criteria tree that the content store folds into its query.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Any

from quorum.core.settings import settings

from .criteria import Criteria, all_of, any_of
from .resources import Action, ResourceType
from .rules import has_edit_access, has_entities, has_tags, is_author

logger = logging.getLogger(__name__)


class AuthorizeResult(str, Enum):
    ALLOW = "allow"
    DENY = "deny"
    CONDITIONAL = "conditional"


@dataclass(frozen=True)
class Decision:
    """Outcome of a policy query."""

    result: AuthorizeResult
    resource_type: ResourceType | None = None
    criteria: Criteria | None = None

    @classmethod
    def allow(cls) -> Decision:
        return cls(AuthorizeResult.ALLOW)

    @classmethod
    def deny(cls) -> Decision:
        return cls(AuthorizeResult.DENY)

    @classmethod
    def conditional(cls, resource_type: ResourceType, criteria: Criteria) -> Decision:
        return cls(AuthorizeResult.CONDITIONAL, resource_type, criteria)

    @property
    def is_denied(self) -> bool:
        return self.result is AuthorizeResult.DENY


@dataclass(frozen=True)
class Identity:
    """The acting user as resolved by the caller."""

    user_ref: str


@dataclass(frozen=True)
class PolicyQuery:
    """A request to perform ``action`` on a resource of ``resource_type``."""

    action: Action
    resource_type: ResourceType
    attributes: Mapping[str, Any] = field(default_factory=dict, hash=False)


Handler = Callable[[PolicyQuery, Identity | None], Decision]


def allow(query: PolicyQuery, identity: Identity | None) -> Decision:
    return Decision.allow()


def deny(query: PolicyQuery, identity: Identity | None) -> Decision:
    return Decision.deny()


class PolicyTable:
    """Routing table from ``(action, resource type)`` to a decision handler.

    Any pair without a route resolves to :func:`deny`.
    """

    def __init__(self, routes: Mapping[tuple[Action, ResourceType], Handler] | None = None) -> None:
        self._routes: dict[tuple[Action, ResourceType], Handler] = dict(routes or {})

    def route(self, action: Action, resource_type: ResourceType) -> Handler:
        return self._routes.get((action, resource_type), deny)

    def with_routes(self, routes: Mapping[tuple[Action, ResourceType], Handler]) -> PolicyTable:
        """Return a copy of this table with ``routes`` replacing existing entries."""
        merged = dict(self._routes)
        merged.update(routes)
        return PolicyTable(merged)

    def routes(self) -> dict[tuple[Action, ResourceType], Handler]:
        return dict(self._routes)


class DecisionPolicy:
    """Pure decision function backed by a swappable :class:`PolicyTable`."""

    def __init__(self, table: PolicyTable | None = None) -> None:
        if table is None:
            table = default_policy_table(settings.permission_entity_refs)
        self.table = table

    def decide(
        self,
        action: Action | str,
        resource_type: ResourceType | str,
        identity: Identity | None = None,
        attributes: Mapping[str, Any] | None = None,
    ) -> Decision:
        """Return the decision for ``action`` on ``resource_type``; never raises."""
        try:
            query = PolicyQuery(Action(action), ResourceType(resource_type), dict(attributes or {}))
        except ValueError:
            logger.warning("Denying unknown permission %s on %s", action, resource_type)
            return Decision.deny()

        handler = self.table.route(query.action, query.resource_type)
        try:
            return handler(query, identity)
        except Exception:
            logger.error(
                "Policy handler failed for %s %s; denying",
                query.action.value,
                query.resource_type.value,
                exc_info=True,
            )
            return Decision.deny()


# Default routing ----------------------------------------------------------


def _ownership_criteria(
    resource_type: ResourceType,
    identity: Identity,
    entity_refs: Sequence[str],
) -> Criteria:
    # One leaf per curated entity: each leaf requires ALL of its refs to be attached.
    return any_of(
        is_author(resource_type, identity.user_ref),
        *(has_entities(resource_type, [ref]) for ref in entity_refs),
    )


def post_owner_route(entity_refs: Sequence[str] = ()) -> Handler:
    def route(query: PolicyQuery, identity: Identity | None) -> Decision:
        if identity is None:
            return Decision.deny()
        return Decision.conditional(
            ResourceType.POST,
            _ownership_criteria(ResourceType.POST, identity, entity_refs),
        )

    return route


def answer_owner_route(entity_refs: Sequence[str] = ()) -> Handler:
    def route(query: PolicyQuery, identity: Identity | None) -> Decision:
        if identity is None:
            return Decision.deny()
        return Decision.conditional(
            ResourceType.ANSWER,
            _ownership_criteria(ResourceType.ANSWER, identity, entity_refs),
        )

    return route


def comment_owner_route(query: PolicyQuery, identity: Identity | None) -> Decision:
    # Comments are never entity-curated: authors only.
    if identity is None:
        return Decision.deny()
    return Decision.conditional(
        ResourceType.COMMENT,
        all_of(is_author(ResourceType.COMMENT, identity.user_ref)),
    )


def collection_update_route(query: PolicyQuery, identity: Identity | None) -> Decision:
    if identity is None:
        return Decision.deny()
    return Decision.conditional(
        ResourceType.COLLECTION,
        any_of(
            is_author(ResourceType.COLLECTION, identity.user_ref),
            has_edit_access("public"),
        ),
    )


def collection_delete_route(query: PolicyQuery, identity: Identity | None) -> Decision:
    if identity is None:
        return Decision.deny()
    return Decision.conditional(
        ResourceType.COLLECTION,
        all_of(is_author(ResourceType.COLLECTION, identity.user_ref)),
    )


def default_policy_table(entity_refs: Iterable[str] = ()) -> PolicyTable:
    """Create/read are open; update/delete are ownership-gated."""
    refs = tuple(entity_refs)
    routes: dict[tuple[Action, ResourceType], Handler] = {}
    for resource_type in ResourceType:
        routes[(Action.CREATE, resource_type)] = allow
        routes[(Action.READ, resource_type)] = allow

    for action in (Action.UPDATE, Action.DELETE):
        routes[(action, ResourceType.POST)] = post_owner_route(refs)
        routes[(action, ResourceType.ANSWER)] = answer_owner_route(refs)
        routes[(action, ResourceType.COMMENT)] = comment_owner_route

    routes[(Action.UPDATE, ResourceType.COLLECTION)] = collection_update_route
    routes[(Action.DELETE, ResourceType.COLLECTION)] = collection_delete_route
    return PolicyTable(routes)


# Alternate tables ---------------------------------------------------------


def own_posts_only_table(base: PolicyTable | None = None) -> PolicyTable:
    """Users only see posts they wrote."""

    def route(query: PolicyQuery, identity: Identity | None) -> Decision:
        if identity is None:
            return Decision.deny()
        return Decision.conditional(
            ResourceType.POST,
            all_of(is_author(ResourceType.POST, identity.user_ref)),
        )

    return (base or default_policy_table()).with_routes({(Action.READ, ResourceType.POST): route})


def tag_restricted_table(tags: Sequence[str], base: PolicyTable | None = None) -> PolicyTable:
    """Only posts carrying all of ``tags`` can be seen, edited or deleted."""
    restricted = tuple(tags)

    def route(query: PolicyQuery, identity: Identity | None) -> Decision:
        if identity is None and query.action is not Action.READ:
            return Decision.deny()
        return Decision.conditional(
            ResourceType.POST,
            all_of(has_tags(ResourceType.POST, restricted)),
        )

    return (base or default_policy_table()).with_routes(
        {(action, ResourceType.POST): route for action in (Action.READ, Action.UPDATE, Action.DELETE)}
    )


def entity_restricted_table(entity_refs: Sequence[str], base: PolicyTable | None = None) -> PolicyTable:
    """Only posts associated with all of ``entity_refs`` can be seen."""
    refs = tuple(entity_refs)

    def route(query: PolicyQuery, identity: Identity | None) -> Decision:
        return Decision.conditional(
            ResourceType.POST,
            all_of(has_entities(ResourceType.POST, refs)),
        )

    return (base or default_policy_table()).with_routes({(Action.READ, ResourceType.POST): route})


def creation_disabled_table(
    resource_types: Iterable[ResourceType],
    base: PolicyTable | None = None,
) -> PolicyTable:
    """Deny creation of the given resource kinds, e.g. to freeze posting."""
    return (base or default_policy_table()).with_routes(
        {(Action.CREATE, resource_type): deny for resource_type in resource_types}
    )


@lru_cache
def get_decision_policy() -> DecisionPolicy:
    """Return the process-wide policy built from settings."""
    return DecisionPolicy()
