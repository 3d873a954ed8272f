# mypy: ignore-errors
# tests/test_permissions.py
"""Tests for criteria trees, permission rules and the decision policy."""

from __future__ import annotations

import pytest

from quorum.core.exceptions import InvalidInputError
from quorum.permissions import (
    Action,
    AllOf,
    AnyOf,
    AuthorizeResult,
    Condition,
    DecisionPolicy,
    Identity,
    PolicyTable,
    ResourceType,
    all_of,
    any_of,
    default_rule_registry,
    parse_criteria,
    to_payload,
)
from quorum.permissions.policy import (
    creation_disabled_table,
    default_policy_table,
    entity_restricted_table,
    own_posts_only_table,
    tag_restricted_table,
)
from quorum.permissions.rules import has_entities, has_read_access, has_tags, is_author
from quorum.repositories.options import PostOptions

ALICE = "user:default/alice"
BOB = "user:default/bob"
ENTITY_X = "component:default/x"
ENTITY_Y = "component:default/y"


def _policy(entity_refs=()) -> DecisionPolicy:
    return DecisionPolicy(default_policy_table(entity_refs))


def test_parse_and_serialise_nested_tree() -> None:
    """Payloads nest combinators arbitrarily and survive a round trip."""
    payload = {
        "anyOf": [
            {"rule": "IS_AUTHOR", "resourceType": "post", "params": {"user_ref": ALICE}},
            {"allOf": [
                {"rule": "HAS_ENTITIES", "resourceType": "post", "params": {"entity_refs": [ENTITY_X]}},
                {"rule": "HAS_TAGS", "resourceType": "post", "params": {"tags": ["deploy"]}},
            ]},
        ]
    }
    criteria = parse_criteria(payload)

    assert isinstance(criteria, AnyOf)
    assert isinstance(criteria.criteria[1], AllOf)
    assert criteria.criteria[0] == Condition("IS_AUTHOR", "post", {"user_ref": ALICE})
    assert to_payload(criteria) == payload


@pytest.mark.parametrize(
    "payload",
    [
        {"rule": "IS_AUTHOR"},
        {"anyOf": {"rule": "IS_AUTHOR", "resourceType": "post"}},
        {"rule": "IS_AUTHOR", "resourceType": "post", "params": ["x"]},
    ],
)
def test_parse_rejects_malformed_nodes(payload) -> None:
    """Malformed criteria are reported as invalid input."""
    with pytest.raises(InvalidInputError):
        parse_criteria(payload)


def test_in_memory_evaluation_of_combinators(make_post) -> None:
    """Empty allOf holds, empty anyOf does not, leaves combine as expected."""
    registry = default_rule_registry()
    post = make_post(entities=[ENTITY_X], tags=["deploy"])

    assert registry.matches(all_of(), ResourceType.POST, post)
    assert not registry.matches(any_of(), ResourceType.POST, post)
    assert registry.matches(
        all_of(is_author(ResourceType.POST, ALICE), has_tags(ResourceType.POST, ["deploy"])),
        ResourceType.POST,
        post,
    )
    assert not registry.matches(
        all_of(is_author(ResourceType.POST, BOB), has_tags(ResourceType.POST, ["deploy"])),
        ResourceType.POST,
        post,
    )


def test_entity_leaf_requires_every_listed_entity(make_post, store) -> None:
    """One HAS_ENTITIES leaf is conjunctive over its list; an empty list matches nothing."""
    post = make_post(entities=[ENTITY_X])
    registry = default_rule_registry()

    both = has_entities(ResourceType.POST, [ENTITY_X, ENTITY_Y])
    either = any_of(has_entities(ResourceType.POST, [ENTITY_X]), has_entities(ResourceType.POST, [ENTITY_Y]))
    empty = has_entities(ResourceType.POST, [])

    for criteria, expected in ((both, False), (either, True), (empty, False)):
        assert registry.matches(criteria, ResourceType.POST, post) is expected
        assert store.matches_criteria(ResourceType.POST, post.id, criteria) is expected


def test_criteria_for_another_resource_kind_is_rejected() -> None:
    """A post leaf cannot filter answers."""
    registry = default_rule_registry()
    with pytest.raises(InvalidInputError):
        registry.to_clause(is_author(ResourceType.POST, ALICE), ResourceType.ANSWER)


def test_create_and_read_are_allowed_without_identity() -> None:
    """Create and read need no identity under the default table."""
    policy = _policy()
    for resource_type in ResourceType:
        assert policy.decide(Action.READ, resource_type).result is AuthorizeResult.ALLOW
        assert policy.decide(Action.CREATE, resource_type).result is AuthorizeResult.ALLOW


@pytest.mark.parametrize("resource_type", list(ResourceType))
@pytest.mark.parametrize("action", [Action.UPDATE, Action.DELETE])
def test_mutations_without_identity_are_denied(action, resource_type) -> None:
    """Update and delete without an identity are denied for every kind."""
    assert _policy().decide(action, resource_type, None).result is AuthorizeResult.DENY


def test_unknown_action_or_resource_is_denied() -> None:
    """Unrecognised pairs fall through to deny without raising."""
    policy = _policy()
    assert policy.decide("publish", "post", Identity(ALICE)).result is AuthorizeResult.DENY
    assert policy.decide("read", "wiki", Identity(ALICE)).result is AuthorizeResult.DENY
    assert DecisionPolicy(PolicyTable()).decide(Action.READ, ResourceType.POST).is_denied


def test_failing_handler_is_denied() -> None:
    """A handler that raises yields deny."""

    def broken(query, identity):
        raise RuntimeError("boom")

    policy = DecisionPolicy(PolicyTable({(Action.READ, ResourceType.POST): broken}))
    assert policy.decide(Action.READ, ResourceType.POST).result is AuthorizeResult.DENY


def test_comment_mutation_never_grants_entity_bypass() -> None:
    """Comments are gated on authorship only, even with curated entities configured."""
    decision = _policy([ENTITY_X]).decide(Action.DELETE, ResourceType.COMMENT, Identity(BOB))
    assert decision.result is AuthorizeResult.CONDITIONAL
    assert decision.criteria == all_of(is_author(ResourceType.COMMENT, BOB))


@pytest.mark.parametrize(
    ("caller", "entity_refs", "allowed"),
    [
        (ALICE, [], True),
        (BOB, [ENTITY_X], True),
        (BOB, [ENTITY_Y], False),
    ],
)
def test_post_update_author_or_curated_entity(make_post, store, caller, entity_refs, allowed) -> None:
    """Author match or entity membership each suffice; neither means no access."""
    post = make_post(user_ref=ALICE, entities=[ENTITY_X])
    decision = _policy(entity_refs).decide(Action.UPDATE, ResourceType.POST, Identity(caller))

    assert decision.result is AuthorizeResult.CONDITIONAL
    assert store.matches_criteria(ResourceType.POST, post.id, decision.criteria) is allowed
    assert default_rule_registry().matches(decision.criteria, ResourceType.POST, post) is allowed


def test_conditional_answer_criteria_follow_the_question(make_post, store) -> None:
    """Answer entity leaves look at the answered question's entities."""
    post = make_post(entities=[ENTITY_X])
    answer = store.answer_post(user_ref=ALICE, post_id=post.id, content="Use the CLI.")

    curated = _policy([ENTITY_X]).decide(Action.UPDATE, ResourceType.ANSWER, Identity(BOB))
    uncurated = _policy([ENTITY_Y]).decide(Action.UPDATE, ResourceType.ANSWER, Identity(BOB))

    assert store.matches_criteria(ResourceType.ANSWER, answer.id, curated.criteria)
    assert not store.matches_criteria(ResourceType.ANSWER, answer.id, uncurated.criteria)


def test_own_posts_only_table_filters_listing(make_post, store) -> None:
    """The alternate table restricts reads to the caller's own posts."""
    make_post(user_ref=ALICE, title="Alice asks")
    make_post(user_ref=BOB, title="Bob asks")

    policy = DecisionPolicy(own_posts_only_table())
    decision = policy.decide(Action.READ, ResourceType.POST, Identity(BOB))
    result = store.get_posts(BOB, PostOptions(), decision.criteria)

    assert [post.author for post in result.posts] == [BOB]
    assert result.total == 1
    assert policy.decide(Action.READ, ResourceType.POST, None).is_denied


def test_tag_restricted_table_pushes_down_tags(make_post, store) -> None:
    """Only posts with every restricted tag are visible."""
    make_post(tags=["deploy", "k8s"])
    make_post(tags=["deploy"])

    decision = DecisionPolicy(tag_restricted_table(["deploy", "k8s"])).decide(
        Action.READ, ResourceType.POST, None
    )
    result = store.get_posts(ALICE, PostOptions(), decision.criteria)

    assert result.total == 1
    assert result.posts[0].tag_names == ["deploy", "k8s"]


def test_tag_leaf_matches_stored_tags_case_insensitively(make_post, store) -> None:
    """Configured tags are normalised the way post tags are stored."""
    tagged = make_post(tags=["Deploy", "k8s"])
    make_post(tags=["helm"])
    answer = store.answer_post(user_ref=BOB, post_id=tagged.id, content="Use the chart")

    decision = DecisionPolicy(tag_restricted_table([" Deploy", "K8S"])).decide(
        Action.READ, ResourceType.POST, None
    )
    result = store.get_posts(ALICE, PostOptions(), decision.criteria)

    assert [post.id for post in result.posts] == [tagged.id]
    assert default_rule_registry().matches(decision.criteria, ResourceType.POST, tagged)

    answer_leaf = has_tags(ResourceType.ANSWER, ["DEPLOY"])
    assert store.matches_criteria(ResourceType.ANSWER, answer.id, answer_leaf)
    assert default_rule_registry().matches(answer_leaf, ResourceType.ANSWER, answer)


def test_creation_disabled_table_only_touches_create() -> None:
    """Disabling creation leaves reads and other kinds alone."""
    policy = DecisionPolicy(creation_disabled_table([ResourceType.POST]))

    assert policy.decide(Action.CREATE, ResourceType.POST, Identity(ALICE)).is_denied
    assert policy.decide(Action.CREATE, ResourceType.ANSWER, Identity(ALICE)).result is AuthorizeResult.ALLOW
    assert policy.decide(Action.READ, ResourceType.POST).result is AuthorizeResult.ALLOW


def test_collection_update_admits_public_edit_access(store) -> None:
    """Anyone may edit a publicly editable collection; only the owner may delete it."""
    shared = store.create_collection(user_ref=ALICE, title="Shared", edit_access="public")
    private = store.create_collection(user_ref=ALICE, title="Mine")
    policy = _policy()

    update = policy.decide(Action.UPDATE, ResourceType.COLLECTION, Identity(BOB))
    delete = policy.decide(Action.DELETE, ResourceType.COLLECTION, Identity(BOB))

    assert store.matches_criteria(ResourceType.COLLECTION, shared.id, update.criteria)
    assert not store.matches_criteria(ResourceType.COLLECTION, private.id, update.criteria)
    assert not store.matches_criteria(ResourceType.COLLECTION, shared.id, delete.criteria)


def test_entity_restricted_table_limits_reads(make_post, store) -> None:
    """Readers only see posts about the configured entities."""
    about_x = make_post(entities=[ENTITY_X])
    make_post(entities=[ENTITY_Y])

    decision = DecisionPolicy(entity_restricted_table([ENTITY_X])).decide(
        Action.READ, ResourceType.POST, Identity(BOB)
    )
    result = store.get_posts(BOB, PostOptions(), decision.criteria)

    assert [post.id for post in result.posts] == [about_x.id]


def test_read_access_rule_on_collections(store) -> None:
    """The read-access leaf filters collections in SQL and in memory alike."""
    public = store.create_collection(user_ref=ALICE, title="Open", read_access="public")
    private = store.create_collection(user_ref=ALICE, title="Closed")
    criteria = has_read_access("public")
    registry = default_rule_registry()

    assert store.matches_criteria(ResourceType.COLLECTION, public.id, criteria)
    assert not store.matches_criteria(ResourceType.COLLECTION, private.id, criteria)
    assert registry.matches(criteria, ResourceType.COLLECTION, public)
    assert not registry.matches(criteria, ResourceType.COLLECTION, private)
