# src/quorum/permissions/__init__.py
"""Authorization: criteria trees, store rules and the decision policy."""

from .criteria import AllOf, AnyOf, Condition, Criteria, all_of, any_of, parse_criteria, to_payload
from .policy import (
    Action,
    AuthorizeResult,
    Decision,
    DecisionPolicy,
    Identity,
    PolicyQuery,
    PolicyTable,
    ResourceType,
    get_decision_policy,
)
from .rules import RuleRegistry, default_rule_registry

__all__ = [
    "AllOf", "AnyOf", "Condition", "Criteria", "all_of", "any_of", "parse_criteria", "to_payload",
    "Action", "AuthorizeResult", "Decision", "DecisionPolicy", "Identity", "PolicyQuery",
    "PolicyTable", "ResourceType", "get_decision_policy",
    "RuleRegistry", "default_rule_registry",
]
