"""Exception hierarchy shared by the store, policy and dispatcher layers."""

from __future__ import annotations


class QuorumError(RuntimeError):
    """Base exception for all Quorum failures."""


class ResourceNotFoundError(QuorumError):
    """Raised when a mutation targets an identifier that does not exist.

    Read lookups never raise this; they return ``None`` instead.
    """

    def __init__(self, resource_type: str, resource_id: object) -> None:
        super().__init__(f"{resource_type} {resource_id} does not exist")
        self.resource_type = resource_type
        self.resource_id = resource_id


class ForbiddenError(QuorumError):
    """Raised when ownership or permission criteria exclude the target."""


class InvariantViolationError(QuorumError):
    """Raised when a mutation would break a data model invariant."""


class InvalidInputError(QuorumError):
    """Raised for malformed input such as empty content or a bad vote value."""


class TransportError(QuorumError):
    """Raised by notification transports; always handled by the dispatcher."""
