"""Shared API dependencies for caller identity, authorization and services."""

from typing import Annotated, Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from quorum.core.settings import settings
from quorum.db.session import get_db
from quorum.permissions import (
    Action,
    AuthorizeResult,
    Criteria,
    DecisionPolicy,
    Identity,
    ResourceType,
    get_decision_policy,
)
from quorum.repositories.store import ContentStore
from quorum.services.notifications import NotificationManager
from quorum.services.transport import get_notification_transport

# Identity is optional: anonymous callers still reach read routes.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]

ANONYMOUS_VIEWER = "anonymous"


def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Identity | None:
    """Resolve the caller from a bearer JWT whose ``sub`` is a user reference.

    Returns:
        The caller identity, or ``None`` when no token was sent.

    Raises:
        HTTPException: If a token was sent but cannot be validated.
    """
    if credentials is None:
        return None
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    subject = payload.get("sub")
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    return Identity(user_ref=str(subject))


IdentityDep = Annotated[Identity | None, Depends(get_current_identity)]


def require_identity(identity: IdentityDep) -> Identity:
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return identity


CurrentIdentityDep = Annotated[Identity, Depends(require_identity)]


def get_store(db: SessionDep) -> ContentStore:
    return ContentStore(db)


def get_policy() -> DecisionPolicy:
    return get_decision_policy()


def get_notifier() -> NotificationManager:
    return NotificationManager(get_notification_transport())


StoreDep = Annotated[ContentStore, Depends(get_store)]
PolicyDep = Annotated[DecisionPolicy, Depends(get_policy)]
NotifierDep = Annotated[NotificationManager, Depends(get_notifier)]


def viewer_of(identity: Identity | None) -> str:
    return identity.user_ref if identity is not None else ANONYMOUS_VIEWER


def authorize(
    policy: DecisionPolicy,
    action: Action,
    resource_type: ResourceType,
    identity: Identity | None,
    **attributes: Any,
) -> Criteria | None:
    """Ask the policy; return criteria for conditional decisions.

    Raises:
        HTTPException: 403 when the decision is deny.
    """
    decision = policy.decide(action, resource_type, identity, attributes)
    if decision.result is AuthorizeResult.DENY:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Not allowed to {action.value} {resource_type.value}",
        )
    if decision.result is AuthorizeResult.CONDITIONAL:
        return decision.criteria
    return None
