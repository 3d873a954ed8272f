# tests/v1/test_dependencies.py
"""Tests for API dependencies module."""

import pytest
from fastapi import HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from quorum.api.v1.dependencies import (
    ANONYMOUS_VIEWER,
    authorize,
    get_current_identity,
    require_identity,
    viewer_of,
)
from quorum.core.settings import settings
from quorum.permissions import Action, DecisionPolicy, Identity, PolicyTable, ResourceType
from quorum.permissions.policy import default_policy_table

ALICE = "user:default/alice"


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestGetCurrentIdentity:
    """Test the get_current_identity dependency function."""

    def test_no_credentials_is_anonymous(self):
        assert get_current_identity(None) is None

    def test_valid_token(self):
        token = jwt.encode({"sub": ALICE}, settings.secret_key, algorithm=settings.jwt_algorithm)

        identity = get_current_identity(_credentials(token))

        assert identity == Identity(user_ref=ALICE)

    def test_invalid_token(self):
        with pytest.raises(HTTPException) as exc_info:
            get_current_identity(_credentials("invalid_token"))

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
        assert "Could not validate credentials" in exc_info.value.detail

    def test_token_signed_with_another_key(self):
        token = jwt.encode({"sub": ALICE}, "not-the-secret", algorithm=settings.jwt_algorithm)

        with pytest.raises(HTTPException) as exc_info:
            get_current_identity(_credentials(token))

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED

    def test_token_without_subject(self):
        token = jwt.encode({"scope": "read"}, settings.secret_key, algorithm=settings.jwt_algorithm)

        with pytest.raises(HTTPException) as exc_info:
            get_current_identity(_credentials(token))

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED


class TestRequireIdentity:
    def test_anonymous_is_rejected(self):
        with pytest.raises(HTTPException) as exc_info:
            require_identity(None)

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED

    def test_identity_passes_through(self):
        identity = Identity(user_ref=ALICE)
        assert require_identity(identity) is identity
        assert viewer_of(identity) == ALICE
        assert viewer_of(None) == ANONYMOUS_VIEWER


class TestAuthorize:
    """Decisions map to no criteria, criteria, or a 403."""

    def test_allow_returns_no_criteria(self):
        policy = DecisionPolicy(default_policy_table())
        assert authorize(policy, Action.READ, ResourceType.POST, None) is None

    def test_conditional_returns_criteria(self):
        policy = DecisionPolicy(default_policy_table())
        criteria = authorize(policy, Action.UPDATE, ResourceType.POST, Identity(user_ref=ALICE))
        assert criteria is not None

    def test_deny_raises_forbidden(self):
        policy = DecisionPolicy(PolicyTable())

        with pytest.raises(HTTPException) as exc_info:
            authorize(policy, Action.READ, ResourceType.POST, None)

        assert exc_info.value.status_code == status.HTTP_403_FORBIDDEN
