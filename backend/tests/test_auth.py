"""
Tests for bearer token verification.
"""

import pytest

from bonlog.services.auth_service import AuthService, TokenPrincipal
from bonlog.utils.exceptions import AuthenticationError


@pytest.fixture
def service() -> AuthService:
    return AuthService(secret_key="unit-test-secret", algorithm="HS256")


def test_round_trip(service):
    token = service.create_access_token("user-1")

    principal = service.decode_access_token(token)

    assert principal == TokenPrincipal(user_id="user-1", role="user")
    assert principal.is_admin is False


def test_admin_role(service):
    principal = service.decode_access_token(service.create_access_token("admin-1", role="admin"))

    assert principal.is_admin is True


def test_wrong_secret(service):
    token = AuthService(secret_key="another-secret", algorithm="HS256").create_access_token("user-1")

    with pytest.raises(AuthenticationError):
        service.decode_access_token(token)


def test_expired_token(service):
    token = service.create_access_token("user-1", expires_minutes=-1)

    with pytest.raises(AuthenticationError):
        service.decode_access_token(token)


def test_garbage_token(service):
    with pytest.raises(AuthenticationError) as exc_info:
        service.decode_access_token("not.a.token")

    assert exc_info.value.message == "Could not validate credentials"
