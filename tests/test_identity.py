# tests/test_identity.py

from __future__ import annotations

import time

import pytest
from jose import jwt

from taskpilot.auth.identity import JWTIdentityProvider, StaticIdentityProvider
from taskpilot.core.errors import (
    ConfigurationError,
    InvalidCredentialsError,
    UnauthenticatedError,
)

SECRET = "test-secret"


def _token(claims: dict, secret: str = SECRET) -> str:
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.fixture()
def provider() -> JWTIdentityProvider:
    return JWTIdentityProvider(SECRET)


def test_resolves_subject(provider) -> None:
    token = _token({"sub": "alice", "exp": int(time.time()) + 3600})
    assert provider.resolve(token) == "alice"
    assert provider.resolve(f"Bearer {token}") == "alice"


def test_accepts_user_id_claim(provider) -> None:
    assert provider.resolve(_token({"userId": 42})) == "42"


@pytest.mark.parametrize("credentials", [None, "", "   "])
def test_missing_credentials(provider, credentials) -> None:
    with pytest.raises(UnauthenticatedError):
        provider.resolve(credentials)


def test_bad_tokens(provider) -> None:
    expired = _token({"sub": "alice", "exp": int(time.time()) - 10})
    forged = _token({"sub": "alice"}, secret="other-secret")
    no_subject = _token({"role": "admin"})

    for token in (expired, forged, "not-a-jwt", no_subject):
        with pytest.raises(InvalidCredentialsError):
            provider.resolve(token)


def test_secret_required() -> None:
    with pytest.raises(ConfigurationError):
        JWTIdentityProvider("")


def test_static_provider() -> None:
    assert StaticIdentityProvider("local").resolve(None) == "local"
    with pytest.raises(ConfigurationError):
        StaticIdentityProvider(" ")
