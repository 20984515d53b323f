# src/taskpilot/auth/identity.py

from __future__ import annotations

import logging

from jose import JWTError, jwt

from ..core.errors import ConfigurationError, InvalidCredentialsError, UnauthenticatedError

logger = logging.getLogger(__name__)


def _strip_bearer(credentials: str) -> str:
    token = credentials.strip()
    scheme, _, rest = token.partition(" ")
    if rest and scheme.lower() == "bearer":
        return rest.strip()
    return token


class JWTIdentityProvider:
    """
    Bearer token -> owner id.

    Tokens are issued elsewhere; this only verifies signature/expiry and reads
    the subject. `sub` is preferred, `userId` is accepted for tokens minted by
    older clients.
    """

    def __init__(self, secret: str | None, algorithm: str = "HS256") -> None:
        if not secret or not secret.strip():
            raise ConfigurationError("JWT secret is not set. Set TASKPILOT_JWT_SECRET.")
        self._secret = secret
        self._algorithm = algorithm

    def resolve(self, credentials: str | None) -> str:
        if not credentials or not credentials.strip():
            raise UnauthenticatedError()

        token = _strip_bearer(credentials)
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_aud": False},
            )
        except JWTError as e:
            logger.info("JWT verification failed: %s", e)
            raise InvalidCredentialsError() from e

        subject = payload.get("sub")
        if subject is None:
            subject = payload.get("userId")
        if subject is None or str(subject).strip() == "":
            logger.info("JWT has no subject claim")
            raise InvalidCredentialsError("Token has no subject")

        return str(subject)


class StaticIdentityProvider:
    """Single-user identity for the local console: any (or no) credentials map to one owner."""

    def __init__(self, owner_id: str) -> None:
        if not owner_id or not owner_id.strip():
            raise ConfigurationError("Console user id must not be empty.")
        self._owner_id = owner_id.strip()

    def resolve(self, credentials: str | None) -> str:
        return self._owner_id
