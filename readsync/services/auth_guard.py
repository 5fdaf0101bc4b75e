"""
ReadSync Backend — Auth Guard
==============================

What:  Resolves the `Authorization` header of a request to a user.
How:   Checks the `Bearer <token>` shape locally, then asks the identity
       provider who the token belongs to. Every request re-verifies; nothing
       is cached.

The guard returns an AuthResult instead of raising. The HTTP layer
(`readsync.dependencies.require_user`) turns a failed result into a 401.
Only a provider outage (IdentityProviderError) propagates as an exception,
since that is a server failure and not an authentication outcome.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from readsync.services.identity_base import AuthUser, IdentityProvider

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


class AuthFailure(str, Enum):
    MISSING_TOKEN = "missing_token"
    INVALID_TOKEN = "invalid_token"

    @property
    def message(self) -> str:
        if self is AuthFailure.MISSING_TOKEN:
            return "Missing access token"
        return "Invalid access token"


@dataclass(frozen=True)
class AuthResult:
    user: Optional[AuthUser] = None
    failure: Optional[AuthFailure] = None

    @property
    def ok(self) -> bool:
        return self.user is not None and self.failure is None

    @classmethod
    def success(cls, user: AuthUser) -> "AuthResult":
        return cls(user=user)

    @classmethod
    def failed(cls, failure: AuthFailure) -> "AuthResult":
        return cls(failure=failure)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token part of a `Bearer <token>` header, or None."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


async def authenticate(
    authorization: Optional[str], identity: IdentityProvider
) -> AuthResult:
    """
    Authenticate a request from its Authorization header.

    Returns:
        AuthResult.success(user) when the provider accepts the token,
        AuthResult.failed(MISSING_TOKEN) when there is no usable bearer token,
        AuthResult.failed(INVALID_TOKEN) when the provider rejects it.

    Raises:
        IdentityProviderError: The provider could not be reached.
    """
    token = extract_bearer_token(authorization)
    if token is None:
        return AuthResult.failed(AuthFailure.MISSING_TOKEN)

    user = await identity.get_user(token)
    if user is None:
        logger.info("Rejected bearer token (provider returned no user)")
        return AuthResult.failed(AuthFailure.INVALID_TOKEN)

    return AuthResult.success(user)
