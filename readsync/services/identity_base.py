"""
ReadSync Backend — Abstract Identity Provider Interface
========================================================

What:  Abstract base class defining the contract for the identity provider.
Why:   Registration, login and token verification are delegated to a hosted
       auth service. Routes and the auth guard depend on this interface only,
       so tests inject an in-memory provider and production uses Supabase.
How:   Concrete implementations inherit from IdentityProvider.
Who:   AuthService (register/login) and the auth guard (token verification).
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class AuthUser(BaseModel):
    """A user as reported by the identity provider."""

    model_config = ConfigDict(extra="ignore")

    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def display_name(self) -> str:
        """Registered name, falling back to the local part of the email."""
        name = self.user_metadata.get("name")
        if name:
            return str(name)
        return (self.email or "").split("@")[0]


class AuthSession(BaseModel):
    """Tokens issued on a successful password sign-in."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: str
    user: AuthUser


class IdentityProvider(ABC):
    """
    Abstract interface to the hosted identity service.

    Contract:
        - One network round-trip per call; no caching and no retries
        - Upstream refusals raise IdentityProviderError with the upstream
          4xx status and the provider's own message
        - Transport failures and 5xx answers raise IdentityProviderError
          with status_code None or >= 500

    Implementations:
        - SupabaseAuthService: Supabase Auth (GoTrue) over HTTPS
    """

    @abstractmethod
    async def sign_up(
        self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[AuthUser]:
        """
        Create a user account.

        Returns:
            The created user. Providers that hide the user until the email is
            confirmed may return None.
        """
        ...

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """Exchange credentials for an access/refresh token pair."""
        ...

    @abstractmethod
    async def get_user(self, token: str) -> Optional[AuthUser]:
        """
        Resolve a bearer token to its user.

        Returns:
            The user, or None when the provider rejects the token.

        Raises:
            IdentityProviderError: The provider could not be consulted.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """True if the provider is reachable and answering."""
        ...

    async def aclose(self) -> None:
        """Release network resources. Default: nothing to release."""
        return None
