"""
ReadSync Backend — Auth Service (register / login)
===================================================

What:  Thin business layer over the identity provider for account creation
       and password sign-in.
How:   Validates input locally first (no provider call for bad input), then
       translates provider refusals into client errors:

    register:  "already registered" → ConflictError (409)
               other refusal        → ValidationError (400)
    login:     any refusal          → AuthError (401)
    either:    outage / 5xx         → IdentityProviderError (500)
"""

import logging

from readsync.config import settings
from readsync.exceptions import (
    AuthError,
    ConflictError,
    IdentityProviderError,
    ValidationError,
)
from readsync.schemas.auth import LoginData, RegisterData, UserData
from readsync.services.identity_base import IdentityProvider

logger = logging.getLogger(__name__)

PROVIDER_BAD_CREDENTIALS = "Invalid login credentials"


class AuthService:
    """Register and log in users through an injected IdentityProvider."""

    def __init__(self, min_password_length: int = 6):
        self.min_password_length = min_password_length

    async def register(
        self, identity: IdentityProvider, name: str, email: str, password: str
    ) -> RegisterData:
        """
        Create an account and return the public user fields.

        Raises:
            ValidationError: Missing field, short password, or provider refusal
            ConflictError: Email already registered
            IdentityProviderError: Provider unreachable
        """
        if not name or not email or not password:
            raise ValidationError(message="Name, email and password are all required")
        if len(password) < self.min_password_length:
            raise ValidationError(
                message=f"Password must be at least {self.min_password_length} characters",
                field="password",
            )

        try:
            user = await identity.sign_up(email, password, metadata={"name": name})
        except IdentityProviderError as e:
            if not e.is_rejection:
                raise
            if "already registered" in e.message:
                raise ConflictError(message="This email is already registered")
            raise ValidationError(message=e.message)

        logger.info("Registered new user %s", user.id if user else "(pending confirmation)")
        return RegisterData(
            id=user.id if user else "",
            email=(user.email if user and user.email else email),
            name=name,
        )

    async def login(self, identity: IdentityProvider, email: str, password: str) -> LoginData:
        """
        Sign in with email and password.

        Raises:
            ValidationError: Missing email or password
            AuthError: Credentials refused
            IdentityProviderError: Provider unreachable
        """
        if not email or not password:
            raise ValidationError(message="Email and password are both required")

        try:
            session = await identity.sign_in_with_password(email, password)
        except IdentityProviderError as e:
            if not e.is_rejection:
                raise
            message = (
                "Invalid email or password"
                if e.message == PROVIDER_BAD_CREDENTIALS
                else e.message
            )
            raise AuthError(message=message, reason="invalid_credentials")

        user = session.user
        return LoginData(
            token=session.access_token,
            refresh_token=session.refresh_token,
            user=UserData(id=user.id, email=user.email or email, name=user.display_name),
        )


auth_service = AuthService(min_password_length=settings.min_password_length)
