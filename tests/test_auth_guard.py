"""
ReadSync Backend — Auth Guard Unit Tests
=========================================

What we test:
    ✅ Bearer header parsing (absent, wrong scheme, empty token)
    ✅ Missing token never calls the identity provider
    ✅ Provider rejection → INVALID_TOKEN result (no exception)
    ✅ Provider outage propagates as IdentityProviderError
"""

import pytest
from unittest.mock import AsyncMock

from readsync.exceptions import IdentityProviderError
from readsync.services.auth_guard import (
    AuthFailure,
    AuthResult,
    authenticate,
    extract_bearer_token,
)
from readsync.services.identity_base import AuthUser


class TestExtractBearerToken:

    def test_valid_header(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_absent_header(self):
        assert extract_bearer_token(None) is None
        assert extract_bearer_token("") is None

    def test_wrong_scheme(self):
        assert extract_bearer_token("Basic dXNlcjpwYXNz") is None
        # Prefix is case-sensitive, including the trailing space
        assert extract_bearer_token("bearer abc") is None
        assert extract_bearer_token("Bearerabc") is None

    def test_empty_token_counts_as_missing(self):
        assert extract_bearer_token("Bearer ") is None
        assert extract_bearer_token("Bearer    ") is None


class TestAuthenticate:

    def setup_method(self):
        self.user = AuthUser(id="user-1", email="reader@example.com")
        self.identity = AsyncMock()

    @pytest.mark.asyncio
    async def test_missing_header_skips_provider(self):
        result = await authenticate(None, self.identity)

        assert not result.ok
        assert result.failure is AuthFailure.MISSING_TOKEN
        assert result.failure.message == "Missing access token"
        self.identity.get_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_bearer_header_is_missing_token(self):
        result = await authenticate("Token xyz", self.identity)

        assert result.failure is AuthFailure.MISSING_TOKEN
        self.identity.get_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rejected_token_is_invalid(self):
        self.identity.get_user = AsyncMock(return_value=None)

        result = await authenticate("Bearer expired", self.identity)

        assert result == AuthResult.failed(AuthFailure.INVALID_TOKEN)
        assert result.failure.message == "Invalid access token"
        self.identity.get_user.assert_awaited_once_with("expired")

    @pytest.mark.asyncio
    async def test_accepted_token_returns_user(self):
        self.identity.get_user = AsyncMock(return_value=self.user)

        result = await authenticate("Bearer good", self.identity)

        assert result.ok
        assert result.user.id == "user-1"
        assert result.user.email == "reader@example.com"

    @pytest.mark.asyncio
    async def test_every_call_reverifies(self):
        self.identity.get_user = AsyncMock(return_value=self.user)

        await authenticate("Bearer good", self.identity)
        await authenticate("Bearer good", self.identity)

        assert self.identity.get_user.await_count == 2

    @pytest.mark.asyncio
    async def test_provider_outage_propagates(self):
        self.identity.get_user = AsyncMock(
            side_effect=IdentityProviderError(message="timeout", status_code=None)
        )

        with pytest.raises(IdentityProviderError):
            await authenticate("Bearer good", self.identity)
