"""
ReadSync Backend — Supabase Auth Service Implementation
========================================================

What:  Concrete IdentityProvider backed by the Supabase Auth (GoTrue) SDK.
How:   One AsyncGoTrueClient per process, pointed at `<SUPABASE_URL>/auth/v1`
       with the project's anon key. The SDK runs on an httpx.AsyncClient we
       own, so the timeout (and, in tests, the transport) is ours to set.
Who:   Built once in create_app() and injected into handlers via app.state.

SDK calls used:
    sign_up(...)                  → sign_up
    sign_in_with_password(...)    → sign_in_with_password
    get_user(jwt)                 → get_user
    GET /health (no SDK wrapper)  → health_check

Error translation (supabase_auth.errors → IdentityProviderError):
    AuthApiError (4xx)            → status_code=4xx, provider message
    AuthRetryableError (network)  → status_code=None
    AuthRetryableError (502-504)  → status_code=5xx

No retries: every failure is reported to the caller in the same request.
The client never persists or refreshes sessions; it is shared by all
requests and must stay stateless.
"""

import logging
import time
from typing import Any, Dict, Optional

import httpx
from supabase_auth import AsyncGoTrueClient
from supabase_auth.errors import AuthError as SupabaseAuthError

from readsync.config import Settings
from readsync.exceptions import IdentityProviderError
from readsync.services.identity_base import AuthSession, AuthUser, IdentityProvider

logger = logging.getLogger(__name__)


def _to_auth_user(user: Any) -> Optional[AuthUser]:
    if user is None or not getattr(user, "id", None):
        return None
    return AuthUser(
        id=str(user.id),
        email=user.email,
        user_metadata=dict(user.user_metadata or {}),
    )


def _translate(error: SupabaseAuthError, operation: str) -> IdentityProviderError:
    # The SDK reports transport failures with status 0
    status = getattr(error, "status", None) or None
    if status is None or status >= 500:
        logger.error("Identity provider %s failed: %s", operation, error.message)
    return IdentityProviderError(
        message=error.message,
        status_code=status,
        context={"operation": operation, "error_type": type(error).__name__},
    )


class SupabaseAuthService(IdentityProvider):
    """IdentityProvider over supabase_auth.AsyncGoTrueClient."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.auth_url = f"{self.base_url}/auth/v1"
        self._api_key = api_key
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._client = AsyncGoTrueClient(
            url=self.auth_url,
            headers={"apikey": api_key, "Authorization": f"Bearer {api_key}"},
            auto_refresh_token=False,
            persist_session=False,
            http_client=self._http,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseAuthService":
        service = cls(
            base_url=settings.supabase_url,
            api_key=settings.supabase_anon_key,
            timeout=settings.identity_timeout,
        )
        logger.info("SupabaseAuthService initialized for %s", service.auth_url)
        return service

    async def sign_up(
        self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[AuthUser]:
        try:
            response = await self._client.sign_up(
                {"email": email, "password": password, "options": {"data": metadata or {}}}
            )
        except SupabaseAuthError as e:
            raise _translate(e, "sign_up")
        # None when the project hides the user until the email is confirmed
        return _to_auth_user(response.user)

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        start_time = time.perf_counter()
        try:
            response = await self._client.sign_in_with_password(
                {"email": email, "password": password}
            )
        except SupabaseAuthError as e:
            raise _translate(e, "sign_in_with_password")

        session = response.session
        user = _to_auth_user(response.user or (session.user if session else None))
        if session is None or user is None:
            raise IdentityProviderError(
                message="Identity provider returned no session",
                context={"operation": "sign_in_with_password"},
            )
        logger.debug(
            "Password sign-in took %.0fms", (time.perf_counter() - start_time) * 1000
        )
        return AuthSession(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            user=user,
        )

    async def get_user(self, token: str) -> Optional[AuthUser]:
        try:
            response = await self._client.get_user(token)
        except SupabaseAuthError as e:
            error = _translate(e, "get_user")
            if error.is_rejection:
                return None
            raise error
        return _to_auth_user(response.user if response else None)

    async def health_check(self) -> bool:
        try:
            response = await self._http.get(
                f"{self.auth_url}/health", headers={"apikey": self._api_key}
            )
        except httpx.HTTPError as e:
            logger.warning("Identity provider health check failed: %s", str(e))
            return False
        if response.is_error:
            logger.warning("Identity provider health check returned %d", response.status_code)
            return False
        return True

    async def aclose(self) -> None:
        await self._http.aclose()
