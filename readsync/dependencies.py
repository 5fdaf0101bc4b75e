"""
ReadSync Backend — FastAPI Dependencies
========================================

What:  Request-scoped accessors for the process-wide collaborators.
How:   create_app() builds one IdentityProvider and stores it on app.state.
       Handlers receive it (and the authenticated user) through Depends()
       instead of importing a module-level client.
"""

from typing import Awaitable, Callable, Optional, Type, TypeVar

import pydantic
from fastapi import Depends, Header, Request
from fastapi.exceptions import RequestValidationError

from readsync.exceptions import AuthError, ValidationError
from readsync.services.auth_guard import authenticate
from readsync.services.identity_base import AuthUser, IdentityProvider

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity


async def require_user(
    authorization: Optional[str] = Header(default=None),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> AuthUser:
    """
    Resolve the caller or stop the request with 401.

    Runs before any record-store dependency, so an unauthenticated request
    never reaches the database.
    """
    result = await authenticate(authorization, identity)
    if not result.ok:
        raise AuthError(message=result.failure.message, reason=result.failure.value)
    return result.user


def authenticated_body(model: Type[ModelT]) -> Callable[..., Awaitable[ModelT]]:
    """
    Build a dependency that reads the JSON body only after require_user.

    A `body: Model` parameter would make FastAPI decode the body before any
    dependency runs, so a malformed body from an anonymous caller would get
    400 instead of 401. Errors are re-raised as RequestValidationError with
    a `body` location, the same shape FastAPI produces itself.
    """

    async def parse(request: Request, _: AuthUser = Depends(require_user)) -> ModelT:
        raw = await request.body()
        if not raw.strip():
            raise ValidationError(message="Request body is required")
        try:
            return model.model_validate_json(raw)
        except pydantic.ValidationError as e:
            errors = [
                {**error, "loc": ("body", *error["loc"])}
                for error in e.errors(include_url=False)
            ]
            raise RequestValidationError(errors, body=raw)

    return parse
