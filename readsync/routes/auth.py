"""
ReadSync Backend — Auth Route Handlers
=======================================

What:  POST /auth/register and POST /auth/login.
How:   Validate the body shape (pydantic), delegate to AuthService with the
       injected IdentityProvider, wrap the result in the success envelope.
       Neither route requires a bearer token.
"""

import logging

from fastapi import APIRouter, Depends

from readsync.dependencies import get_identity_provider
from readsync.schemas.auth import LoginData, LoginRequest, RegisterData, RegisterRequest
from readsync.schemas.common import ApiResponse, ErrorResponse
from readsync.services.auth_service import auth_service
from readsync.services.identity_base import IdentityProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=ApiResponse[RegisterData],
    response_model_exclude_none=True,
    responses={
        400: {"description": "Missing fields or password too short", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Register a new account",
)
async def register(
    body: RegisterRequest,
    identity: IdentityProvider = Depends(get_identity_provider),
) -> ApiResponse[RegisterData]:
    data = await auth_service.register(
        identity, name=body.name, email=body.email, password=body.password
    )
    return ApiResponse(
        message="Registration successful, please check your email for the verification link",
        data=data,
    )


@router.post(
    "/login",
    response_model=ApiResponse[LoginData],
    response_model_exclude_none=True,
    responses={
        400: {"description": "Missing fields", "model": ErrorResponse},
        401: {"description": "Bad credentials", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Log in with email and password",
)
async def login(
    body: LoginRequest,
    identity: IdentityProvider = Depends(get_identity_provider),
) -> ApiResponse[LoginData]:
    data = await auth_service.login(identity, email=body.email, password=body.password)
    return ApiResponse(message="Login successful", data=data)
