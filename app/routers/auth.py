"""Registration and login routes."""

import logging

from fastapi import APIRouter, status

from app.dependencies import AuthServiceDep
from app.models.schemas import (
    AuthResponse,
    ErrorResponse,
    LoginRequest,
    PublicUser,
    RegisterRequest,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid payload or duplicate email"},
        429: {"model": ErrorResponse, "description": "Too many requests"}
    }
)
async def register(body: RegisterRequest, auth_service: AuthServiceDep) -> AuthResponse:
    """
    Register a new user.

    Returns:
        AuthResponse with a fresh token and the public user fields

    Raises:
        DuplicateUserError: If the email is already registered
    """
    logger.info(f"Registration request for {body.email}")

    token, user = await auth_service.register(body.email, body.password, body.name)

    return AuthResponse(
        message="User registered successfully",
        token=token,
        user=PublicUser(**user.to_public_dict())
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid payload"},
        401: {"model": ErrorResponse, "description": "Invalid email or password"},
        429: {"model": ErrorResponse, "description": "Too many requests"}
    }
)
async def login(body: LoginRequest, auth_service: AuthServiceDep) -> AuthResponse:
    """
    Log in with email and password.

    Raises:
        InvalidCredentialsError: If the credentials do not match
    """
    token, user = await auth_service.login(body.email, body.password)

    return AuthResponse(
        message="Login successful",
        token=token,
        user=PublicUser(**user.to_public_dict())
    )
