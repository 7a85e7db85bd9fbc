"""Authentication routes for registration, login, logout and token management."""
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials
from typing import Optional
from planner.schemas import (
    UserOut,
    Token,
    TokenResponse,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    MobileTokenResponse,
)
from planner.services.auth_service import AuthService
from planner.db.session import get_session
from planner.db.models.user import User
from planner.auth import get_current_user, extract_session_token, security
from planner.core.config import settings
from sqlalchemy.ext.asyncio import AsyncSession
from slowapi import Limiter
from slowapi.util import get_remote_address

router = APIRouter(prefix="/auth", tags=["auth"])
limiter = Limiter(key_func=get_remote_address)


def get_auth_service(session: AsyncSession = Depends(get_session)) -> AuthService:
    return AuthService(session)


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
@limiter.limit("3/minute")
async def register(
    request: Request,
    payload: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Register a new user account.

    Rate limit: 3 requests per minute
    """
    return await auth_service.register(payload)


@router.post("/login", response_model=TokenResponse)
@limiter.limit("5/minute")
async def login(
    request: Request,
    response: Response,
    form_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Login endpoint returning access and refresh tokens.

    The access token is also set as the session cookie for browser clients.

    Rate limit: 5 requests per minute
    """
    tokens = await auth_service.login(form_data)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=tokens["access_token"],
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT == "production",
    )
    return tokens


@router.post("/refresh", response_model=Token)
@limiter.limit("10/minute")
async def refresh_access_token(
    request: Request,
    payload: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Refresh access token using refresh token.

    Rate limit: 10 requests per minute
    """
    return await auth_service.refresh_access_token(payload.refresh_token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Logout by revoking the current session token and clearing the session cookie.
    """
    await auth_service.logout(extract_session_token(request, credentials))
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response


@router.get("/me", response_model=UserOut)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/mobile/token", response_model=MobileTokenResponse)
async def issue_mobile_token(
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Issue a bearer token for the mobile client.

    The token is signed with the mobile secret and is accepted by the
    mobile endpoints only.
    """
    return auth_service.issue_mobile_token(current_user)
