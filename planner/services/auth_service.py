"""Authentication service for account registration and session token operations."""
from sqlalchemy.ext.asyncio import AsyncSession

from planner.core.exceptions import BadRequestError, UnauthorizedError
from planner.core.logging import logger
from planner.core.security import (
    create_access_token,
    create_mobile_token,
    create_refresh_token,
    decode_token,
    hash_password,
    revoke_token,
    validate_password,
    verify_password,
)
from planner.db.models.user import User
from planner.db.repositories.users import create_user, find_by_email_or_username, get_user_by_email
from planner.schemas import LoginRequest, RegisterRequest


class AuthService:
    """
    Service layer for authentication operations.

    Handles registration, login, token refresh, logout and the issuing of
    mobile bearer tokens.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def register(self, payload: RegisterRequest) -> User:
        """
        Register a new user with password validation.

        Args:
            payload: Registration data containing email, password, username and name

        Returns:
            Created user object

        Raises:
            BadRequestError: If the password is weak or the email or username is taken
        """
        try:
            validate_password(payload.password)
        except ValueError as e:
            raise BadRequestError(str(e))

        existing = await find_by_email_or_username(self.session, payload.email, payload.username)
        if existing:
            raise BadRequestError("Email or username already registered")

        user = await create_user(
            self.session,
            username=payload.username,
            email=payload.email,
            name=payload.name,
            hashed_password=hash_password(payload.password),
        )
        logger.info(f"Registered user {user.id} ({user.username})")
        return user

    async def login(self, form_data: LoginRequest) -> dict:
        """
        Authenticate a user and issue access and refresh tokens.

        Raises:
            UnauthorizedError: If the credentials are invalid
        """
        user = await get_user_by_email(self.session, form_data.email)
        if not user or not verify_password(form_data.password, user.hashed_password):
            raise UnauthorizedError("Incorrect credentials")

        token_data = {"sub": str(user.id), "username": user.username}
        return {
            "access_token": create_access_token(token_data),
            "refresh_token": create_refresh_token(token_data),
            "token_type": "bearer",
        }

    async def refresh_access_token(self, refresh_token: str) -> dict:
        """
        Issue a new access token from a valid refresh token.

        Raises:
            UnauthorizedError: If the refresh token is invalid or of the wrong type
        """
        try:
            token_data = decode_token(refresh_token)
        except ValueError:
            raise UnauthorizedError("Invalid refresh token")

        if token_data.get("type") != "refresh":
            raise UnauthorizedError("Invalid token type")

        user_data = {"sub": token_data["sub"], "username": token_data.get("username")}
        return {
            "access_token": create_access_token(user_data),
            "token_type": "bearer",
        }

    async def logout(self, token: str) -> None:
        await revoke_token(token)

    def issue_mobile_token(self, user: User) -> dict:
        """Bearer token for the mobile client carrying the user's id and handle."""
        claims = {"id": str(user.id), "username": user.username, "name": user.name}
        return {"token": create_mobile_token(str(user.id), claims), "token_type": "bearer"}
