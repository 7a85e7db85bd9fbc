from typing import Optional
from uuid import UUID
from fastapi import Depends, Query, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from planner.db.session import get_session
from sqlalchemy.ext.asyncio import AsyncSession
from planner.db.models.user import User
from planner.db.repositories.users import get_user
from planner.core.config import settings
from planner.core.exceptions import NotFoundError, UnauthorizedError
from planner.core.security import decode_token, decode_mobile_token, is_token_revoked
from planner.core.logging import logger

# auto_error is off so a missing header can fall back to the session cookie
security = HTTPBearer(auto_error=False)


def extract_session_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[str]:
    """Session token from the Authorization header, else from the session cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


async def resolve_session_user(token: str, session: AsyncSession) -> User:
    """
    Resolve the user behind a session token, with revocation check.

    Args:
        token: Signed session token
        session: Database session

    Returns:
        User object

    Raises:
        UnauthorizedError: If the token is invalid, revoked, of the wrong type, or its user is gone
    """
    if await is_token_revoked(token):
        raise UnauthorizedError("Token has been revoked")

    try:
        payload = decode_token(token)
    except ValueError:
        raise UnauthorizedError("Could not validate credentials")

    if payload.get("type") != "access":
        raise UnauthorizedError("Invalid token type")

    user_id: Optional[str] = payload.get("sub") or payload.get("user_id")
    if user_id is None:
        raise UnauthorizedError("Could not validate credentials")

    try:
        user_uuid = UUID(str(user_id))
    except ValueError:
        raise UnauthorizedError("Could not validate credentials")

    user = await get_user(session, user_uuid)
    if not user:
        raise UnauthorizedError("Could not validate credentials")
    return user


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Authenticated user of the request; 401 when there is no valid session."""
    token = extract_session_token(request, credentials)
    if not token:
        raise UnauthorizedError("Unauthorized")
    return await resolve_session_user(token, session)


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_session),
) -> Optional[User]:
    """Authenticated user if a valid session is presented, otherwise None."""
    token = extract_session_token(request, credentials)
    if not token:
        return None
    try:
        return await resolve_session_user(token, session)
    except UnauthorizedError:
        return None


async def get_mobile_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session_token: Optional[str] = Query(None, alias="sessionToken"),
    session: AsyncSession = Depends(get_session),
) -> User:
    """
    User behind a mobile bearer token.

    The token is verified against the shared mobile secret instead of the
    session store, and may also be passed as the ``sessionToken`` query
    parameter.
    """
    token = credentials.credentials if credentials else session_token
    if not token:
        raise UnauthorizedError("Authentication required")

    try:
        user_id = decode_mobile_token(token)
    except ValueError as e:
        logger.info(f"Mobile token rejected: {e}")
        raise UnauthorizedError("Invalid token")

    try:
        user = await get_user(session, UUID(user_id))
    except ValueError:
        # sub that is not a UUID
        user = None
    if not user:
        raise NotFoundError("User not found")
    return user
