"""
Session security: password hashing, signed session tokens, mobile tokens and revocation.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict
from jose import jwt, JWTError
from passlib.context import CryptContext
from planner.core.config import settings
from planner.cache.redis_client import cache

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def validate_password(password: str) -> None:
    """
    Validate password strength.
    Raises ValueError if password doesn't meet requirements.

    Args:
        password: The password to validate

    Raises:
        ValueError: If password doesn't meet strength requirements
    """
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters long")

    if not any(c.isupper() for c in password):
        raise ValueError("Password must contain at least one uppercase letter")

    if not any(c.islower() for c in password):
        raise ValueError("Password must contain at least one lowercase letter")

    if not any(c.isdigit() for c in password):
        raise ValueError("Password must contain at least one digit")

    if not any(c in "!@#$%^&*()_+-=[]{}|;:,.<>?" for c in password):
        raise ValueError("Password must contain at least one special character")


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    """Verify a password against a hash. Accounts without a password never match."""
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def hash_password(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(data: Dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed session (access) token.

    Args:
        data: Claims to encode in the token, ``sub`` must hold the user id
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token
    """
    to_encode = data.copy()

    if expires_delta:
        expire = _now() + expires_delta
    else:
        expire = _now() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_refresh_token(data: Dict) -> str:
    """
    Create a refresh token with longer expiration.

    Args:
        data: Claims to encode in the token

    Returns:
        Encoded JWT refresh token
    """
    to_encode = data.copy()
    expire = _now() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    to_encode.update({"exp": expire, "type": "refresh"})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> Dict:
    """
    Decode and validate a session token.

    Args:
        token: JWT token to decode

    Returns:
        Decoded token data

    Raises:
        ValueError: If token is invalid or expired
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])

        if "sub" not in payload:
            raise ValueError("Invalid token payload: missing 'sub' field")

        return payload
    except jwt.ExpiredSignatureError:
        raise ValueError("Token has expired")
    except JWTError as e:
        raise ValueError(f"Invalid token: {str(e)}")


def create_mobile_token(user_id: str, user_claims: Optional[Dict] = None) -> str:
    """Issue a bearer token for the mobile client, signed with the shared mobile secret."""
    to_encode = {"sub": str(user_id), "exp": _now() + timedelta(days=settings.MOBILE_TOKEN_EXPIRE_DAYS)}
    if user_claims:
        to_encode["user"] = user_claims
    return jwt.encode(to_encode, settings.mobile_token_secret, algorithm=settings.ALGORITHM)


def decode_mobile_token(token: str) -> str:
    """
    Verify a mobile bearer token and return the user id it carries.

    The id is read from the nested ``user.id`` claim when present, otherwise
    from ``sub``.

    Raises:
        ValueError: If the signature is invalid, the token expired, or no user id is present
    """
    try:
        payload = jwt.decode(token, settings.mobile_token_secret, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise ValueError("Token has expired")
    except JWTError as e:
        raise ValueError(f"Invalid token: {str(e)}")

    user = payload.get("user")
    user_id = None
    if isinstance(user, dict):
        user_id = user.get("id")
    user_id = user_id or payload.get("sub")
    if not user_id:
        raise ValueError("Invalid token format")
    return str(user_id)


async def revoke_token(token: str, expiry: Optional[int] = None) -> bool:
    """
    Add token to revocation list in Redis.

    Args:
        token: Token to revoke
        expiry: Optional TTL in seconds (if not provided, calculated from token exp)

    Returns:
        True if successful
    """
    try:
        if expiry:
            await cache.set(f"revoked_token:{token}", True, expire=expiry)
        else:
            payload = decode_token(token)
            exp = payload.get("exp")
            if exp:
                ttl = exp - int(_now().timestamp())
                if ttl > 0:
                    await cache.set(f"revoked_token:{token}", True, expire=ttl)

        return True
    except ValueError:
        return False


async def is_token_revoked(token: str) -> bool:
    """
    Check if token is in revocation list.

    Args:
        token: Token to check

    Returns:
        True if token is revoked
    """
    return await cache.exists(f"revoked_token:{token}")
