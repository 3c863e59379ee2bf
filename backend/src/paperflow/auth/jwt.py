"""JWT token generation and validation

Requests carry a Bearer token; the workflow only needs the resolved
principal, so tokens are minted here for seeding and tests and verified on
every request.

JWT Token Claims Structure:
===========================

- sub: User ID as UUID string
- role: "lecturer" | "examiner" | "hod"
- email: User's email address
- iat / exp: Issued-at and expiry (iat + JWT_EXPIRY_MINUTES)

Example Token Payload:
{
  "sub": "550e8400-e29b-41d4-a716-446655440000",
  "role": "examiner",
  "email": "examiner@uni.example",
  "iat": 1704368400,
  "exp": 1704372000
}
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

import jwt

from ..config import Settings, get_settings


def create_access_token(
    user_id: UUID,
    role: str,
    email: str,
    settings: Optional[Settings] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """Create a signed access token for a user.

    Args:
        user_id: User's UUID
        role: User's role (lecturer, examiner, hod)
        email: User's email address
        settings: Settings to read secret/expiry from (default: cached settings)
        expires_minutes: Override JWT_EXPIRY_MINUTES (negative values mint expired tokens)

    Raises:
        ValueError: If JWT_SECRET is empty
    """
    settings = settings or get_settings()
    if not settings.JWT_SECRET:
        raise ValueError("JWT_SECRET is not set")

    minutes = settings.JWT_EXPIRY_MINUTES if expires_minutes is None else expires_minutes
    now = datetime.now(timezone.utc)
    expiration = now + timedelta(minutes=minutes)

    payload = {
        "sub": str(user_id),
        "role": role,
        "email": email,
        "iat": int(now.timestamp()),
        "exp": int(expiration.timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str, settings: Optional[Settings] = None) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or tampered
        ValueError: If JWT_SECRET is empty
    """
    settings = settings or get_settings()
    if not settings.JWT_SECRET:
        raise ValueError("JWT_SECRET is not set")

    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise jwt.ExpiredSignatureError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise jwt.InvalidTokenError(f"Invalid token: {e}")
