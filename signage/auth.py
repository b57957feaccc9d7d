"""
JWT Authentication module for live display connections.

A display exchanges its client identifier for a short-lived access token and
presents that token when it opens the live-update websocket.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel

# Configuration
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-in-production")
ALGORITHM = "HS256"

DISPLAY_ACCESS = "display_access"

# Token expiration times
ACCESS_TOKEN_EXPIRE_HOURS = int(os.getenv("DISPLAY_TOKEN_EXPIRE_HOURS", "24"))


class TokenData(BaseModel):
    """Decoded token data."""

    subject_id: str
    token_type: str
    expires_at: datetime
    issued_at: datetime


def create_access_token(
    client_id: str,
    token_type: str = DISPLAY_ACCESS,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        client_id: The display's client identifier
        token_type: Type of token
        expires_delta: Custom expiration time

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS)

    now = datetime.now(timezone.utc)
    to_encode = {
        "sub": client_id,
        "type": token_type,
        "exp": now + expires_delta,
        "iat": now,
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[TokenData]:
    """
    Decode and validate a JWT token.

    Returns:
        TokenData if valid, None if invalid or expired
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])

        return TokenData(
            subject_id=payload.get("sub", ""),
            token_type=payload.get("type", ""),
            expires_at=datetime.fromtimestamp(payload.get("exp", 0), tz=timezone.utc),
            issued_at=datetime.fromtimestamp(payload.get("iat", 0), tz=timezone.utc),
        )
    except JWTError:
        return None


def verify_token(token: str, expected_type: str = DISPLAY_ACCESS) -> Optional[TokenData]:
    """
    Verify a JWT token and check its type.

    Returns:
        TokenData if valid and of the expected type, None otherwise
    """
    token_data = decode_token(token)

    if token_data is None or token_data.token_type != expected_type:
        return None

    if token_data.expires_at < datetime.now(timezone.utc):
        return None

    return token_data


def get_token_expiry_seconds() -> int:
    return ACCESS_TOKEN_EXPIRE_HOURS * 60 * 60
