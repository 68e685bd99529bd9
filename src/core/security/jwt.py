"""Bearer token encoding and verification."""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from src.config.settings import settings


@dataclass
class TokenData:
    """Claims extracted from a verified token."""

    user_id: str
    token_type: str
    expires_at: datetime


def create_access_token(
    user_id: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed access token for a user.

    Token issuance belongs to the auth service; this helper exists for
    tooling and tests that need a valid bearer token.
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload = {
        "sub": str(user_id),
        "type": "access",
        "exp": expire,
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> TokenData | None:
    """Decode and verify an access token.

    Returns:
        TokenData if the token is valid, unexpired and an access token,
        None otherwise
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except jwt.PyJWTError:
        return None

    user_id = payload.get("sub")
    token_type = payload.get("type")
    if not user_id or token_type != "access":
        return None

    return TokenData(
        user_id=user_id,
        token_type=token_type,
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
