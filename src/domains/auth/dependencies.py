"""Authentication dependencies."""
import uuid
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.core.security import decode_token

_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity of the caller, taken from the bearer token subject."""

    id: uuid.UUID


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> AuthenticatedUser:
    """Resolve the caller from the Authorization header."""
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise unauthorized

    token_data = decode_token(credentials.credentials)
    if token_data is None:
        raise unauthorized

    try:
        user_id = uuid.UUID(token_data.user_id)
    except ValueError:
        raise unauthorized

    return AuthenticatedUser(id=user_id)


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
