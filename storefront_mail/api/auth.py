"""
Admin authentication for the status endpoints.

Tokens are issued by the storefront's auth service; this module only
verifies them.
"""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from storefront_mail.config import get_settings
from storefront_mail.constants import ADMIN_ROLE

# Security scheme
security = HTTPBearer()


class TokenData(BaseModel):
    """Data extracted from JWT token."""

    subject: str
    role: str | None = None
    exp: datetime


class AuthenticatedUser(BaseModel):
    """Authenticated caller context."""

    subject: str
    role: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def decode_token(token: str) -> TokenData:
    """
    Decode and validate a JWT token.

    Args:
        token: The JWT token to decode.

    Returns:
        TokenData extracted from the token.

    Raises:
        HTTPException: If token is invalid or expired.
    """
    settings = get_settings()

    try:
        payload = jwt.decode(
            token,
            settings.api_secret_key,
            algorithms=[settings.api_algorithm],
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    subject = payload.get("sub")
    if subject is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing subject",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return TokenData(
        subject=subject,
        role=payload.get("role"),
        exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> AuthenticatedUser:
    """
    FastAPI dependency to get the current authenticated user.

    Raises:
        HTTPException: If authentication fails.
    """
    token_data = decode_token(credentials.credentials)
    return AuthenticatedUser(subject=token_data.subject, role=token_data.role)


async def require_admin(
    user: Annotated[AuthenticatedUser, Depends(get_current_user)],
) -> AuthenticatedUser:
    """
    FastAPI dependency that only lets admins through.

    Raises:
        HTTPException: 403 if the caller is not an admin.
    """
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


# Type alias for dependency injection
AdminUser = Annotated[AuthenticatedUser, Depends(require_admin)]
