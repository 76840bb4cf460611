"""
Bearer token handling for search requests.

Tokens are issued by the main BON-LOG application; this service only
verifies them. Search works anonymously; admin endpoints need role "admin".
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from loguru import logger

from bonlog.core.config import settings
from bonlog.utils.exceptions import AuthenticationError, AuthorizationError

optional_bearer = HTTPBearer(auto_error=False)


@dataclass
class TokenPrincipal:
    user_id: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class AuthService:
    """Verifies JWT access tokens."""

    def __init__(self, secret_key: Optional[str] = None, algorithm: Optional[str] = None):
        self.secret_key = secret_key or settings.SECRET_KEY
        self.algorithm = algorithm or settings.ALGORITHM

    def create_access_token(self, user_id: str, role: str = "user", expires_minutes: Optional[int] = None) -> str:
        """Create a JWT access token (used by scripts and tests)."""
        expire = datetime.utcnow() + timedelta(
            minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )
        to_encode = {
            "sub": str(user_id),
            "role": role,
            "exp": expire,
            "type": "access",
        }
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def decode_access_token(self, token: str) -> TokenPrincipal:
        """Validate a token and return its principal."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.debug(f"Rejected access token: {e}")
            raise AuthenticationError("Could not validate credentials")

        user_id = payload.get("sub")
        if not user_id or payload.get("type", "access") != "access":
            raise AuthenticationError("Could not validate credentials")
        return TokenPrincipal(user_id=str(user_id), role=payload.get("role") or "user")


# Global auth service instance
auth_service = AuthService()


async def get_optional_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_bearer),
) -> Optional[TokenPrincipal]:
    """Dependency: the caller's principal, or None for anonymous requests."""
    if credentials is None:
        return None
    return auth_service.decode_access_token(credentials.credentials)


async def get_viewer_id(
    principal: Optional[TokenPrincipal] = Depends(get_optional_principal),
) -> Optional[str]:
    """Dependency: the viewing user's id, or None."""
    return principal.user_id if principal else None


async def require_admin(
    principal: Optional[TokenPrincipal] = Depends(get_optional_principal),
) -> TokenPrincipal:
    """Dependency: an authenticated admin principal."""
    if principal is None:
        raise AuthenticationError("Not authenticated")
    if not principal.is_admin:
        raise AuthorizationError()
    return principal
