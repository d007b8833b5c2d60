"""
Auth module: password hashing, JWT creation/validation and the FastAPI
dependencies that enforce authentication, roles and tenant isolation.
"""

import time
from dataclasses import dataclass
from typing import Optional

import bcrypt
from fastapi import Depends, Request
from jose import jwt, JWTError

from kol360.config import get_settings
from kol360.constants import UserRole
from kol360.exceptions import UnauthorizedError, ForbiddenError

ALGORITHM = "HS256"


@dataclass
class UserPrincipal:
    """Resolved identity attached to each authenticated request."""
    sub: str
    email: str
    role: str
    tenant_id: Optional[str] = None

    @property
    def is_platform_admin(self) -> bool:
        return self.role == UserRole.PLATFORM_ADMIN

    @property
    def is_client_admin(self) -> bool:
        return self.role == UserRole.CLIENT_ADMIN

    def can_access_tenant(self, client_id: Optional[str]) -> bool:
        if self.is_platform_admin:
            return True
        return client_id is not None and client_id == self.tenant_id

    def tenant_filter(self) -> Optional[str]:
        """None for platform admins (unrestricted), otherwise the user's tenant."""
        if self.is_platform_admin:
            return None
        return self.tenant_id or ""


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_token(user) -> str:
    """Create a signed JWT for the given User model instance."""
    settings = get_settings()
    payload = {
        "sub": user.id,
        "email": user.email,
        "role": user.role,
        "tenant_id": user.client_id,
        "exp": int(time.time()) + settings.jwt_expire_seconds,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[UserPrincipal]:
    """Decode and validate a JWT. Returns None if invalid/expired."""
    try:
        settings = get_settings()
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[ALGORITHM])
        return UserPrincipal(
            sub=payload["sub"],
            email=payload.get("email", ""),
            role=payload.get("role", UserRole.TEAM_MEMBER),
            tenant_id=payload.get("tenant_id"),
        )
    except (JWTError, KeyError):
        return None


def get_bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    return auth_header[7:].strip() or None


async def get_current_user(request: Request) -> UserPrincipal:
    """FastAPI dependency. Raises 401 when the bearer token is missing or invalid."""
    token = get_bearer_token(request)
    if not token:
        raise UnauthorizedError("Missing authentication token")
    principal = decode_token(token)
    if not principal:
        raise UnauthorizedError("Invalid or expired token")
    request.state.user = principal
    return principal


def require_role(*roles: str):
    async def dependency(current_user: UserPrincipal = Depends(get_current_user)) -> UserPrincipal:
        if current_user.role not in roles:
            raise ForbiddenError()
        return current_user
    return dependency


require_platform_admin = require_role(UserRole.PLATFORM_ADMIN)
require_client_admin = require_role(UserRole.PLATFORM_ADMIN, UserRole.CLIENT_ADMIN)


def ensure_tenant_access(current_user: UserPrincipal, client_id: Optional[str]) -> None:
    if not current_user.can_access_tenant(client_id):
        raise ForbiddenError("Access denied: resource belongs to another client")
