"""
Security utilities for authentication and authorization
Handles JWT tokens, password hashing, and role checks
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import secrets
import uuid

from .config import settings
from .exceptions import UnauthorizedException, ForbiddenException
from app.models.user import UserRole

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Security scheme
security = HTTPBearer()

class Actor(BaseModel):
    """Authenticated identity handed to every service call"""

    id: uuid.UUID
    role: UserRole
    company_id: uuid.UUID
    team_id: Optional[uuid.UUID] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_approver(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.ROP)

class SecurityUtils:
    """Security utility functions"""

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify password against hash"""
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash password using bcrypt"""
        return pwd_context.hash(password)

    @staticmethod
    def create_access_token(actor: Actor) -> str:
        """Create JWT access token for an actor"""
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        to_encode = {
            "sub": str(actor.id),
            "role": actor.role.value,
            "company_id": str(actor.company_id),
            "team_id": str(actor.team_id) if actor.team_id else None,
            "exp": expire,
            "type": "access",
        }
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> Dict[str, Any]:
        """Decode and validate JWT token"""
        try:
            return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError:
            raise UnauthorizedException("Invalid authentication credentials")

    @staticmethod
    def generate_invite_token() -> str:
        """Generate an unguessable invite token"""
        return secrets.token_urlsafe(settings.INVITE_TOKEN_BYTES)

# Dependency to get current actor from token
async def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> Actor:
    """Extract and validate the actor from JWT token"""
    payload = SecurityUtils.decode_token(credentials.credentials)

    if payload.get("type") != "access":
        raise UnauthorizedException("Invalid token type")

    try:
        return Actor(
            id=payload["sub"],
            role=payload["role"],
            company_id=payload["company_id"],
            team_id=payload.get("team_id"),
        )
    except (KeyError, ValueError):
        raise UnauthorizedException("Invalid authentication credentials")

# Role-based access control dependencies
def require_role(allowed_roles: list[UserRole]):
    """Dependency factory checking the actor role"""
    async def role_checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in allowed_roles:
            raise ForbiddenException("Insufficient permissions")
        return actor
    return role_checker

# Specific role dependencies
require_admin = require_role([UserRole.ADMIN])
require_approver = require_role([UserRole.ADMIN, UserRole.ROP])
