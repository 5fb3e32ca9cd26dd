"""
Authentication service layer
Handles login and invite-based registration
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import logging

from app.models import User
from app.core.security import Actor, SecurityUtils
from app.core.config import settings
from app.core.exceptions import UnauthorizedException, NotFoundException
from app.services.invite_service import InviteService
from .schemas import RegisterRequest, TokenResponse

logger = logging.getLogger(__name__)

class AuthService:
    """Authentication service"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.invite_service = InviteService(db)

    async def login(self, username: str, password: str) -> User:
        """
        Check credentials

        Args:
            username: Account username
            password: Plain password

        Returns:
            The authenticated user
        """
        user = await self.db.scalar(select(User).where(User.username == username.strip()))

        if not user or not SecurityUtils.verify_password(password, user.password_hash):
            logger.info("Failed login for %s", username)
            raise UnauthorizedException("Invalid username or password")

        if not user.is_active:
            raise UnauthorizedException("Account is disabled")

        logger.info("User %s logged in", user.id)
        return user

    async def register(self, request: RegisterRequest) -> User:
        """Create a manager account from an invite link"""
        return await self.invite_service.register_with_invite(
            token=request.invite_token,
            username=request.username,
            password=request.password,
            name=request.name,
        )

    async def get_user(self, actor: Actor) -> User:
        user = await self.db.scalar(
            select(User).where(User.id == actor.id, User.company_id == actor.company_id)
        )
        if not user:
            raise NotFoundException("User not found")
        return user

    @staticmethod
    def actor_for(user: User) -> Actor:
        return Actor(
            id=user.id,
            role=user.role,
            company_id=user.company_id,
            team_id=user.team_id,
        )

    def generate_tokens(self, user: User) -> TokenResponse:
        """Issue an access token carrying the user's role and tenant"""
        return TokenResponse(
            access_token=SecurityUtils.create_access_token(self.actor_for(user)),
            token_type="bearer",
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )
