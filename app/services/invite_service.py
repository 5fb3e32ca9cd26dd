"""
Invite token service
Issues bounded-use registration links and consumes them atomically
"""

from datetime import timedelta
from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, update, case, or_
import logging
import uuid

from app.core.config import settings
from app.core.security import Actor, SecurityUtils
from app.core.exceptions import (
    NotFoundException, ForbiddenException, ValidationException,
    DuplicateResourceException, InviteQuotaExceededException,
    InviteExpiredException, InviteInactiveException
)
from app.models import InviteToken, Team, User, UserRole
from app.models.base import model_to_dict
from app.utils.helpers import utcnow, is_expired
from .audit_service import AuditService

logger = logging.getLogger(__name__)

INVITE_ENTITY = "invite"

class InviteService:
    """Service for invite tokens and self-registration"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def create_invite(
        self,
        actor: Actor,
        team_id: Optional[uuid.UUID] = None,
        usage_limit: Optional[int] = None,
        expires_in_hours: Optional[int] = None
    ) -> InviteToken:
        """Issue a new invite link for the actor's company (admins only)"""
        if not actor.is_admin:
            raise ForbiddenException("Only admins can create invites")

        if usage_limit is None:
            usage_limit = settings.INVITE_DEFAULT_USAGE_LIMIT
        if usage_limit < 1 or usage_limit > settings.INVITE_MAX_USAGE_LIMIT:
            raise ValidationException(
                f"Usage limit must be between 1 and {settings.INVITE_MAX_USAGE_LIMIT}"
            )

        if team_id is not None:
            team = await self.db.scalar(
                select(Team).where(Team.id == team_id, Team.company_id == actor.company_id)
            )
            if not team:
                raise NotFoundException("Team not found")

        if expires_in_hours is None:
            expires_in_hours = settings.INVITE_DEFAULT_TTL_HOURS
        if expires_in_hours is not None and expires_in_hours <= 0:
            raise ValidationException("Expiry must be in the future")
        expires_at = utcnow() + timedelta(hours=expires_in_hours) if expires_in_hours else None

        invite = InviteToken(
            token=SecurityUtils.generate_invite_token(),
            company_id=actor.company_id,
            team_id=team_id,
            created_by_id=actor.id,
            usage_limit=usage_limit,
            usage_count=0,
            is_active=True,
            expires_at=expires_at,
        )
        self.db.add(invite)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(invite)

        logger.info("Invite %s created by %s (limit %s)", invite.id, actor.id, usage_limit)
        await self.audit.log_action(
            actor_id=actor.id,
            company_id=actor.company_id,
            action="invite.create",
            entity=INVITE_ENTITY,
            entity_id=invite.id,
            details=model_to_dict(invite, exclude=["token"]),
        )
        return invite

    async def get_by_token(self, token: str) -> Optional[InviteToken]:
        return await self.db.scalar(select(InviteToken).where(InviteToken.token == token))

    async def validate(self, token: str) -> Dict[str, Any]:
        """
        Check whether a token could be used right now

        Read-only; the answer may be stale by the time of consumption.
        """
        invite = await self.get_by_token(token)
        if not invite:
            return {"valid": False, "team_id": None, "company_id": None, "reason": "not_found"}

        reason = None
        if is_expired(invite.expires_at):
            reason = "expired"
        elif invite.usage_count >= invite.usage_limit:
            reason = "quota_exceeded"
        elif not invite.is_active:
            reason = "inactive"

        return {
            "valid": reason is None,
            "team_id": invite.team_id,
            "company_id": invite.company_id,
            "reason": reason,
        }

    async def consume(self, token: str, new_user_id: uuid.UUID) -> InviteToken:
        """
        Use up one slot of a token; does not commit

        The increment is a single guarded UPDATE so concurrent registrations
        can never push usage_count past usage_limit. Reaching the limit
        deactivates the token in the same statement.

        Raises:
            NotFoundException: Unknown token
            InviteExpiredException: Expiry has passed
            InviteQuotaExceededException: Every slot is used
            InviteInactiveException: Token was deactivated
        """
        now = utcnow()
        result = await self.db.execute(
            update(InviteToken)
            .where(
                InviteToken.token == token,
                InviteToken.is_active == True,
                InviteToken.usage_count < InviteToken.usage_limit,
                or_(InviteToken.expires_at.is_(None), InviteToken.expires_at > now),
            )
            .values(
                usage_count=InviteToken.usage_count + 1,
                used_at=now,
                last_used_by_id=new_user_id,
                is_active=case(
                    (InviteToken.usage_count + 1 >= InviteToken.usage_limit, False),
                    else_=InviteToken.is_active,
                ),
            )
            .execution_options(synchronize_session=False)
        )

        # Re-read past the identity map, the UPDATE bypassed it
        invite = await self.db.scalar(
            select(InviteToken)
            .where(InviteToken.token == token)
            .execution_options(populate_existing=True)
        )
        if result.rowcount == 0:
            self._raise_unusable(invite, now)

        logger.info(
            "Invite %s consumed by %s (%s/%s)",
            invite.id, new_user_id, invite.usage_count, invite.usage_limit
        )
        return invite

    @staticmethod
    def _raise_unusable(invite: Optional[InviteToken], now) -> None:
        if invite is None:
            raise NotFoundException("Invite not found")
        if is_expired(invite.expires_at, now):
            raise InviteExpiredException()
        if invite.usage_count >= invite.usage_limit:
            raise InviteQuotaExceededException()
        raise InviteInactiveException()

    async def deactivate(self, invite_id: uuid.UUID, actor: Actor) -> InviteToken:
        """Switch a token off; calling it again changes nothing"""
        if not actor.is_admin:
            raise ForbiddenException("Only admins can deactivate invites")

        invite = await self.db.scalar(
            select(InviteToken).where(
                InviteToken.id == invite_id,
                InviteToken.company_id == actor.company_id
            )
        )
        if not invite:
            raise NotFoundException("Invite not found")

        invite.is_active = False
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(invite)

        logger.info("Invite %s deactivated by %s", invite.id, actor.id)
        await self.audit.log_action(
            actor_id=actor.id,
            company_id=actor.company_id,
            action="invite.deactivate",
            entity=INVITE_ENTITY,
            entity_id=invite.id,
        )
        return invite

    async def list_invites(self, actor: Actor) -> List[InviteToken]:
        """All invites of the actor's company, newest first"""
        if not actor.is_admin:
            raise ForbiddenException("Only admins can list invites")

        result = await self.db.execute(
            select(InviteToken)
            .where(InviteToken.company_id == actor.company_id)
            .order_by(InviteToken.created_at.desc())
        )
        return list(result.scalars().all())

    async def register_with_invite(
        self,
        token: str,
        username: str,
        password: str,
        name: str
    ) -> User:
        """
        Create a manager account through an invite link

        The new user and the token consumption commit together; if the token
        cannot be consumed no account is left behind.
        """
        username = username.strip()
        if not username:
            raise ValidationException("Username is required")
        if len(password) < settings.PASSWORD_MIN_LENGTH:
            raise ValidationException(
                f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters"
            )

        invite = await self.get_by_token(token)
        if invite is None:
            raise NotFoundException("Invite not found")

        existing = await self.db.scalar(select(User.id).where(User.username == username))
        if existing:
            raise DuplicateResourceException("User", "username", username)

        user = User(
            id=uuid.uuid4(),
            company_id=invite.company_id,
            team_id=invite.team_id,
            username=username,
            password_hash=SecurityUtils.hash_password(password),
            name=name.strip() or username,
            role=UserRole.MANAGER,
            is_active=True,
        )
        try:
            self.db.add(user)
            await self.db.flush()
            invite = await self.consume(token, user.id)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateResourceException("User", "username", username)
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(user)
        logger.info("User %s registered through invite %s", user.id, invite.id)
        await self.audit.log_action(
            actor_id=user.id,
            company_id=user.company_id,
            action="invite.register",
            entity=INVITE_ENTITY,
            entity_id=invite.id,
            details={"user_id": str(user.id), "username": user.username},
        )
        return user
