"""Manual coin transactions and their approval"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import logging
import uuid

from app.core.config import settings
from app.core.security import Actor
from app.core.exceptions import (
    NotFoundException, ForbiddenException, ValidationException,
    AlreadyZeroException, InvalidStateException
)
from app.models import User, UserRole, CoinTransaction, TransactionType, TransactionStatus
from .ledger import LedgerStore
from .balance import BalanceService
from .audit_service import AuditService

logger = logging.getLogger(__name__)

TRANSACTION_ENTITY = "transaction"

class TransactionService:
    """Service for crediting, adjusting and reviewing coin entries"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = LedgerStore(db)
        self.balance = BalanceService(db)
        self.audit = AuditService(db)

    @staticmethod
    def initial_status(actor: Actor) -> TransactionStatus:
        """Admins write approved entries, everyone else queues for review"""
        return TransactionStatus.APPROVED if actor.is_admin else TransactionStatus.PENDING

    async def get_company_user(self, actor: Actor, user_id: uuid.UUID) -> User:
        """Load a user of the actor's company; other tenants look missing"""
        user = await self.db.scalar(
            select(User).where(User.id == user_id, User.company_id == actor.company_id)
        )
        if not user:
            raise NotFoundException("User not found")
        return user

    async def resolve_target(self, actor: Actor, user_id: uuid.UUID) -> User:
        """
        Check the actor may write entries for the user

        Raises:
            ForbiddenException: Actor is a manager, or a team lead outside
                the user's team
            NotFoundException: User is not in the actor's company
        """
        if not actor.is_approver:
            raise ForbiddenException("Managers cannot create transactions")

        user = await self.get_company_user(actor, user_id)
        if actor.role == UserRole.ROP and (actor.team_id is None or user.team_id != actor.team_id):
            raise ForbiddenException("User is not a member of your team")
        return user

    async def ensure_can_view(self, actor: Actor, user_id: uuid.UUID) -> User:
        """Own data for everyone, the company for admins, the team for team leads"""
        user = await self.get_company_user(actor, user_id)
        if user.id == actor.id or actor.is_admin:
            return user
        if actor.role == UserRole.ROP and actor.team_id is not None and user.team_id == actor.team_id:
            return user
        raise ForbiddenException("Insufficient permissions")

    async def create_transaction(
        self,
        actor: Actor,
        user_id: uuid.UUID,
        amount: int,
        type: TransactionType,
        reason: str
    ) -> CoinTransaction:
        """
        Credit or adjust a user's coins

        SPEND entries only come from redemptions. Entries by admins are
        approved at once; entries by team leads wait for an admin.
        """
        if type == TransactionType.SPEND:
            raise ValidationException("SPEND transactions are created by redemptions only")
        LedgerStore.validate_amount(type, amount)

        user = await self.resolve_target(actor, user_id)
        entry = await self._append(actor, user, type, amount, reason, "manual")

        logger.info(
            "Transaction %s (%s %s) for user %s created by %s as %s",
            entry.id, type.value, amount, user.id, actor.id, entry.status.value
        )
        await self.audit.log_action(
            actor_id=actor.id,
            company_id=actor.company_id,
            action="transaction.create",
            entity=TRANSACTION_ENTITY,
            entity_id=entry.id,
            details={
                "user_id": str(user.id),
                "type": type.value,
                "amount": amount,
                "status": entry.status.value,
            },
        )
        return entry

    async def zero_out(self, actor: Actor, user_id: uuid.UUID) -> CoinTransaction:
        """Write an ADJUST that brings the user's balance to zero"""
        user = await self.resolve_target(actor, user_id)

        balance = await self.balance.get_balance(user.id)
        if balance == 0:
            raise AlreadyZeroException()

        entry = await self._append(
            actor, user, TransactionType.ADJUST, -balance, settings.ZERO_OUT_REASON, "zero_out"
        )

        logger.info(
            "Zero-out %s of %s coins for user %s by %s as %s",
            entry.id, balance, user.id, actor.id, entry.status.value
        )
        await self.audit.log_action(
            actor_id=actor.id,
            company_id=actor.company_id,
            action="transaction.zero_out",
            entity=TRANSACTION_ENTITY,
            entity_id=entry.id,
            details={"user_id": str(user.id), "amount": -balance, "status": entry.status.value},
        )
        return entry

    async def _append(
        self,
        actor: Actor,
        user: User,
        type: TransactionType,
        amount: int,
        reason: str,
        ref_type: str
    ) -> CoinTransaction:
        try:
            entry = await self.ledger.append(
                user_id=user.id,
                company_id=actor.company_id,
                type=type,
                amount=amount,
                reason=reason,
                status=self.initial_status(actor),
                created_by_id=actor.id,
                ref_type=ref_type,
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(entry)
        return entry

    async def review_transaction(
        self,
        entry_id: uuid.UUID,
        new_status: TransactionStatus,
        actor: Actor
    ) -> CoinTransaction:
        """Approve or reject a pending entry (admins only)"""
        if not actor.is_admin:
            raise ForbiddenException("Only admins can review transactions")

        try:
            entry = await self.ledger.transition(entry_id, new_status, company_id=actor.company_id)
            await self.db.commit()
        except InvalidStateException as exc:
            await self.db.rollback()
            logger.warning(
                "Rejected transaction transition %s: %s -> %s",
                entry_id, exc.current, exc.requested
            )
            raise
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(entry)
        logger.info("Transaction %s reviewed by %s: %s", entry.id, actor.id, entry.status.value)
        await self.audit.log_action(
            actor_id=actor.id,
            company_id=actor.company_id,
            action="transaction.review",
            entity=TRANSACTION_ENTITY,
            entity_id=entry.id,
            details={"status": entry.status.value},
        )
        return entry

    async def list_pending(self, actor: Actor) -> List[CoinTransaction]:
        """Review queue: the whole company for admins, own entries for team leads"""
        if actor.is_admin:
            return await self.ledger.list_pending(actor.company_id)
        if actor.role == UserRole.ROP:
            return await self.ledger.list_pending(actor.company_id, created_by_id=actor.id)
        raise ForbiddenException("Insufficient permissions")

    async def list_transactions(
        self,
        actor: Actor,
        user_id: Optional[uuid.UUID] = None,
        page: int = 1,
        size: int = 20
    ) -> dict:
        """Paginated history of the actor's or a visible user's entries"""
        target_id = user_id or actor.id
        await self.ensure_can_view(actor, target_id)
        return await self.ledger.list_for_user(target_id, page=page, size=size)

    async def get_balance_for(self, actor: Actor, user_id: uuid.UUID) -> int:
        """Balance of a user the actor may see"""
        await self.ensure_can_view(actor, user_id)
        return await self.balance.get_balance(user_id)
