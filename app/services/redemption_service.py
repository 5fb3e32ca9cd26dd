"""Redemption workflow service"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from sqlalchemy.orm import selectinload
import logging
import uuid

from app.core.security import Actor
from app.core.exceptions import (
    NotFoundException, ForbiddenException, InsufficientFundsException,
    InvalidStateException, ValidationException
)
from app.models import (
    User, UserRole, ShopItem, Redemption, RedemptionStatus,
    TransactionType, TransactionStatus
)
from app.utils.helpers import utcnow
from .ledger import LedgerStore
from .audit_service import AuditService
from .state_machine import redemption_state_machine

logger = logging.getLogger(__name__)

REDEMPTION_REF = "redemption"

class RedemptionService:
    """Turns shop purchases into ledger debits and tracks their review"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = LedgerStore(db)
        self.audit = AuditService(db)
        self.state_machine = redemption_state_machine

    async def create_redemption(
        self,
        actor: Actor,
        shop_item_id: uuid.UUID,
        comment: Optional[str] = None
    ) -> Redemption:
        """
        Redeem a shop item for the actor

        The balance check, the redemption row and the SPEND debit commit
        together. The debit is APPROVED immediately so the same coins cannot
        be spent twice while the redemption waits for review; a rejection
        refunds it.

        Raises:
            NotFoundException: Item missing, inactive or in another company
            InsufficientFundsException: Balance below the item price
        """
        item = await self.db.scalar(
            select(ShopItem).where(
                ShopItem.id == shop_item_id,
                ShopItem.company_id == actor.company_id,
                ShopItem.is_active == True
            )
        )
        if not item:
            raise NotFoundException("Item not found")

        try:
            # Touching the user row takes its write lock on every backend, so
            # concurrent redemptions of one user read the balance in turn
            locked = await self.db.execute(
                update(User)
                .where(User.id == actor.id, User.company_id == actor.company_id)
                .values(updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if locked.rowcount == 0:
                raise NotFoundException("User not found")

            price = item.price_coins
            balance = await self.ledger.sum_approved(actor.id)
            if balance < price:
                raise InsufficientFundsException(required=price, available=balance)

            redemption = Redemption(
                user_id=actor.id,
                company_id=actor.company_id,
                shop_item_id=item.id,
                price_coins_snapshot=price,
                comment=comment,
                status=RedemptionStatus.PENDING,
            )
            self.db.add(redemption)
            await self.db.flush()

            await self.ledger.append(
                user_id=actor.id,
                company_id=actor.company_id,
                type=TransactionType.SPEND,
                amount=-price,
                reason=f"Redemption: {item.title}",
                status=TransactionStatus.APPROVED,
                created_by_id=actor.id,
                ref_type=REDEMPTION_REF,
                ref_id=redemption.id,
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(redemption)
        logger.info(
            "Redemption %s created by %s for item %s (%s coins)",
            redemption.id, actor.id, item.id, price
        )
        await self.audit.log_action(
            actor_id=actor.id,
            company_id=actor.company_id,
            action="redemption.create",
            entity=REDEMPTION_REF,
            entity_id=redemption.id,
            details={"shop_item_id": str(item.id), "price_coins": price},
        )
        return redemption

    async def get_redemption(self, redemption_id: uuid.UUID, actor: Actor) -> Redemption:
        """Fetch a redemption of the actor's company"""
        redemption = await self.db.scalar(
            select(Redemption).where(
                Redemption.id == redemption_id,
                Redemption.company_id == actor.company_id
            )
        )
        if not redemption:
            raise NotFoundException("Redemption not found")
        if actor.role == UserRole.MANAGER and redemption.user_id != actor.id:
            raise NotFoundException("Redemption not found")
        return redemption

    async def _load_for_review(self, redemption_id: uuid.UUID, actor: Actor) -> Redemption:
        if not actor.is_approver:
            raise ForbiddenException("Only admins and team leads can review redemptions")

        redemption = await self.db.scalar(
            select(Redemption)
            .where(
                Redemption.id == redemption_id,
                Redemption.company_id == actor.company_id
            )
            .with_for_update()
        )
        if not redemption:
            raise NotFoundException("Redemption not found")

        if actor.role == UserRole.ROP:
            owner_team = await self.db.scalar(
                select(User.team_id).where(User.id == redemption.user_id)
            )
            if actor.team_id is None or owner_team != actor.team_id:
                raise ForbiddenException("Redemption belongs to another team")
        return redemption

    def _check_transition(self, redemption: Redemption, new_status: RedemptionStatus) -> None:
        try:
            self.state_machine.ensure_transition(redemption.status, new_status)
        except InvalidStateException:
            logger.warning(
                "Rejected redemption transition %s: %s -> %s",
                redemption.id, redemption.status.value, new_status.value
            )
            raise

    async def _transition(
        self,
        redemption: Redemption,
        new_status: RedemptionStatus,
        **stamps
    ) -> None:
        """Compare-and-set the status so a concurrent reviewer cannot apply it twice"""
        self._check_transition(redemption, new_status)
        result = await self.db.execute(
            update(Redemption)
            .where(
                Redemption.id == redemption.id,
                Redemption.status == redemption.status
            )
            .values(status=new_status, **stamps)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.db.refresh(redemption)
            logger.warning(
                "Redemption %s changed during review, now %s",
                redemption.id, redemption.status.value
            )
            raise InvalidStateException("redemption", redemption.status.value, new_status.value)

    async def approve(self, redemption_id: uuid.UUID, actor: Actor) -> Redemption:
        """PENDING -> APPROVED, stamping the approver"""
        try:
            redemption = await self._load_for_review(redemption_id, actor)
            await self._transition(
                redemption, RedemptionStatus.APPROVED,
                approved_by_id=actor.id, approved_at=utcnow()
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return await self._after_review(redemption, actor, "redemption.approve")

    async def issue(self, redemption_id: uuid.UUID, actor: Actor) -> Redemption:
        """APPROVED -> ISSUED, stamping the issuer"""
        try:
            redemption = await self._load_for_review(redemption_id, actor)
            await self._transition(
                redemption, RedemptionStatus.ISSUED,
                issued_by_id=actor.id, issued_at=utcnow()
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return await self._after_review(redemption, actor, "redemption.issue")

    async def reject(self, redemption_id: uuid.UUID, actor: Actor) -> Redemption:
        """PENDING -> REJECTED, refunding the debit with a compensating EARN"""
        try:
            redemption = await self._load_for_review(redemption_id, actor)
            await self._transition(redemption, RedemptionStatus.REJECTED)

            await self.ledger.append(
                user_id=redemption.user_id,
                company_id=redemption.company_id,
                type=TransactionType.EARN,
                amount=redemption.price_coins_snapshot,
                reason=f"Refund: redemption {redemption.id} rejected",
                status=TransactionStatus.APPROVED,
                created_by_id=actor.id,
                ref_type=REDEMPTION_REF,
                ref_id=redemption.id,
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return await self._after_review(
            redemption, actor, "redemption.reject",
            {"refund_coins": redemption.price_coins_snapshot}
        )

    async def update_status(
        self,
        redemption_id: uuid.UUID,
        new_status: RedemptionStatus,
        actor: Actor
    ) -> Redemption:
        """Dispatch a requested status to its command"""
        commands = {
            RedemptionStatus.APPROVED: self.approve,
            RedemptionStatus.REJECTED: self.reject,
            RedemptionStatus.ISSUED: self.issue,
        }
        command = commands.get(new_status)
        if command is None:
            # No command leads back to PENDING
            redemption = await self._load_for_review(redemption_id, actor)
            self._check_transition(redemption, new_status)
            raise InvalidStateException("redemption", redemption.status.value, new_status.value)
        return await command(redemption_id, actor)

    async def _after_review(
        self,
        redemption: Redemption,
        actor: Actor,
        action: str,
        extra: Optional[dict] = None
    ) -> Redemption:
        await self.db.refresh(redemption)
        logger.info(
            "Redemption %s is now %s (by %s)",
            redemption.id, redemption.status.value, actor.id
        )
        details = {"status": redemption.status.value}
        details.update(extra or {})
        await self.audit.log_action(
            actor_id=actor.id,
            company_id=actor.company_id,
            action=action,
            entity=REDEMPTION_REF,
            entity_id=redemption.id,
            details=details,
        )
        return redemption

    async def list_redemptions(self, actor: Actor, scope: str = "my") -> List[Redemption]:
        """
        List redemptions visible to the actor

        Args:
            scope: "my" for own requests, "team" for the actor's team
                (admins and team leads), "all" for the whole company (admins)
        """
        stmt = (
            select(Redemption)
            .options(selectinload(Redemption.item), selectinload(Redemption.user))
            .where(Redemption.company_id == actor.company_id)
        )

        if scope == "my":
            stmt = stmt.where(Redemption.user_id == actor.id)
        elif scope == "team":
            if not actor.is_approver:
                raise ForbiddenException("Insufficient permissions")
            if actor.team_id is None:
                return []
            team_members = select(User.id).where(User.team_id == actor.team_id)
            stmt = stmt.where(Redemption.user_id.in_(team_members))
        elif scope == "all":
            if not actor.is_admin:
                raise ForbiddenException("Insufficient permissions")
        else:
            raise ValidationException(f"Unknown scope {scope}")

        result = await self.db.execute(stmt.order_by(Redemption.created_at.desc()))
        return list(result.scalars().all())
