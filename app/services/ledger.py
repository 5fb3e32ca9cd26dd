"""
Coin ledger store

Append-only record of coin movements. Callers own the commit so that a
ledger write and the row it belongs to land in one transaction.
"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
import logging
import uuid

from app.models.coin_transaction import CoinTransaction, TransactionType, TransactionStatus
from app.core.exceptions import NotFoundException, ValidationException, InvalidStateException
from app.utils.pagination import paginate
from .state_machine import transaction_state_machine

logger = logging.getLogger(__name__)

class LedgerStore:
    """Persistence for coin transactions"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.state_machine = transaction_state_machine

    @staticmethod
    def validate_amount(type: TransactionType, amount: int) -> None:
        """Enforce the sign rule for each transaction type"""
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValidationException("Amount must be an integer")
        if type == TransactionType.EARN and amount <= 0:
            raise ValidationException("EARN amount must be positive")
        if type == TransactionType.SPEND and amount >= 0:
            raise ValidationException("SPEND amount must be negative")
        if type == TransactionType.ADJUST and amount == 0:
            raise ValidationException("ADJUST amount must not be zero")

    async def append(
        self,
        *,
        user_id: uuid.UUID,
        company_id: uuid.UUID,
        type: TransactionType,
        amount: int,
        reason: str,
        status: TransactionStatus,
        created_by_id: Optional[uuid.UUID],
        ref_type: Optional[str] = None,
        ref_id: Optional[uuid.UUID] = None,
    ) -> CoinTransaction:
        """Add a ledger entry and flush it; does not commit"""
        self.validate_amount(type, amount)
        if not reason or not reason.strip():
            raise ValidationException("Reason is required")
        if status == TransactionStatus.REJECTED:
            raise ValidationException("Entries cannot be created rejected")

        entry = CoinTransaction(
            user_id=user_id,
            company_id=company_id,
            type=type,
            amount=amount,
            status=status,
            reason=reason.strip(),
            ref_type=ref_type,
            ref_id=ref_id,
            created_by_id=created_by_id,
        )
        self.db.add(entry)
        await self.db.flush()
        await self.db.refresh(entry)
        return entry

    async def get(self, entry_id: uuid.UUID, company_id: Optional[uuid.UUID] = None) -> CoinTransaction:
        """Fetch an entry, hiding other tenants' rows"""
        stmt = select(CoinTransaction).where(CoinTransaction.id == entry_id)
        if company_id is not None:
            stmt = stmt.where(CoinTransaction.company_id == company_id)
        entry = await self.db.scalar(stmt)
        if not entry:
            raise NotFoundException("Transaction not found")
        return entry

    async def transition(
        self,
        entry_id: uuid.UUID,
        new_status: TransactionStatus,
        company_id: Optional[uuid.UUID] = None,
    ) -> CoinTransaction:
        """Move a PENDING entry to APPROVED or REJECTED; does not commit"""
        entry = await self.get(entry_id, company_id)
        self.state_machine.ensure_transition(entry.status, new_status)

        # Guarded update so two reviewers cannot both win
        result = await self.db.execute(
            update(CoinTransaction)
            .where(
                CoinTransaction.id == entry_id,
                CoinTransaction.status == TransactionStatus.PENDING,
            )
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.db.refresh(entry)
            raise InvalidStateException("transaction", entry.status.value, new_status.value)

        await self.db.refresh(entry)
        return entry

    async def sum_approved(self, user_id: uuid.UUID) -> int:
        """Sum of approved amounts, 0 for a user without entries"""
        total = await self.db.scalar(
            select(func.coalesce(func.sum(CoinTransaction.amount), 0)).where(
                CoinTransaction.user_id == user_id,
                CoinTransaction.status == TransactionStatus.APPROVED,
            )
        )
        return int(total or 0)

    async def list_for_user(self, user_id: uuid.UUID, page: int = 1, size: int = 20) -> dict:
        """Paginated history of a user's entries, newest first"""
        stmt = (
            select(CoinTransaction)
            .where(CoinTransaction.user_id == user_id)
            .order_by(CoinTransaction.created_at.desc(), CoinTransaction.id)
        )
        return await paginate(self.db, stmt, page=page, size=size)

    async def list_pending(
        self,
        company_id: uuid.UUID,
        created_by_id: Optional[uuid.UUID] = None,
    ) -> List[CoinTransaction]:
        """Pending entries of a company, optionally only those one actor created"""
        stmt = select(CoinTransaction).where(
            CoinTransaction.company_id == company_id,
            CoinTransaction.status == TransactionStatus.PENDING,
        )
        if created_by_id is not None:
            stmt = stmt.where(CoinTransaction.created_by_id == created_by_id)
        stmt = stmt.order_by(CoinTransaction.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_for_reference(self, ref_type: str, ref_id: uuid.UUID) -> List[CoinTransaction]:
        """Entries linked to a redemption or other source row"""
        result = await self.db.execute(
            select(CoinTransaction)
            .where(CoinTransaction.ref_type == ref_type, CoinTransaction.ref_id == ref_id)
            .order_by(CoinTransaction.created_at)
        )
        return list(result.scalars().all())
