"""Balance calculator"""

from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from .ledger import LedgerStore

class BalanceService:
    """Derives balances from approved ledger entries; never cached"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = LedgerStore(db)

    async def get_balance(self, user_id: uuid.UUID) -> int:
        """Current balance of a user"""
        return await self.ledger.sum_approved(user_id)
