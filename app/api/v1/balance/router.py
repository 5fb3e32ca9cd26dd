"""
Balance API routes
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from app.core.database import get_db
from app.core.security import Actor, get_current_actor
from app.services.transaction_service import TransactionService
from app.api.v1.transactions.schemas import BalanceResponse

router = APIRouter()

@router.get(
    "/{user_id}",
    response_model=BalanceResponse,
    summary="Get balance",
    description="Sum of the user's approved ledger entries"
)
async def get_balance(
    user_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Get a user's coin balance"""
    balance = await TransactionService(db).get_balance_for(actor, user_id)
    return BalanceResponse(user_id=user_id, balance=balance)
