"""
Coin transaction API routes
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, List
import uuid

from app.core.database import get_db
from app.core.security import Actor, get_current_actor, require_admin, require_approver
from app.services.transaction_service import TransactionService
from app.utils.dependencies import get_pagination_params
from app.utils.pagination import PaginationParams, PaginatedResponse
from .schemas import (
    TransactionCreate,
    ZeroOutRequest,
    TransactionReview,
    TransactionResponse
)

router = APIRouter()

@router.get(
    "",
    response_model=PaginatedResponse[TransactionResponse],
    summary="List transactions",
    description="Ledger history of the caller or of a user the caller may see"
)
async def list_transactions(
    user_id: Optional[uuid.UUID] = None,
    pagination: PaginationParams = Depends(get_pagination_params),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """List ledger entries"""
    service = TransactionService(db)
    result = await service.list_transactions(
        actor, user_id=user_id, page=pagination.page, size=pagination.size
    )
    return PaginatedResponse[TransactionResponse](
        items=[TransactionResponse.model_validate(entry) for entry in result["items"]],
        total=result["total"],
        page=result["page"],
        size=result["size"],
        pages=result["pages"]
    )

@router.post(
    "",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create transaction",
    description="Credit (EARN) or adjust (ADJUST) a user's coins. Entries by team leads wait for admin review."
)
async def create_transaction(
    data: TransactionCreate,
    actor: Actor = Depends(require_approver),
    db: AsyncSession = Depends(get_db)
):
    """Create a manual ledger entry"""
    service = TransactionService(db)
    entry = await service.create_transaction(
        actor,
        user_id=data.user_id,
        amount=data.amount,
        type=data.type,
        reason=data.reason
    )
    return TransactionResponse.model_validate(entry)

@router.post(
    "/zero-out",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Zero out balance",
    description="Write an adjustment that brings the user's balance to zero"
)
async def zero_out(
    data: ZeroOutRequest,
    actor: Actor = Depends(require_approver),
    db: AsyncSession = Depends(get_db)
):
    """Zero out a user's balance"""
    entry = await TransactionService(db).zero_out(actor, data.user_id)
    return TransactionResponse.model_validate(entry)

@router.get(
    "/pending",
    response_model=List[TransactionResponse],
    summary="Pending transactions",
    description="Entries waiting for admin review"
)
async def list_pending(
    actor: Actor = Depends(require_approver),
    db: AsyncSession = Depends(get_db)
):
    """List pending entries"""
    entries = await TransactionService(db).list_pending(actor)
    return [TransactionResponse.model_validate(entry) for entry in entries]

@router.patch(
    "/{entry_id}/review",
    response_model=TransactionResponse,
    summary="Review transaction",
    description="Approve or reject a pending entry"
)
async def review_transaction(
    entry_id: uuid.UUID,
    data: TransactionReview,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Approve or reject a pending entry"""
    entry = await TransactionService(db).review_transaction(entry_id, data.status, actor)
    return TransactionResponse.model_validate(entry)
