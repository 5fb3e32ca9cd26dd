"""
Redemption API routes
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import uuid

from app.core.database import get_db
from app.core.security import Actor, get_current_actor, require_approver
from app.services.redemption_service import RedemptionService
from .schemas import RedemptionCreate, RedemptionStatusUpdate, RedemptionResponse

router = APIRouter()

@router.get(
    "",
    response_model=List[RedemptionResponse],
    summary="List redemptions",
    description="Own requests (my), the caller's team (team) or the whole company (all)"
)
async def list_redemptions(
    scope: str = Query("my", pattern="^(my|team|all)$"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """List redemptions"""
    redemptions = await RedemptionService(db).list_redemptions(actor, scope=scope)
    return [RedemptionResponse.model_validate(r) for r in redemptions]

@router.post(
    "",
    response_model=RedemptionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Redeem item",
    description="Redeem a shop item. Coins are debited at once and refunded if the request is rejected."
)
async def create_redemption(
    data: RedemptionCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Create redemption"""
    redemption = await RedemptionService(db).create_redemption(
        actor,
        shop_item_id=data.shop_item_id,
        comment=data.comment
    )
    return RedemptionResponse.model_validate(redemption)

@router.get(
    "/{redemption_id}",
    response_model=RedemptionResponse,
    summary="Get redemption"
)
async def get_redemption(
    redemption_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Get redemption details"""
    redemption = await RedemptionService(db).get_redemption(redemption_id, actor)
    return RedemptionResponse.model_validate(redemption)

@router.patch(
    "/{redemption_id}/status",
    response_model=RedemptionResponse,
    summary="Update redemption status",
    description="Approve, reject (with refund) or issue a redemption"
)
async def update_redemption_status(
    redemption_id: uuid.UUID,
    data: RedemptionStatusUpdate,
    actor: Actor = Depends(require_approver),
    db: AsyncSession = Depends(get_db)
):
    """Move a redemption to its next status"""
    redemption = await RedemptionService(db).update_status(redemption_id, data.status, actor)
    return RedemptionResponse.model_validate(redemption)
