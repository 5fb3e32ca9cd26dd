"""
Shop catalog API routes
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import uuid

from app.core.database import get_db
from app.core.exceptions import ValidationException
from app.core.security import Actor, get_current_actor, require_admin
from .schemas import ShopItemCreate, ShopItemUpdate, ShopItemResponse
from .services import ShopService

router = APIRouter()

@router.get(
    "",
    response_model=List[ShopItemResponse],
    summary="List shop items",
    description="Catalog items of the caller's company. Admins may include retired items."
)
async def list_items(
    include_inactive: bool = Query(False),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """List the shop catalog"""
    items = await ShopService(db).list_items(actor, include_inactive=include_inactive)
    return [ShopItemResponse.model_validate(item) for item in items]

@router.post(
    "",
    response_model=ShopItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create shop item"
)
async def create_item(
    data: ShopItemCreate,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Add an item to the catalog"""
    item = await ShopService(db).create_item(actor, **data.model_dump())
    return ShopItemResponse.model_validate(item)

@router.get(
    "/{item_id}",
    response_model=ShopItemResponse,
    summary="Get shop item"
)
async def get_item(
    item_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Get one catalog item"""
    item = await ShopService(db).get_item(item_id, actor)
    return ShopItemResponse.model_validate(item)

@router.patch(
    "/{item_id}",
    response_model=ShopItemResponse,
    summary="Update shop item",
    description="Change price, stock or visibility. Pending redemptions keep their price snapshot."
)
async def update_item(
    item_id: uuid.UUID,
    data: ShopItemUpdate,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Update a catalog item"""
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationException("No fields to update")
    item = await ShopService(db).update_item(item_id, actor, **changes)
    return ShopItemResponse.model_validate(item)
