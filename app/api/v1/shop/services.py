"""
Shop catalog service layer
"""

from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import logging
import uuid

from app.core.security import Actor
from app.core.exceptions import NotFoundException, ForbiddenException, ValidationException
from app.models import ShopItem
from app.models.base import model_to_dict
from app.services.audit_service import AuditService

logger = logging.getLogger(__name__)

SHOP_ITEM_ENTITY = "shop_item"
EDITABLE_FIELDS = ("title", "description", "price_coins", "stock", "image_url", "is_active")

class ShopService:
    """Company catalog: reads for everyone, edits for admins"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def list_items(self, actor: Actor, include_inactive: bool = False) -> List[ShopItem]:
        """Items of the actor's company, cheapest first. Only admins see retired items."""
        stmt = select(ShopItem).where(ShopItem.company_id == actor.company_id)
        if not (include_inactive and actor.is_admin):
            stmt = stmt.where(ShopItem.is_active == True)
        result = await self.db.execute(stmt.order_by(ShopItem.price_coins, ShopItem.title))
        return list(result.scalars().all())

    async def get_item(self, item_id: uuid.UUID, actor: Actor) -> ShopItem:
        """Single item of the actor's company; retired items are hidden from non-admins"""
        item = await self.db.scalar(
            select(ShopItem).where(
                ShopItem.id == item_id,
                ShopItem.company_id == actor.company_id
            )
        )
        if not item or (not item.is_active and not actor.is_admin):
            raise NotFoundException("Item not found")
        return item

    @staticmethod
    def _check_values(values: Dict[str, Any]) -> None:
        if "price_coins" in values and (values["price_coins"] is None or values["price_coins"] <= 0):
            raise ValidationException("price_coins must be positive")
        if "stock" in values and (values["stock"] is None or values["stock"] < 0):
            raise ValidationException("stock cannot be negative")
        if "title" in values and not (values["title"] or "").strip():
            raise ValidationException("title is required")
        for field in ("description", "is_active"):
            if field in values and values[field] is None:
                raise ValidationException(f"{field} cannot be null")

    async def create_item(
        self,
        actor: Actor,
        title: str,
        price_coins: int,
        description: str = "",
        stock: int = 0,
        image_url: Optional[str] = None,
        is_active: bool = True
    ) -> ShopItem:
        """Add an item to the actor's catalog (admins only)"""
        if not actor.is_admin:
            raise ForbiddenException("Only admins can manage the shop")
        self._check_values({"title": title, "price_coins": price_coins, "stock": stock})

        item = ShopItem(
            company_id=actor.company_id,
            title=title.strip(),
            description=description or "",
            price_coins=price_coins,
            stock=stock,
            image_url=image_url,
            is_active=is_active,
        )
        try:
            self.db.add(item)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(item)

        logger.info("Shop item %s created by %s at %s coins", item.id, actor.id, item.price_coins)
        await self.audit.log_action(
            actor_id=actor.id,
            company_id=actor.company_id,
            action="shop_item.create",
            entity=SHOP_ITEM_ENTITY,
            entity_id=item.id,
            details=model_to_dict(item, exclude=["created_at", "updated_at"]),
        )
        return item

    async def update_item(self, item_id: uuid.UUID, actor: Actor, **changes) -> ShopItem:
        """
        Change catalog fields of an item (admins only)

        Existing redemptions keep their price snapshot, so a price change
        only affects later purchases.
        """
        if not actor.is_admin:
            raise ForbiddenException("Only admins can manage the shop")

        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationException(f"Unknown fields: {', '.join(sorted(unknown))}")
        self._check_values(changes)

        item = await self.get_item(item_id, actor)
        previous = {field: getattr(item, field) for field in changes}
        try:
            for field, value in changes.items():
                setattr(item, field, value.strip() if field == "title" else value)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(item)

        logger.info("Shop item %s updated by %s: %s", item.id, actor.id, sorted(changes))
        await self.audit.log_action(
            actor_id=actor.id,
            company_id=actor.company_id,
            action="shop_item.update",
            entity=SHOP_ITEM_ENTITY,
            entity_id=item.id,
            details={"before": previous, "after": {field: getattr(item, field) for field in changes}},
        )
        return item
