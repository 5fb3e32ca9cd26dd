"""
Redemption schemas for request/response validation
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
import uuid

from app.models.redemption import RedemptionStatus

class RedemptionCreate(BaseModel):
    """Redeem a shop item"""
    shop_item_id: uuid.UUID
    comment: Optional[str] = Field(None, max_length=1000)

class RedemptionStatusUpdate(BaseModel):
    """Requested next status: APPROVED, REJECTED or ISSUED"""
    status: RedemptionStatus

class RedemptionResponse(BaseModel):
    """Redemption request"""
    id: uuid.UUID
    user_id: uuid.UUID
    shop_item_id: uuid.UUID
    company_id: uuid.UUID
    price_coins_snapshot: int
    status: RedemptionStatus
    comment: Optional[str]
    approved_by_id: Optional[uuid.UUID]
    approved_at: Optional[datetime]
    issued_by_id: Optional[uuid.UUID]
    issued_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True
