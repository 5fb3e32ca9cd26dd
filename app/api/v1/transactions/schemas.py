"""
Coin transaction schemas for request/response validation
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
import uuid

from app.models.coin_transaction import TransactionType, TransactionStatus

class TransactionCreate(BaseModel):
    """Manual credit or adjustment"""
    user_id: uuid.UUID
    amount: int
    type: TransactionType = TransactionType.EARN
    reason: str = Field(..., max_length=500)

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, v):
        if not v.strip():
            raise ValueError("Reason is required")
        return v.strip()

class ZeroOutRequest(BaseModel):
    """Bring a user's balance to zero"""
    user_id: uuid.UUID

class TransactionReview(BaseModel):
    """Admin decision on a pending entry"""
    status: TransactionStatus

class TransactionResponse(BaseModel):
    """Ledger entry"""
    id: uuid.UUID
    user_id: uuid.UUID
    company_id: uuid.UUID
    type: TransactionType
    amount: int
    status: TransactionStatus
    reason: str
    ref_type: Optional[str]
    ref_id: Optional[uuid.UUID]
    created_by_id: Optional[uuid.UUID]
    created_at: datetime

    class Config:
        from_attributes = True

class BalanceResponse(BaseModel):
    """Current balance of a user"""
    user_id: uuid.UUID
    balance: int
