"""
Invite schemas for request/response validation
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
import uuid

class InviteCreate(BaseModel):
    """New invite link"""
    team_id: Optional[uuid.UUID] = None
    usage_limit: Optional[int] = Field(None, ge=1)
    expires_in_hours: Optional[int] = Field(None, ge=1)

class InviteResponse(BaseModel):
    """Invite link as seen by admins"""
    id: uuid.UUID
    token: str
    company_id: uuid.UUID
    team_id: Optional[uuid.UUID]
    created_by_id: uuid.UUID
    usage_limit: int
    usage_count: int
    is_active: bool
    expires_at: Optional[datetime]
    used_at: Optional[datetime]
    last_used_by_id: Optional[uuid.UUID]
    created_at: datetime

    class Config:
        from_attributes = True

class InviteValidation(BaseModel):
    """Public answer to whether a token can be used"""
    valid: bool
    team_id: Optional[uuid.UUID] = None
    company_id: Optional[uuid.UUID] = None
    reason: Optional[str] = None
