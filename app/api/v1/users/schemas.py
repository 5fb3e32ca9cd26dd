"""
Company directory schemas
"""

from pydantic import BaseModel
from typing import Optional
import uuid

from app.api.v1.auth.schemas import UserResponse

class TeamResponse(BaseModel):
    """Team of the caller's company"""
    id: uuid.UUID
    name: str
    rop_user_id: Optional[uuid.UUID]

    class Config:
        from_attributes = True

__all__ = ["UserResponse", "TeamResponse"]
