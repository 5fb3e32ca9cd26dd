"""
Audit log schemas
"""

from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime
import uuid

class AuditLogResponse(BaseModel):
    """One recorded action"""
    id: uuid.UUID
    actor_id: Optional[uuid.UUID]
    action: str
    entity: str
    entity_id: Optional[str]
    details: Optional[Dict[str, Any]]
    created_at: datetime

    class Config:
        from_attributes = True
