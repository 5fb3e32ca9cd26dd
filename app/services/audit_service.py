"""Audit logging service"""

from typing import Dict, Any, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import logging
import uuid

from app.models.admin_log import AuditLog
from app.utils.pagination import paginate

logger = logging.getLogger(__name__)

class AuditService:
    """Service for recording who did what"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log_action(
        self,
        actor_id: Optional[uuid.UUID],
        company_id: uuid.UUID,
        action: str,
        entity: str,
        entity_id: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        """
        Record an action after the primary write has committed

        Runs in its own session so a failure here never touches the caller's
        transaction. Failures are logged and swallowed.
        """
        log = AuditLog(
            actor_id=actor_id,
            company_id=company_id,
            action=action,
            entity=entity,
            entity_id=str(entity_id) if entity_id is not None else None,
            details=details,
        )
        try:
            async with AsyncSession(self.db.bind, expire_on_commit=False) as session:
                session.add(log)
                await session.commit()
        except Exception:
            logger.exception("Failed to write audit log %s for %s %s", action, entity, entity_id)
            return None
        return log

    async def list_logs(
        self,
        company_id: uuid.UUID,
        entity: Optional[str] = None,
        entity_id: Optional[str] = None,
        actor_id: Optional[uuid.UUID] = None,
        page: int = 1,
        size: int = 50,
    ) -> dict:
        """Get audit logs of a company with filters"""
        stmt = select(AuditLog).where(AuditLog.company_id == company_id)

        if entity:
            stmt = stmt.where(AuditLog.entity == entity)
        if entity_id:
            stmt = stmt.where(AuditLog.entity_id == str(entity_id))
        if actor_id:
            stmt = stmt.where(AuditLog.actor_id == actor_id)

        stmt = stmt.order_by(AuditLog.created_at.desc())
        return await paginate(self.db, stmt, page=page, size=size)
