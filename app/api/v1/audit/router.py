"""
Audit log API routes
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import uuid

from app.core.database import get_db
from app.core.security import Actor, require_admin
from app.services.audit_service import AuditService
from app.utils.dependencies import get_pagination_params
from app.utils.pagination import PaginationParams, PaginatedResponse
from .schemas import AuditLogResponse

router = APIRouter()

@router.get(
    "",
    response_model=PaginatedResponse[AuditLogResponse],
    summary="List audit logs",
    description="Recorded actions of the caller's company, newest first"
)
async def list_audit_logs(
    entity: Optional[str] = None,
    entity_id: Optional[str] = None,
    actor_id: Optional[uuid.UUID] = None,
    pagination: PaginationParams = Depends(get_pagination_params),
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List audit logs"""
    result = await AuditService(db).list_logs(
        company_id=actor.company_id,
        entity=entity,
        entity_id=entity_id,
        actor_id=actor_id,
        page=pagination.page,
        size=pagination.size
    )
    return PaginatedResponse[AuditLogResponse](
        items=[AuditLogResponse.model_validate(log) for log in result["items"]],
        total=result["total"],
        page=result["page"],
        size=result["size"],
        pages=result["pages"]
    )
