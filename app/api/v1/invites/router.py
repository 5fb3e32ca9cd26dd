"""
Invite API routes
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import uuid

from app.core.database import get_db
from app.core.security import Actor, require_admin
from app.services.invite_service import InviteService
from .schemas import InviteCreate, InviteResponse, InviteValidation

router = APIRouter()

@router.get(
    "/validate/{token}",
    response_model=InviteValidation,
    summary="Validate invite",
    description="Check an invite token before registration. Public."
)
async def validate_invite(
    token: str,
    db: AsyncSession = Depends(get_db)
):
    """Validate an invite token"""
    result = await InviteService(db).validate(token)
    return InviteValidation(**result)

@router.get(
    "",
    response_model=List[InviteResponse],
    summary="List invites"
)
async def list_invites(
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List the company's invites"""
    invites = await InviteService(db).list_invites(actor)
    return [InviteResponse.model_validate(invite) for invite in invites]

@router.post(
    "",
    response_model=InviteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create invite",
    description="Issue a registration link, optionally bound to a team"
)
async def create_invite(
    data: InviteCreate,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create an invite"""
    invite = await InviteService(db).create_invite(
        actor,
        team_id=data.team_id,
        usage_limit=data.usage_limit,
        expires_in_hours=data.expires_in_hours
    )
    return InviteResponse.model_validate(invite)

@router.post(
    "/{invite_id}/deactivate",
    response_model=InviteResponse,
    summary="Deactivate invite"
)
async def deactivate_invite(
    invite_id: uuid.UUID,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Deactivate an invite"""
    invite = await InviteService(db).deactivate(invite_id, actor)
    return InviteResponse.model_validate(invite)
