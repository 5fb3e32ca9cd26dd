"""
Company directory API routes
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import uuid

from app.core.database import get_db
from app.core.security import Actor, get_current_actor, require_approver
from .schemas import UserResponse, TeamResponse
from .services import DirectoryService

router = APIRouter()
teams_router = APIRouter()

@router.get(
    "",
    response_model=List[UserResponse],
    summary="List users",
    description="Admins see the company, team leads see their own team"
)
async def list_users(
    team_id: Optional[uuid.UUID] = Query(None, description="Admins only: narrow to one team"),
    actor: Actor = Depends(require_approver),
    db: AsyncSession = Depends(get_db)
):
    """List users of the company"""
    users = await DirectoryService(db).list_users(actor, team_id=team_id)
    return [UserResponse.model_validate(user) for user in users]

@teams_router.get(
    "",
    response_model=List[TeamResponse],
    summary="List teams"
)
async def list_teams(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """List teams of the company"""
    teams = await DirectoryService(db).list_teams(actor)
    return [TeamResponse.model_validate(team) for team in teams]
