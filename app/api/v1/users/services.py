"""
Company directory service layer
"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import uuid

from app.core.security import Actor
from app.core.exceptions import ForbiddenException
from app.models import User, UserRole, Team

class DirectoryService:
    """Who works where: users and teams of one company"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_users(self, actor: Actor, team_id: Optional[uuid.UUID] = None) -> List[User]:
        """
        Users visible to the actor

        Admins see the whole company, optionally narrowed to one team.
        Team leads only ever see their own team.
        """
        stmt = select(User).where(User.company_id == actor.company_id)

        if actor.role == UserRole.ROP:
            if actor.team_id is None:
                return []
            stmt = stmt.where(User.team_id == actor.team_id)
        elif actor.is_admin:
            if team_id is not None:
                stmt = stmt.where(User.team_id == team_id)
        else:
            raise ForbiddenException("Insufficient permissions")

        result = await self.db.execute(stmt.order_by(User.name, User.username))
        return list(result.scalars().all())

    async def list_teams(self, actor: Actor) -> List[Team]:
        """Teams of the actor's company"""
        result = await self.db.execute(
            select(Team).where(Team.company_id == actor.company_id).order_by(Team.name)
        )
        return list(result.scalars().all())
