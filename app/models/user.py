"""
User model
Holds role, team membership and tenant of every account
"""

from sqlalchemy import Column, String, Boolean, ForeignKey, Index, Enum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import enum

from .base import Base, TimestampedModel, UUIDModel, TenantModel

class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    ROP = "ROP"
    MANAGER = "MANAGER"

class User(Base, TimestampedModel, UUIDModel, TenantModel):
    """Company employee"""

    __tablename__ = "users"

    username = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    role = Column(Enum(UserRole), default=UserRole.MANAGER, nullable=False)
    team_id = Column(UUID(as_uuid=True), ForeignKey("teams.id"), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    team = relationship("Team", back_populates="members", foreign_keys=[team_id])

    # Indexes
    __table_args__ = (
        Index("idx_users_company_role", "company_id", "role"),
    )

    def __repr__(self):
        return f"<User {self.username}>"
