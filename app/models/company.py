"""Company (tenant) and team models"""

from sqlalchemy import Column, String, Boolean
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from .base import Base, TimestampedModel, UUIDModel, TenantModel

class Company(Base, TimestampedModel, UUIDModel):
    """Tenant owning every other row"""

    __tablename__ = "companies"

    name = Column(String(200), nullable=False)
    subdomain = Column(String(100), unique=True, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<Company {self.subdomain}>"

class Team(Base, TimestampedModel, UUIDModel, TenantModel):
    """Group of managers led by a ROP"""

    __tablename__ = "teams"

    name = Column(String(200), nullable=False)
    rop_user_id = Column(UUID(as_uuid=True), nullable=True)

    members = relationship("User", back_populates="team", foreign_keys="User.team_id")
