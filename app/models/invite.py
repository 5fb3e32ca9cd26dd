"""Invite token model"""

from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, DateTime, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID

from .base import Base, CreatedAtModel, UUIDModel, TenantModel

class InviteToken(Base, CreatedAtModel, UUIDModel, TenantModel):
    """Bounded-use self-registration link"""

    __tablename__ = "invite_tokens"

    token = Column(String(100), unique=True, nullable=False, index=True)
    team_id = Column(UUID(as_uuid=True), ForeignKey("teams.id"), nullable=True)
    created_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)

    # Usage limits
    usage_limit = Column(Integer, nullable=False, default=1)
    usage_count = Column(Integer, nullable=False, default=0)
    used_at = Column(DateTime(timezone=True))
    last_used_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)

    # Validity
    is_active = Column(Boolean, default=True, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("usage_limit >= 1", name="check_positive_usage_limit"),
        CheckConstraint("usage_count <= usage_limit", name="check_usage_within_limit"),
    )
