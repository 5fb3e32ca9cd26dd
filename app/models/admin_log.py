"""Audit log model"""

from sqlalchemy import Column, String, ForeignKey, JSON, Index
from sqlalchemy.dialects.postgresql import UUID

from app.models.base import Base, CreatedAtModel, UUIDModel, TenantModel

class AuditLog(Base, CreatedAtModel, UUIDModel, TenantModel):
    """Who did what to which entity"""

    __tablename__ = "audit_logs"

    actor_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    action = Column(String(100), nullable=False)  # redemption.approve, transaction.create, etc.
    entity = Column(String(50), nullable=False)  # redemption, transaction, invite
    entity_id = Column(String(200), nullable=True)
    details = Column(JSON)

    __table_args__ = (
        Index("idx_audit_logs_company_created", "company_id", "created_at"),
    )
