"""Shop redemption model"""

from sqlalchemy import Column, Integer, ForeignKey, Text, DateTime, Enum, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import enum

from app.models.base import Base, TimestampedModel, UUIDModel, TenantModel

class RedemptionStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ISSUED = "ISSUED"

class Redemption(Base, TimestampedModel, UUIDModel, TenantModel):
    """Request to exchange coins for a shop item"""

    __tablename__ = "redemptions"

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    shop_item_id = Column(UUID(as_uuid=True), ForeignKey("shop_items.id"), nullable=False)
    price_coins_snapshot = Column(Integer, nullable=False)
    status = Column(Enum(RedemptionStatus), default=RedemptionStatus.PENDING, nullable=False)
    comment = Column(Text)
    approved_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    approved_at = Column(DateTime(timezone=True))
    issued_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    issued_at = Column(DateTime(timezone=True))

    # Relationships
    user = relationship("User", foreign_keys=[user_id])
    item = relationship("ShopItem")

    __table_args__ = (
        CheckConstraint("price_coins_snapshot > 0", name="check_positive_snapshot"),
        Index("idx_redemptions_company_status", "company_id", "status"),
        Index("idx_redemptions_user", "user_id"),
    )
