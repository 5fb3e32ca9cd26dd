"""Coin ledger model"""

from sqlalchemy import Column, Integer, String, ForeignKey, Text, Enum, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import enum

from app.models.base import Base, CreatedAtModel, UUIDModel, TenantModel

class TransactionType(str, enum.Enum):
    EARN = "EARN"
    SPEND = "SPEND"
    ADJUST = "ADJUST"

class TransactionStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

class CoinTransaction(Base, CreatedAtModel, UUIDModel, TenantModel):
    """Append-only coin movement; only status ever changes"""

    __tablename__ = "coin_transactions"

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    type = Column(Enum(TransactionType), nullable=False)
    amount = Column(Integer, nullable=False)  # Positive credits, negative debits
    status = Column(Enum(TransactionStatus), default=TransactionStatus.PENDING, nullable=False)
    reason = Column(Text, nullable=False)
    ref_type = Column(String(50))  # redemption, manual, zero_out
    ref_id = Column(UUID(as_uuid=True))
    created_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)

    # Relationships
    user = relationship("User", foreign_keys=[user_id])
    created_by = relationship("User", foreign_keys=[created_by_id])

    __table_args__ = (
        CheckConstraint(
            "(type = 'EARN' AND amount > 0) OR (type = 'SPEND' AND amount < 0) "
            "OR (type = 'ADJUST' AND amount <> 0)",
            name="check_amount_sign_by_type",
        ),
        Index("idx_coin_transactions_user_status", "user_id", "status"),
        Index("idx_coin_transactions_company_status", "company_id", "status"),
        Index("idx_coin_transactions_ref", "ref_type", "ref_id"),
    )
