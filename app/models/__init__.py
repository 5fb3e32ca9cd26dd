"""Models package initialization"""

from .base import Base
from .company import Company, Team
from .user import User, UserRole
from .shop_item import ShopItem
from .coin_transaction import CoinTransaction, TransactionType, TransactionStatus
from .redemption import Redemption, RedemptionStatus
from .invite import InviteToken
from .admin_log import AuditLog

# Export all models
__all__ = [
    "Base",
    "Company",
    "Team",
    "User",
    "UserRole",
    "ShopItem",
    "CoinTransaction",
    "TransactionType",
    "TransactionStatus",
    "Redemption",
    "RedemptionStatus",
    "InviteToken",
    "AuditLog",
]
