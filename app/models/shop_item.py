"""Shop catalog model"""

from sqlalchemy import Column, String, Integer, Boolean, Text, CheckConstraint

from .base import Base, TimestampedModel, UUIDModel, TenantModel

class ShopItem(Base, TimestampedModel, UUIDModel, TenantModel):
    """Item managers can redeem coins for"""

    __tablename__ = "shop_items"

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    price_coins = Column(Integer, nullable=False)
    stock = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    image_url = Column(String(500), nullable=True)

    __table_args__ = (
        CheckConstraint("price_coins > 0", name="check_positive_price"),
    )
