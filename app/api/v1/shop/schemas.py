"""
Shop catalog schemas
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional
import uuid

class ShopItemBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    price_coins: int = Field(..., gt=0)
    stock: int = Field(0, ge=0)
    image_url: Optional[str] = Field(None, max_length=500)
    is_active: bool = True

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title cannot be blank")
        return v.strip()

class ShopItemCreate(ShopItemBase):
    """New catalog entry"""
    pass

class ShopItemUpdate(BaseModel):
    """Partial update; omitted fields stay unchanged"""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price_coins: Optional[int] = Field(None, gt=0)
    stock: Optional[int] = Field(None, ge=0)
    image_url: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None

class ShopItemResponse(BaseModel):
    """Catalog entry"""
    id: uuid.UUID
    title: str
    description: Optional[str]
    price_coins: int
    stock: Optional[int]
    image_url: Optional[str]
    is_active: bool

    class Config:
        from_attributes = True
