"""Base models and mixins for database models"""

from sqlalchemy import Column, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, declared_attr
from sqlalchemy.sql import func
from datetime import datetime
from typing import Any, Dict, Optional
import uuid

from app.utils.helpers import utcnow

# Create declarative base
class Base(DeclarativeBase):
    pass

class TimestampedModel:
    """Mixin for adding created_at and updated_at timestamps"""

    @declared_attr
    def created_at(cls):
        return Column(
            DateTime(timezone=True),
            nullable=False,
            default=utcnow,
            server_default=func.now(),
            index=True
        )

    @declared_attr
    def updated_at(cls):
        return Column(
            DateTime(timezone=True),
            nullable=False,
            default=utcnow,
            server_default=func.now(),
            onupdate=utcnow
        )

class CreatedAtModel:
    """Mixin for append-only rows that are never updated"""

    @declared_attr
    def created_at(cls):
        return Column(
            DateTime(timezone=True),
            nullable=False,
            default=utcnow,
            server_default=func.now(),
            index=True
        )

class UUIDModel:
    """Mixin for adding UUID primary key"""

    @declared_attr
    def id(cls):
        return Column(
            UUID(as_uuid=True),
            primary_key=True,
            default=uuid.uuid4,
            nullable=False
        )

class TenantModel:
    """Mixin scoping a row to a company"""

    @declared_attr
    def company_id(cls):
        return Column(
            UUID(as_uuid=True),
            ForeignKey("companies.id"),
            nullable=False,
            index=True
        )

def model_to_dict(instance: Any, exclude: Optional[list] = None) -> Dict[str, Any]:
    """Convert model instance to a JSON-friendly dictionary"""
    exclude = exclude or []
    result = {}

    for column in instance.__table__.columns:
        if column.name in exclude:
            continue
        value = getattr(instance, column.name)

        # Handle special types
        if isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, uuid.UUID):
            value = str(value)

        result[column.name] = value

    return result

__all__ = [
    'Base',
    'TimestampedModel',
    'CreatedAtModel',
    'UUIDModel',
    'TenantModel',
    'model_to_dict',
]
