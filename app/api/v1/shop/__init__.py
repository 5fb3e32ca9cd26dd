"""Shop module exports"""

from . import router, schemas, services

__all__ = ["router", "schemas", "services"]
