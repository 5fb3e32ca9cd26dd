"""API package"""

from .v1 import api_router
from .health import router as health_router

__all__ = ["api_router", "health_router"]
