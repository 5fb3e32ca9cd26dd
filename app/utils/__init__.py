"""Utilities package"""

from .helpers import utcnow, as_utc, is_expired
from .pagination import paginate, PaginationParams, PaginatedResponse

__all__ = [
    "utcnow",
    "as_utc",
    "is_expired",
    "paginate",
    "PaginationParams",
    "PaginatedResponse",
]
