"""
Custom exception classes and error handlers
Provides consistent error responses across the application
"""

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from typing import Any, Dict, Optional

class RewardsException(HTTPException):
    """Base exception class for the rewards application"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code

class BadRequestException(RewardsException):
    """400 Bad Request"""

    def __init__(self, detail: str, error_code: str = "BAD_REQUEST"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code
        )

class UnauthorizedException(RewardsException):
    """401 Unauthorized"""

    def __init__(self, detail: str = "Unauthorized", error_code: str = "UNAUTHORIZED"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code=error_code,
            headers={"WWW-Authenticate": "Bearer"}
        )

class ForbiddenException(RewardsException):
    """403 Forbidden"""

    def __init__(self, detail: str = "Forbidden", error_code: str = "FORBIDDEN"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code=error_code
        )

class NotFoundException(RewardsException):
    """404 Not Found"""

    def __init__(self, detail: str = "Not found", error_code: str = "NOT_FOUND"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code=error_code
        )

class ConflictException(RewardsException):
    """409 Conflict"""

    def __init__(self, detail: str, error_code: str = "CONFLICT"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code=error_code
        )

class ValidationException(RewardsException):
    """422 Unprocessable Entity"""

    def __init__(self, detail: str, error_code: str = "VALIDATION_ERROR"):
        super().__init__(
            status_code=422,
            detail=detail,
            error_code=error_code
        )

# Business logic exceptions
class InsufficientFundsException(BadRequestException):
    """Balance too low for a redemption"""

    def __init__(self, required: int, available: int):
        super().__init__(
            detail=f"Insufficient coins. Required: {required}, available: {available}.",
            error_code="INSUFFICIENT_FUNDS"
        )
        self.required = required
        self.available = available

class InvalidStateException(ConflictException):
    """Status transition not allowed from the current state"""

    def __init__(self, entity: str, current: str, requested: str):
        super().__init__(
            detail=f"Cannot move {entity} from {current} to {requested}",
            error_code="INVALID_STATE"
        )
        self.current = current
        self.requested = requested

class AlreadyZeroException(BadRequestException):
    """Zero-out requested on an empty balance"""

    def __init__(self, detail: str = "Balance is already zero"):
        super().__init__(
            detail=detail,
            error_code="ALREADY_ZERO"
        )

class InviteQuotaExceededException(BadRequestException):
    """Invite token has no uses left"""

    def __init__(self, detail: str = "Invite link usage limit reached"):
        super().__init__(
            detail=detail,
            error_code="INVITE_QUOTA_EXCEEDED"
        )

class InviteExpiredException(BadRequestException):
    """Invite token expiry has passed"""

    def __init__(self, detail: str = "Invite link has expired"):
        super().__init__(
            detail=detail,
            error_code="INVITE_EXPIRED"
        )

class InviteInactiveException(BadRequestException):
    """Invite token was deactivated"""

    def __init__(self, detail: str = "Invite link is no longer active"):
        super().__init__(
            detail=detail,
            error_code="INVITE_INACTIVE"
        )

class DuplicateResourceException(ConflictException):
    """Resource already exists"""

    def __init__(self, resource: str, field: str, value: str):
        super().__init__(
            detail=f"{resource} with {field} '{value}' already exists",
            error_code="DUPLICATE_RESOURCE"
        )

async def rewards_exception_handler(request: Request, exc: RewardsException) -> JSONResponse:
    """Render application errors with their error code"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error_code": exc.error_code},
        headers=exc.headers,
    )
