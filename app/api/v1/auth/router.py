"""
Authentication API routes
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import Actor, get_current_actor
from .schemas import LoginRequest, RegisterRequest, AuthResponse, UserResponse
from .services import AuthService

router = APIRouter()

@router.post(
    "/login",
    response_model=AuthResponse,
    status_code=status.HTTP_200_OK,
    summary="Login user",
    description="Login with username and password"
)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Login user with password"""
    service = AuthService(db)
    user = await service.login(request.username, request.password)
    return AuthResponse(
        user=UserResponse.model_validate(user),
        tokens=service.generate_tokens(user)
    )

@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register through invite",
    description="Create a manager account using an invite link token"
)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db)
):
    """Register new manager and consume the invite"""
    service = AuthService(db)
    user = await service.register(request)
    return AuthResponse(
        user=UserResponse.model_validate(user),
        tokens=service.generate_tokens(user)
    )

@router.get(
    "/me",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    summary="Get current user",
    description="Get currently authenticated user information"
)
async def get_me(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Get current user information"""
    user = await AuthService(db).get_user(actor)
    return UserResponse.model_validate(user)
