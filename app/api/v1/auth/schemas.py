"""
Authentication schemas for request/response validation
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
import uuid

from app.models.user import UserRole

class LoginRequest(BaseModel):
    """Username and password login"""
    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)

    model_config = {
        "json_schema_extra": {
            "example": {
                "username": "ivan",
                "password": "secret"
            }
        }
    }

class RegisterRequest(BaseModel):
    """Self-registration through an invite link"""
    invite_token: str = Field(..., min_length=1, max_length=100)
    username: str = Field(..., min_length=1, max_length=255)
    password: str
    name: str = Field(..., min_length=1, max_length=100)

    @field_validator('username', 'name')
    @classmethod
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Must not be blank")
        return v

class TokenResponse(BaseModel):
    """JWT token response"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token expiry in seconds")

class UserResponse(BaseModel):
    """User information response"""
    id: uuid.UUID
    username: str
    name: str
    role: UserRole
    company_id: uuid.UUID
    team_id: Optional[uuid.UUID]
    is_active: bool
    created_at: datetime

    model_config = {
        "from_attributes": True
    }

class AuthResponse(BaseModel):
    """Authentication response with token and user info"""
    user: UserResponse
    tokens: TokenResponse
