"""
ExamHub - User Schemas
Pydantic schemas for user registration, authentication, and profiles
"""
import uuid
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, EmailStr, Field

from examhub.models.user import UserRole
from examhub.schemas.common import CamelModel


# ============================================================================
# Registration & Authentication
# ============================================================================

class UserCreate(BaseModel):
    """Schema for user registration."""
    name: Annotated[str, Field(min_length=2, max_length=100)]
    email: EmailStr
    password: Annotated[str, Field(min_length=6, max_length=128)]


class UserLogin(BaseModel):
    """Schema for user login."""
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """Schema for authentication token response."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = 3600


class TokenRefresh(BaseModel):
    """Schema for token refresh request."""
    refresh_token: str


# ============================================================================
# User Response Schemas
# ============================================================================

class UserResponse(CamelModel):
    """Schema for user response (public data)."""
    id: uuid.UUID
    name: str
    email: EmailStr
    role: UserRole
    is_active: bool
    created_at: datetime


class UserProfile(UserResponse):
    """User profile with activity counters."""
    completed_tests: int = 0
    authored_tests: int = 0


class UserUpdate(BaseModel):
    """Schema for updating user profile."""
    name: Annotated[str, Field(min_length=2, max_length=100)] | None = None
