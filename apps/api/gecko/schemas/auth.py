"""
Auth-related Pydantic schemas for request/response validation.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserSignUp(BaseModel):
    """Schema for user registration request."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str


class UserSignIn(BaseModel):
    """Schema for sign-in request."""
    email: EmailStr
    password: str


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(..., alias="currentPassword")
    new_password: str = Field(..., alias="newPassword")


class PlanSummary(BaseModel):
    id: int
    name: str
    duration_in_days: int

    model_config = ConfigDict(from_attributes=True)


class UserResponse(BaseModel):
    """Schema for user response (without password)."""
    id: UUID
    name: str
    email: str
    is_admin: bool
    current_plan_id: Optional[int] = None
    subscription_ends_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
    plan: Optional[PlanSummary] = None

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    """Schema for a successful sign-in."""
    user: UserResponse
    token: str
    token_type: str = "bearer"


class MessageResponse(BaseModel):
    message: str


class SessionCheckResponse(BaseModel):
    """Entitlement and profile summary the extension uses to render its state."""
    authenticated: bool
    has_subscription: bool
    subscription_status: str
    subscription_ends_at: Optional[datetime] = None
    user: UserResponse


class BanRequest(BaseModel):
    banned: bool


class BanResponse(BaseModel):
    id: UUID
    email: str
    banned: bool
    revoked_sessions: int
