from pydantic import EmailStr, Field
from typing import Optional
from datetime import datetime
from app.models.enums import UserRole, SalesPosition
from app.schemas.base import CamelModel, PartialUpdate

class UserCreate(CamelModel):
    email: EmailStr
    name: str = Field(..., min_length=2, max_length=100)
    password: str = Field(..., min_length=8, max_length=72)
    position: Optional[SalesPosition] = None

class LoginRequest(CamelModel):
    email: EmailStr
    password: str

class RefreshRequest(CamelModel):
    refresh_token: str

class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str = Field(..., min_length=8, max_length=72)

class UserResponse(CamelModel):
    id: int
    email: EmailStr
    name: Optional[str]
    role: UserRole
    position: Optional[SalesPosition]
    is_active: bool
    phone: Optional[str] = None
    bio: Optional[str] = None
    profile_image_url: Optional[str] = None
    created_at: Optional[datetime] = None

class UserPublic(CamelModel):
    """Only what other reps may see next to a leaderboard row."""
    id: int
    name: Optional[str]
    position: Optional[SalesPosition]
    profile_image_url: Optional[str] = None

class ProfileUpdate(PartialUpdate):
    not_nullable = ("name",)

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = Field(None, pattern=r"^\+?[0-9]{10,15}$")
    bio: Optional[str] = Field(None, max_length=2000)
    profile_image_url: Optional[str] = Field(None, max_length=2048)

class AdminUserUpdate(PartialUpdate):
    not_nullable = ("name", "role", "is_active")

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    role: Optional[UserRole] = None
    position: Optional[SalesPosition] = None
    is_active: Optional[bool] = None

class Token(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str
    user: UserResponse
