"""User model definitions."""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from app.utils.intervals import UtcDatetime


class UserRole(str, Enum):
    """User roles, lowest privilege first."""

    STANDARD = "standard"
    POWER = "power"
    ADMIN = "admin"


class UserBase(BaseModel):
    """Base user fields."""

    email: EmailStr
    name: str = Field(min_length=2)


class UserCreate(UserBase):
    """Self-registration model with password."""

    password: str = Field(min_length=6)


class AdminUserCreate(UserCreate):
    """User creation by an admin, role selectable."""

    role: UserRole = UserRole.STANDARD


class UserUpdate(BaseModel):
    """Admin update model - all fields optional."""

    name: Optional[str] = Field(default=None, min_length=2)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    password: Optional[str] = Field(default=None, min_length=6)


class ProfileUpdate(BaseModel):
    """Profile update model for the current user."""

    name: Optional[str] = Field(default=None, min_length=2)
    email: Optional[EmailStr] = None


class PasswordChange(BaseModel):
    """Password change by the current user."""

    current_password: str = Field(min_length=6)
    new_password: str = Field(min_length=6)


class PasswordReset(BaseModel):
    """Password reset by an admin."""

    new_password: str = Field(min_length=6)


class User(UserBase):
    """User model without password (for API responses)."""

    id: str = Field(alias="_id", serialization_alias="id")
    role: UserRole = UserRole.STANDARD
    is_active: bool = True
    last_login: Optional[UtcDatetime] = None
    login_attempts: int = 0
    locked_until: Optional[UtcDatetime] = None
    password_changed_at: Optional[UtcDatetime] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime

    model_config = {"populate_by_name": True}

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
