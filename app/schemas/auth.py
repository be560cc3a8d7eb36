"""
Pydantic schemas for registration, login and the current user
"""
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime


class RegisterRequest(BaseModel):
    """Request schema for account registration"""
    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[a-zA-Z0-9_-]+$")
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    display_name: Optional[str] = Field(None, max_length=100)

    @field_validator("email")
    @classmethod
    def email_fits_column(cls, value: str) -> str:
        if len(value) > 255:
            raise ValueError("must be at most 255 characters")
        return value


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserOut(BaseModel):
    """Stored user row without the password hash"""
    id: int
    username: str
    email: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    level: int
    points: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserSummary(UserOut):
    """User row plus role and plan/grade profile"""
    role: str
    plan: str
    grade_level: Optional[str] = None


class LoginResponse(BaseModel):
    token: str
    user: UserSummary
