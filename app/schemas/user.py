"""
Pydantic schemas for self-service and admin user management
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from app.models.user import Role


class ProfileUpdate(BaseModel):
    display_name: Optional[str] = Field(None, max_length=100)
    avatar_url: Optional[str] = Field(None, max_length=500)


class RoleUpdate(BaseModel):
    role: Role


class AdminProfileUpdate(BaseModel):
    """Plan/grade override; omitted fields keep their stored value"""
    plan: Optional[str] = Field(None, max_length=20)
    grade_level: Optional[str] = Field(None, max_length=20)
    plan_expires_at: Optional[datetime] = None


class UserSearchItem(BaseModel):
    id: int
    username: str
    email: str
    display_name: Optional[str] = None

    class Config:
        from_attributes = True


class UserSearchResult(BaseModel):
    users: List[UserSearchItem]
