"""
Self-service profile/role, user search and admin overrides
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
import logging

from app.api.deps import Page, get_auth_context, pagination
from app.database import get_db
from app.models import Role
from app.schemas.common import ApiResponse
from app.schemas.user import (
    AdminProfileUpdate, ProfileUpdate, RoleUpdate, UserSearchItem, UserSearchResult
)
from app.services.auth_service import AuthContext
from app.services.user_service import user_service

router = APIRouter(prefix="/api", tags=["users"])
logger = logging.getLogger(__name__)


@router.patch("/me/profile", response_model=ApiResponse)
async def update_my_profile(
    update: ProfileUpdate,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    user_service.update_profile(db, ctx, update)
    return ApiResponse()


@router.patch("/me/role", response_model=ApiResponse)
async def change_my_role(
    update: RoleUpdate,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """Keep or lower your own role; raising it is forbidden"""
    user_service.change_own_role(db, ctx, update.role)
    return ApiResponse()


@router.get("/users/search", response_model=ApiResponse[UserSearchResult])
async def search_users(
    role: Role = Query(Role.STUDENT),
    query: str = Query(""),
    page: Page = Depends(pagination),
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """Teachers and admins look up users, e.g. to assign students"""
    users = user_service.search(db, ctx, role.value, query, page.limit, page.offset)
    return ApiResponse(data=UserSearchResult(users=[UserSearchItem.model_validate(u) for u in users]))


@router.post("/admin/users/{user_id}/role", response_model=ApiResponse)
async def admin_set_role(
    user_id: int,
    update: RoleUpdate,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    user_service.set_role(db, ctx, user_id, update.role)
    return ApiResponse()


@router.post("/admin/users/{user_id}/profile", response_model=ApiResponse)
async def admin_set_profile(
    user_id: int,
    update: AdminProfileUpdate,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    user_service.set_profile(db, ctx, user_id, update)
    return ApiResponse()
