"""
Registration, login and current-user endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from app.api.deps import get_auth_context
from app.config import settings
from app.database import get_db
from app.schemas.auth import LoginRequest, LoginResponse, RegisterRequest, UserOut, UserSummary
from app.schemas.common import ApiResponse
from app.services.auth_service import AuthContext
from app.services.user_service import user_service

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/register", response_model=ApiResponse[UserOut], status_code=201)
async def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """
    Create an account

    - Username and email are stored lowercased and must be unique (409)
    - Role defaults to student, plan to free, grade level to none
    """
    user = user_service.register(db, request, settings.JWT_SECRET)
    return ApiResponse(data=UserOut.model_validate(user))


@router.post("/login", response_model=ApiResponse[LoginResponse])
async def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Exchange credentials for a signed bearer token"""
    result = user_service.login(db, request.username, request.password, settings.JWT_SECRET)
    return ApiResponse(data=LoginResponse(**result))


@router.get("/me", response_model=ApiResponse[UserSummary])
async def me(ctx: AuthContext = Depends(get_auth_context), db: Session = Depends(get_db)):
    """Current user with role and plan/grade profile"""
    user = user_service.get_user(db, ctx.user_id)
    return ApiResponse(data=UserSummary(**user_service.summary(db, user)))
