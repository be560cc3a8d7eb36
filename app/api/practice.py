"""
Ungraded practice endpoints; nothing is persisted
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_auth_context
from app.database import get_db
from app.schemas.common import ApiResponse
from app.schemas.practice import PracticePaper, PracticeResult, PracticeSubmission
from app.services.auth_service import AuthContext
from app.services.practice_service import practice_service

router = APIRouter(prefix="/api/practice", tags=["practice"])


@router.get("/paper", response_model=ApiResponse[PracticePaper])
async def draw_paper(
    count: Optional[int] = Query(None, description="Number of questions, clamped to [1, PRACTICE_MAX_COUNT]"),
    type: Optional[str] = Query(None),
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """Random active questions without answer keys"""
    items = practice_service.draw(db, count, type)
    return ApiResponse(data=PracticePaper(items=items))


@router.post("/submit", response_model=ApiResponse[PracticeResult])
async def submit_practice(
    request: PracticeSubmission,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """Score answers and reveal the keys"""
    result = practice_service.score(db, request.items)
    return ApiResponse(data=PracticeResult(**result))
