"""
Anonymous read-only endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.common import ApiResponse
from app.schemas.exam import PublicExam
from app.services.exam_service import exam_service

router = APIRouter(prefix="/api/public", tags=["public"])


@router.get("/exams/{exam_id}", response_model=ApiResponse[PublicExam])
async def get_public_exam(exam_id: int, db: Session = Depends(get_db)):
    """Published public exam summary, no token required"""
    return ApiResponse(data=exam_service.get_public(db, exam_id))
