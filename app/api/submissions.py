"""
Submission endpoints: save, submit, grade and read
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from app.api.deps import get_auth_context
from app.database import get_db
from app.schemas.common import ApiResponse
from app.schemas.submission import (
    SaveAnswersRequest, SavedCount, ScoreRequest, ScoreResponse, SubmissionAnswerOut,
    SubmissionDetail, SubmissionOut, SubmissionStatusOut, SubmitResponse
)
from app.services.auth_service import AuthContext
from app.services.submission_service import submission_service

router = APIRouter(prefix="/api/submissions", tags=["submissions"])
logger = logging.getLogger(__name__)


@router.put("/{submission_id}/answers", response_model=ApiResponse[SavedCount])
async def save_answers(
    submission_id: int,
    request: SaveAnswersRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """Upsert in-progress answers; may be called any number of times"""
    saved = submission_service.save_answers(db, ctx, submission_id, request.items)
    return ApiResponse(data=SavedCount(saved=saved))


@router.post("/{submission_id}/submit", response_model=ApiResponse[SubmitResponse])
async def submit(
    submission_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """
    Finish the attempt

    Objective questions are auto-scored; short answer and essay items score 0
    until graded by the exam author.
    """
    score_auto = submission_service.submit(db, ctx, submission_id)
    return ApiResponse(data=SubmitResponse(score_auto=score_auto))


@router.post("/{submission_id}/score", response_model=ApiResponse[ScoreResponse])
async def grade(
    submission_id: int,
    request: ScoreRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    result = submission_service.grade(db, ctx, submission_id, request)
    return ApiResponse(data=ScoreResponse(**result))


@router.get("/{submission_id}/status", response_model=ApiResponse[SubmissionStatusOut])
async def get_status(
    submission_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """Status, deadline and server time for the client countdown"""
    status = submission_service.get_status(db, ctx, submission_id)
    return ApiResponse(data=SubmissionStatusOut(**status))


@router.get("/{submission_id}", response_model=ApiResponse[SubmissionDetail])
async def get_submission(
    submission_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    detail = submission_service.get_detail(db, ctx, submission_id)
    return ApiResponse(data=SubmissionDetail(
        submission=SubmissionOut(**detail["submission"]),
        answers=[SubmissionAnswerOut.model_validate(a) for a in detail["answers"]],
    ))
