"""
Exam authoring, lifecycle, assignment and paper endpoints
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
import logging

from app.api.deps import Page, get_auth_context, get_optional_auth_context, pagination
from app.database import get_db
from app.exceptions import Unauthorized
from app.schemas.common import ApiResponse, CreatedId
from app.schemas.exam import (
    AssignmentList, AssignmentOut, AssignRequest, AssignResult, AuthoringItems,
    ExamCreate, ExamListItem, ExamOut, ExamQuestionsBulk, ExamSubmissionList, ExamUpdate,
    Paper, PublishRequest, RevokeRequest, TotalPoints
)
from app.schemas.submission import StartResponse
from app.services.auth_service import AuthContext
from app.services.exam_service import exam_service
from app.services.submission_service import submission_service

router = APIRouter(prefix="/api/exams", tags=["exams"])
logger = logging.getLogger(__name__)


@router.post("", response_model=ApiResponse[CreatedId], status_code=201)
async def create_exam(
    request: ExamCreate,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """Create a draft exam with no questions and no window"""
    exam = exam_service.create(db, ctx, request)
    return ApiResponse(data=CreatedId(id=exam.id))


@router.get("", response_model=ApiResponse[List[ExamListItem]])
async def list_exams(
    list_: Optional[str] = Query(None, alias="list", description="'public' lists published public exams"),
    page: Page = Depends(pagination),
    ctx: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: Session = Depends(get_db)
):
    """
    Role-scoped exam listing

    - list=public: published public exams, no token needed
    - admin: all exams; teacher: own exams; student: assigned exams
    """
    public_only = list_ == "public"
    if not public_only and ctx is None:
        raise Unauthorized()

    exams = exam_service.list_exams(db, ctx, public_only, page.limit, page.offset)
    return ApiResponse(data=[ExamListItem.model_validate(e) for e in exams])


@router.get("/{exam_id}", response_model=ApiResponse[ExamOut])
async def get_exam(
    exam_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    exam = exam_service.get_detail(db, ctx, exam_id)
    return ApiResponse(data=ExamOut.model_validate(exam))


@router.patch("/{exam_id}", response_model=ApiResponse)
async def update_exam(
    exam_id: int,
    update: ExamUpdate,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """Edit metadata; only while the exam is a draft"""
    exam_service.update(db, ctx, exam_id, update)
    return ApiResponse()


@router.get("/{exam_id}/questions", response_model=ApiResponse[AuthoringItems])
async def get_exam_questions(
    exam_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    items = exam_service.list_questions(db, ctx, exam_id)
    return ApiResponse(data=AuthoringItems(items=items))


@router.post("/{exam_id}/questions/bulk", response_model=ApiResponse[TotalPoints])
async def set_exam_questions(
    exam_id: int,
    request: ExamQuestionsBulk,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """Replace the whole question list and recompute total_points"""
    total_points = exam_service.set_questions(db, ctx, exam_id, request.items)
    return ApiResponse(data=TotalPoints(total_points=total_points))


@router.post("/{exam_id}/publish", response_model=ApiResponse)
async def publish_exam(
    exam_id: int,
    request: PublishRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    exam_service.publish(db, ctx, exam_id, request)
    return ApiResponse()


@router.post("/{exam_id}/close", response_model=ApiResponse)
async def close_exam(
    exam_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    exam_service.close(db, ctx, exam_id)
    return ApiResponse()


@router.post("/{exam_id}/assign", response_model=ApiResponse[AssignResult])
async def assign_students(
    exam_id: int,
    request: AssignRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """Assign students to a published exam; existing assignments are skipped"""
    assigned = exam_service.assign(db, ctx, exam_id, request)
    return ApiResponse(data=AssignResult(assigned=assigned))


@router.get("/{exam_id}/assignments", response_model=ApiResponse[AssignmentList])
async def list_assignments(
    exam_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    rows = exam_service.list_assignments(db, ctx, exam_id)
    return ApiResponse(data=AssignmentList(assignments=[AssignmentOut.model_validate(r) for r in rows]))


@router.delete("/{exam_id}/assignments", response_model=ApiResponse)
async def revoke_assignments(
    exam_id: int,
    request: RevokeRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    exam_service.revoke(db, ctx, exam_id, request.ids)
    return ApiResponse()


@router.get("/{exam_id}/paper", response_model=ApiResponse[Paper])
async def get_paper(
    exam_id: int,
    include_answers: bool = Query(False, alias="includeAnswers"),
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """
    Exam paper for taking or reviewing

    Answer keys are only returned to the owner or an admin with includeAnswers=true.
    """
    paper = exam_service.get_paper(db, ctx, exam_id, include_answers)
    return ApiResponse(data=Paper(**paper))


@router.post("/{exam_id}/start", response_model=ApiResponse[StartResponse])
async def start_exam(
    exam_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """Create the caller's submission, or resume it while in progress"""
    submission_id = submission_service.start(db, ctx, exam_id)
    return ApiResponse(data=StartResponse(submission_id=submission_id))


@router.get("/{exam_id}/submissions", response_model=ApiResponse[ExamSubmissionList])
async def list_exam_submissions(
    exam_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    rows = exam_service.list_submissions(db, ctx, exam_id)
    return ApiResponse(data=ExamSubmissionList(submissions=rows))
