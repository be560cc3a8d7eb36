"""
Question bank endpoints
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
import logging

from app.api.deps import Page, get_auth_context, pagination
from app.database import get_db
from app.schemas.common import ApiResponse, CreatedId
from app.schemas.question import QuestionCreate, QuestionListItem, QuestionOut, QuestionUpdate
from app.services.auth_service import AuthContext
from app.services.question_service import question_service

router = APIRouter(prefix="/api/questions", tags=["questions"])
logger = logging.getLogger(__name__)


@router.post("", response_model=ApiResponse[CreatedId], status_code=201)
async def create_question(
    request: QuestionCreate,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """Teachers and admins add a question to their bank"""
    question = question_service.create(db, ctx, request)
    return ApiResponse(data=CreatedId(id=question.id))


@router.get("", response_model=ApiResponse[List[QuestionListItem]])
async def list_questions(
    public: bool = Query(False, description="Student-facing listing of active questions"),
    type: Optional[str] = Query(None, description="Filter by question type"),
    include_content: bool = Query(False, alias="includeContent"),
    page: Page = Depends(pagination),
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """
    List questions

    - public=true: active questions of any author, content included, no answer keys
    - otherwise: the caller's own questions (all questions for admins), inactive included
    """
    if public:
        rows = question_service.list_public(db, type, page.limit, page.offset)
    else:
        rows = question_service.list_owned(db, ctx, type, include_content, page.limit, page.offset)
    return ApiResponse(data=[QuestionListItem(**row) for row in rows])


@router.get("/{question_id}", response_model=ApiResponse[QuestionOut])
async def get_question(
    question_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    question = question_service.get_owned(db, ctx, question_id)
    return ApiResponse(data=QuestionOut.model_validate(question))


@router.patch("/{question_id}", response_model=ApiResponse)
async def update_question(
    question_id: int,
    update: QuestionUpdate,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    question_service.update(db, ctx, question_id, update)
    return ApiResponse()


@router.delete("/{question_id}", response_model=ApiResponse)
async def delete_question(
    question_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """Soft delete: the question is deactivated, never removed"""
    question_service.delete(db, ctx, question_id)
    return ApiResponse()
