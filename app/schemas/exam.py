"""
Pydantic schemas for exam authoring, publishing, assignment and paper serving
"""
from pydantic import BaseModel, Field
from typing import Any, List, Optional
from datetime import datetime


class ExamCreate(BaseModel):
    """Request schema for creating a draft exam"""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, ge=1)
    randomize: bool = False
    is_public: bool = False
    required_plan: Optional[str] = Field(None, max_length=20)
    required_grade_level: Optional[str] = Field(None, max_length=20)


class ExamUpdate(BaseModel):
    """Partial update of a draft exam; omitted fields are left unchanged"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, ge=1)
    randomize: Optional[bool] = None
    is_public: Optional[bool] = None
    required_plan: Optional[str] = Field(None, max_length=20)
    required_grade_level: Optional[str] = Field(None, max_length=20)


class ExamOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    author_id: int
    total_points: float
    status: str
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    randomize: bool
    is_public: bool
    required_plan: Optional[str] = None
    required_grade_level: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ExamListItem(BaseModel):
    id: int
    title: str
    status: str
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    randomize: bool
    total_points: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ExamQuestionIn(BaseModel):
    question_id: int
    order_index: int = 0
    points: float = Field(0, ge=0)


class ExamQuestionsBulk(BaseModel):
    items: List[ExamQuestionIn] = Field(..., min_length=1)


class TotalPoints(BaseModel):
    total_points: float


class PublishRequest(BaseModel):
    start_at: datetime
    end_at: datetime


class AssignRequest(BaseModel):
    user_ids: List[int] = Field(..., min_length=1)
    due_at: Optional[datetime] = None


class AssignResult(BaseModel):
    assigned: int


class RevokeRequest(BaseModel):
    ids: List[int] = Field(..., min_length=1)


class AssignmentOut(BaseModel):
    id: int
    exam_id: int
    user_id: int
    assigned_at: datetime
    due_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AssignmentList(BaseModel):
    assignments: List[AssignmentOut]


class PaperQuestion(BaseModel):
    id: int
    type: str
    schema_version: int
    content: Any = None
    answer_key: Any = None


class PaperItem(BaseModel):
    exam_question_id: int
    points: float
    question: PaperQuestion


class Paper(BaseModel):
    exam_id: int
    items: List[PaperItem]


class AuthoringQuestion(BaseModel):
    id: int
    type: str
    schema_version: int
    content_json: Any = None
    rubric_json: Any = None


class AuthoringItem(BaseModel):
    exam_question_id: int
    question_id: int
    order_index: int
    points: float
    question: AuthoringQuestion


class AuthoringItems(BaseModel):
    items: List[AuthoringItem]


class ExamSubmissionRow(BaseModel):
    id: int
    user_id: int
    username: str
    status: str
    started_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    score_auto: float
    score_manual: float
    score_total: float


class ExamSubmissionList(BaseModel):
    submissions: List[ExamSubmissionRow]


class PublicExam(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    total_points: float
    status: str
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    is_public: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    question_count: int = 0
