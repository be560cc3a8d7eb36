"""
Pydantic schemas for exam taking, submission and grading
"""
from pydantic import BaseModel, Field
from typing import Any, List, Optional
from datetime import datetime


class StartResponse(BaseModel):
    submission_id: int


class AnswerIn(BaseModel):
    exam_question_id: int
    answer_json: Any = None


class SaveAnswersRequest(BaseModel):
    items: List[AnswerIn] = Field(..., min_length=1)


class SavedCount(BaseModel):
    saved: int


class SubmitResponse(BaseModel):
    score_auto: float


class ScoreItem(BaseModel):
    exam_question_id: int
    score: float = Field(..., ge=0)


class ScoreRequest(BaseModel):
    items: List[ScoreItem] = Field(default_factory=list)
    feedback: Optional[str] = None


class ScoreResponse(BaseModel):
    score_auto: float
    score_manual: float
    score_total: float


class SubmissionStatusOut(BaseModel):
    status: str
    deadline_at: Optional[datetime] = None
    now: datetime


class SubmissionOut(BaseModel):
    id: int
    exam_id: int
    user_id: int
    author_id: int
    status: str
    started_at: Optional[datetime] = None
    deadline_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    score_auto: float
    score_manual: float
    score_total: float
    feedback: Optional[str] = None


class SubmissionAnswerOut(BaseModel):
    exam_question_id: int
    answer_json: Any = None
    score: float
    is_auto_scored: bool

    class Config:
        from_attributes = True


class SubmissionDetail(BaseModel):
    submission: SubmissionOut
    answers: List[SubmissionAnswerOut]
