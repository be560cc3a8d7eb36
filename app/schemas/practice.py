"""
Pydantic schemas for ungraded practice mode
"""
from pydantic import BaseModel, Field
from typing import Any, List


class PracticeQuestion(BaseModel):
    question_id: int
    type: str
    schema_version: int
    content: Any = None


class PracticePaper(BaseModel):
    items: List[PracticeQuestion]


class PracticeAnswer(BaseModel):
    question_id: int
    answer: Any = None


class PracticeSubmission(BaseModel):
    items: List[PracticeAnswer] = Field(..., min_length=1)


class PracticeItemResult(BaseModel):
    question_id: int
    correct: bool
    score_unit: int
    answer_key: Any = None


class PracticeResult(BaseModel):
    results: List[PracticeItemResult]
    correct_count: int
    total: int
