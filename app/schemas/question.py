"""
Pydantic schemas for question authoring
"""
from pydantic import BaseModel, Field
from typing import Any, Optional
from datetime import datetime

from app.models.question import QuestionType


class QuestionCreate(BaseModel):
    """Request schema for creating a question"""
    type: QuestionType
    content_json: Any = Field(..., description="Question content, shape depends on type")
    answer_key_json: Optional[Any] = None
    rubric_json: Optional[Any] = None
    schema_version: int = Field(1, ge=1)


class QuestionUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged"""
    content_json: Optional[Any] = None
    answer_key_json: Optional[Any] = None
    rubric_json: Optional[Any] = None
    is_active: Optional[bool] = None


class QuestionOut(BaseModel):
    """Full question as seen by its author"""
    id: int
    author_id: int
    type: str
    schema_version: int
    content_json: Any = None
    answer_key_json: Any = None
    rubric_json: Any = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class QuestionListItem(BaseModel):
    """Listing row; content only when requested, never the answer key"""
    id: int
    author_id: int
    type: str
    schema_version: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    content_json: Optional[Any] = None
