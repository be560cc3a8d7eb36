"""
Question model - authored question bank entries
"""
import enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON

from app.database import Base
from app.utils.clock import utcnow


class QuestionType(str, enum.Enum):
    SINGLE_CHOICE = "single_choice"
    MULTIPLE_CHOICE = "multiple_choice"
    FILL_BLANK = "fill_blank"
    SHORT_ANSWER = "short_answer"
    ESSAY = "essay"


class Question(Base):
    """
    Questions table - content, answer key and rubric blobs whose shape depends on type.
    Deletion is soft (is_active=False) so exam_questions keep their references.
    """
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(30), nullable=False)
    schema_version = Column(Integer, nullable=False, default=1)
    content_json = Column(JSON, nullable=False)
    answer_key_json = Column(JSON)
    rubric_json = Column(JSON)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Question(id={self.id}, type={self.type}, active={self.is_active})>"
