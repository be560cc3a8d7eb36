"""
Exam, ExamQuestion and ExamAssignment models
"""
import enum

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Float, DateTime, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils.clock import utcnow


class ExamStatus(str, enum.Enum):
    """Forward-only lifecycle: draft -> published -> closed"""
    DRAFT = "draft"
    PUBLISHED = "published"
    CLOSED = "closed"


class Exam(Base):
    """
    Exams table - metadata, time window and gating; editable only while draft
    """
    __tablename__ = "exams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    total_points = Column(Float, nullable=False, default=0)  # sum of exam_questions.points
    status = Column(String(20), nullable=False, default=ExamStatus.DRAFT.value)
    start_at = Column(DateTime)
    end_at = Column(DateTime)
    duration_minutes = Column(Integer)  # per-student countdown from first start
    randomize = Column(Boolean, nullable=False, default=False)
    is_public = Column(Boolean, nullable=False, default=False)
    required_plan = Column(String(20))
    required_grade_level = Column(String(20))
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    questions = relationship(
        "ExamQuestion",
        back_populates="exam",
        order_by="ExamQuestion.order_index",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Exam(id={self.id}, title={self.title}, status={self.status})>"


class ExamQuestion(Base):
    """
    Exam questions table - serving order and per-question weight
    """
    __tablename__ = "exam_questions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    exam_id = Column(Integer, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("questions.id"), nullable=False)
    order_index = Column(Integer, nullable=False, default=0)
    points = Column(Float, nullable=False, default=0)

    exam = relationship("Exam", back_populates="questions")
    question = relationship("Question")

    def __repr__(self):
        return f"<ExamQuestion(exam_id={self.exam_id}, question_id={self.question_id}, points={self.points})>"


class ExamAssignment(Base):
    """
    Exam assignments table - grants a student access to a non-public exam
    """
    __tablename__ = "exam_assignments"
    __table_args__ = (UniqueConstraint("exam_id", "user_id", name="uq_exam_assignment"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    exam_id = Column(Integer, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_at = Column(DateTime, default=utcnow, nullable=False)
    due_at = Column(DateTime)

    def __repr__(self):
        return f"<ExamAssignment(exam_id={self.exam_id}, user_id={self.user_id})>"
