"""
Submission and SubmissionAnswer models
"""
import enum

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Float, DateTime, ForeignKey, JSON, UniqueConstraint
)
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils.clock import utcnow


class SubmissionStatus(str, enum.Enum):
    """Forward-only lifecycle: in_progress -> submitted -> graded"""
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    GRADED = "graded"


class Submission(Base):
    """
    Submissions table - one attempt per (exam, student)
    """
    __tablename__ = "submissions"
    __table_args__ = (UniqueConstraint("exam_id", "user_id", name="uq_submission_exam_user"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    exam_id = Column(Integer, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=SubmissionStatus.IN_PROGRESS.value)
    started_at = Column(DateTime, default=utcnow)
    deadline_at = Column(DateTime)  # fixed at creation, advisory only
    submitted_at = Column(DateTime)
    score_auto = Column(Float, nullable=False, default=0)
    score_manual = Column(Float, nullable=False, default=0)
    score_total = Column(Float, nullable=False, default=0)
    feedback = Column(Text)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    exam = relationship("Exam")
    answers = relationship(
        "SubmissionAnswer",
        back_populates="submission",
        order_by="SubmissionAnswer.exam_question_id",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Submission(id={self.id}, exam_id={self.exam_id}, user_id={self.user_id}, status={self.status})>"


class SubmissionAnswer(Base):
    """
    Submission answers table - raw answer blob and per-item score
    """
    __tablename__ = "submission_answers"
    __table_args__ = (
        UniqueConstraint("submission_id", "exam_question_id", name="uq_submission_answer"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    submission_id = Column(Integer, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False, index=True)
    exam_question_id = Column(Integer, ForeignKey("exam_questions.id", ondelete="CASCADE"), nullable=False)
    answer_json = Column(JSON)
    score = Column(Float, nullable=False, default=0)
    is_auto_scored = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    submission = relationship("Submission", back_populates="answers")

    def __repr__(self):
        return f"<SubmissionAnswer(submission_id={self.submission_id}, exam_question_id={self.exam_question_id}, score={self.score})>"
