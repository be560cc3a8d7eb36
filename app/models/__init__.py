"""
Database models package
"""
from app.models.user import User, UserRole, UserProfile, Role
from app.models.question import Question, QuestionType
from app.models.exam import Exam, ExamQuestion, ExamAssignment, ExamStatus
from app.models.submission import Submission, SubmissionAnswer, SubmissionStatus
from app.models.api_error_log import ApiErrorLog

__all__ = [
    "User", "UserRole", "UserProfile", "Role",
    "Question", "QuestionType",
    "Exam", "ExamQuestion", "ExamAssignment", "ExamStatus",
    "Submission", "SubmissionAnswer", "SubmissionStatus",
    "ApiErrorLog",
]
