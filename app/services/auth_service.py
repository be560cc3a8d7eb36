"""
Authentication service: password hashing, token signing and the per-request
authorization context, plus the guard helpers every other service relies on.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Union

import bcrypt
import jwt
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import (
    Forbidden, GradeMismatch, NotFound, PaymentRequired, ServerConfig, Unauthorized
)
from app.models import Exam, ExamAssignment, Role, UserProfile, UserRole
from app.models.user import DEFAULT_PLAN

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


class AuthContext(BaseModel):
    """Read-only capability object resolved once per request"""
    user_id: int
    username: str
    email: str
    role: Role = Role.STUDENT
    plan: str = DEFAULT_PLAN
    grade_level: Optional[str] = None

    class Config:
        frozen = True

    @property
    def is_staff(self) -> bool:
        return self.role in (Role.TEACHER, Role.ADMIN)


def hash_password(password: str, rounds: int = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long password
        return False


def require_secret(secret: Optional[str]) -> str:
    if not secret:
        logger.error("JWT_SECRET is not configured")
        raise ServerConfig()
    return secret


def create_token(user_id: int, username: str, email: str, secret: str, ttl_days: int = None) -> str:
    """Sign an identity token; role and profile are re-read per request, not embedded"""
    secret = require_secret(secret)
    now = datetime.now(timezone.utc)
    ttl = timedelta(days=ttl_days or settings.JWT_EXPIRE_DAYS)
    payload = {
        "sub": str(user_id),
        "username": username,
        "email": email,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: Optional[str], secret: str) -> dict:
    if not token:
        raise Unauthorized()
    secret = require_secret(secret)
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
        int(payload["sub"])
        return payload
    except (jwt.PyJWTError, KeyError, ValueError):
        raise Unauthorized("Invalid or expired token")


def resolve_context(db: Session, token: Optional[str], secret: str) -> AuthContext:
    """
    Decode the bearer token and load role and plan/grade profile

    Missing side-table rows fall back to student / free / no grade.
    """
    payload = decode_token(token, secret)
    user_id = int(payload["sub"])

    role_row = db.query(UserRole).filter(UserRole.user_id == user_id).first()
    profile_row = db.query(UserProfile).filter(UserProfile.user_id == user_id).first()

    return AuthContext(
        user_id=user_id,
        username=payload.get("username", ""),
        email=payload.get("email", ""),
        role=Role(role_row.role) if role_row else Role.STUDENT,
        plan=profile_row.plan if profile_row and profile_row.plan else DEFAULT_PLAN,
        grade_level=profile_row.grade_level if profile_row else None,
    )


def require_role(ctx: AuthContext, allowed: Union[Role, Iterable[Role]]) -> None:
    allow_list = [allowed] if isinstance(allowed, Role) else list(allowed)
    if ctx.role not in allow_list:
        raise Forbidden()


def ensure_plan(ctx: AuthContext, required_plan: Optional[str]) -> None:
    if not required_plan:
        return
    if (ctx.plan or DEFAULT_PLAN) != required_plan:
        raise PaymentRequired()


def ensure_grade(ctx: AuthContext, required_grade: Optional[str]) -> None:
    if not required_grade:
        return
    if (ctx.grade_level or "") != required_grade:
        raise GradeMismatch()


def is_exam_owner(ctx: AuthContext, exam: Exam) -> bool:
    return exam.author_id == ctx.user_id or ctx.role == Role.ADMIN


def require_exam_author(db: Session, ctx: AuthContext, exam_id: int) -> Exam:
    exam = db.query(Exam).filter(Exam.id == exam_id).first()
    if not exam:
        raise NotFound("Exam not found")
    if not is_exam_owner(ctx, exam):
        raise Forbidden()
    return exam


def is_assigned(db: Session, ctx: AuthContext, exam_id: int) -> bool:
    return db.query(ExamAssignment.id).filter(
        ExamAssignment.exam_id == exam_id,
        ExamAssignment.user_id == ctx.user_id,
    ).first() is not None


def require_assigned(db: Session, ctx: AuthContext, exam_id: int) -> None:
    if not is_assigned(db, ctx, exam_id):
        raise Forbidden()
