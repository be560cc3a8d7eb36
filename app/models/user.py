"""
User model with one-to-one role and profile side tables
"""
import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils.clock import utcnow


class Role(str, enum.Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


# Used to forbid self-promotion
ROLE_RANK = {Role.STUDENT: 1, Role.TEACHER: 2, Role.ADMIN: 3}

DEFAULT_PLAN = "free"


class User(Base):
    """
    Users table - identity and display profile
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    display_name = Column(String(100))
    avatar_url = Column(String(500))
    level = Column(Integer, default=1, nullable=False)
    points = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    role_row = relationship("UserRole", uselist=False, back_populates="user", cascade="all, delete-orphan")
    profile = relationship("UserProfile", uselist=False, back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username})>"


class UserRole(Base):
    """
    User roles table - exactly one row per user, keyed by user id
    """
    __tablename__ = "user_roles"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    role = Column(String(20), nullable=False, default=Role.STUDENT.value)

    user = relationship("User", back_populates="role_row")

    def __repr__(self):
        return f"<UserRole(user_id={self.user_id}, role={self.role})>"


class UserProfile(Base):
    """
    User profile table - subscription plan and grade level used for exam gating
    """
    __tablename__ = "user_profile"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    plan = Column(String(20), nullable=False, default=DEFAULT_PLAN)
    grade_level = Column(String(20))
    plan_expires_at = Column(DateTime)

    user = relationship("User", back_populates="profile")

    def __repr__(self):
        return f"<UserProfile(user_id={self.user_id}, plan={self.plan}, grade_level={self.grade_level})>"
