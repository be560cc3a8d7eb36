"""
User account service: registration, login, profile and role management
"""
import logging
from typing import Any, Dict, List

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.exceptions import BadRequest, Conflict, Forbidden, NotFound, Unauthorized
from app.models import Role, User, UserProfile, UserRole
from app.models.user import DEFAULT_PLAN, ROLE_RANK
from app.schemas.auth import RegisterRequest
from app.schemas.user import AdminProfileUpdate, ProfileUpdate
from app.services import auth_service
from app.services.auth_service import AuthContext

logger = logging.getLogger(__name__)


class UserService:
    """Service for account lifecycle and the role/profile side tables"""

    def register(self, db: Session, request: RegisterRequest, secret: str) -> User:
        """
        Create a user with default student role and free profile

        Raises:
            BadRequest: password longer than bcrypt accepts
            Conflict: username or email already taken
        """
        # Registration is refused outright when tokens could not be issued later
        auth_service.require_secret(secret)

        if len(request.password.encode("utf-8")) > auth_service.BCRYPT_MAX_BYTES:
            raise BadRequest("Password is too long")

        username = request.username.strip().lower()
        email = str(request.email).strip().lower()
        display_name = (request.display_name or request.username).strip()

        existing = db.query(User).filter(
            or_(func.lower(User.username) == username, func.lower(User.email) == email)
        ).first()
        if existing:
            if existing.username.lower() == username:
                raise Conflict("Username is already taken")
            raise Conflict("Email is already registered")

        user = User(
            username=username,
            email=email,
            password_hash=auth_service.hash_password(request.password),
            display_name=display_name,
            level=1,
            points=0,
        )
        db.add(user)
        db.flush()

        db.add(UserRole(user_id=user.id, role=Role.STUDENT.value))
        db.add(UserProfile(user_id=user.id, plan=DEFAULT_PLAN, grade_level=None))
        db.commit()
        db.refresh(user)

        logger.info(f"User registered: {user.id} ({user.username})")
        return user

    def login(self, db: Session, username: str, password: str, secret: str) -> Dict[str, Any]:
        """Verify credentials and issue a signed token with the user summary"""
        auth_service.require_secret(secret)

        user = db.query(User).filter(User.username == username.strip().lower()).first()
        if not user or not auth_service.verify_password(password, user.password_hash):
            raise Unauthorized("Invalid username or password")

        token = auth_service.create_token(user.id, user.username, user.email, secret)
        logger.info(f"User logged in: {user.id}")

        return {"token": token, "user": self.summary(db, user)}

    def get_user(self, db: Session, user_id: int) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFound("User not found")
        return user

    def summary(self, db: Session, user: User) -> Dict[str, Any]:
        """User row merged with role and plan/grade, defaults applied"""
        role_row = db.query(UserRole).filter(UserRole.user_id == user.id).first()
        profile_row = db.query(UserProfile).filter(UserProfile.user_id == user.id).first()

        return {
            "id": user.id,
            "username": user.username,
            "email": user.email,
            "display_name": user.display_name,
            "avatar_url": user.avatar_url,
            "level": user.level,
            "points": user.points,
            "created_at": user.created_at,
            "role": role_row.role if role_row else Role.STUDENT.value,
            "plan": profile_row.plan if profile_row else DEFAULT_PLAN,
            "grade_level": profile_row.grade_level if profile_row else None,
        }

    def update_profile(self, db: Session, ctx: AuthContext, update: ProfileUpdate) -> None:
        user = self.get_user(db, ctx.user_id)
        if update.display_name is not None:
            user.display_name = update.display_name
        if update.avatar_url is not None:
            user.avatar_url = update.avatar_url
        db.commit()

    def change_own_role(self, db: Session, ctx: AuthContext, role: Role) -> None:
        """Users may keep or lower their own role, never raise it"""
        if ROLE_RANK[role] > ROLE_RANK[ctx.role]:
            raise Forbidden("Cannot upgrade your own role")
        self._upsert_role(db, ctx.user_id, role)
        db.commit()
        logger.info(f"User {ctx.user_id} changed own role to {role.value}")

    def set_role(self, db: Session, ctx: AuthContext, user_id: int, role: Role) -> None:
        auth_service.require_role(ctx, Role.ADMIN)
        self.get_user(db, user_id)
        self._upsert_role(db, user_id, role)
        db.commit()
        logger.info(f"Admin {ctx.user_id} set role of user {user_id} to {role.value}")

    def set_profile(self, db: Session, ctx: AuthContext, user_id: int, update: AdminProfileUpdate) -> None:
        """Upsert plan/grade; omitted fields keep the stored value"""
        auth_service.require_role(ctx, Role.ADMIN)
        self.get_user(db, user_id)

        profile = db.query(UserProfile).filter(UserProfile.user_id == user_id).first()
        if not profile:
            profile = UserProfile(user_id=user_id, plan=update.plan or DEFAULT_PLAN)
            db.add(profile)
        elif update.plan is not None:
            profile.plan = update.plan

        if update.grade_level is not None:
            profile.grade_level = update.grade_level
        if update.plan_expires_at is not None:
            profile.plan_expires_at = update.plan_expires_at

        db.commit()
        logger.info(f"Admin {ctx.user_id} updated profile of user {user_id}")

    def search(
        self,
        db: Session,
        ctx: AuthContext,
        role: str,
        query: str,
        limit: int,
        offset: int
    ) -> List[User]:
        """Find users by username/email substring; users without a role row count as students"""
        if ctx.role == Role.STUDENT:
            raise Forbidden()

        q = db.query(User).outerjoin(UserRole, UserRole.user_id == User.id)
        q = q.filter(or_(UserRole.role.is_(None), UserRole.role == role))

        query = (query or "").strip()
        if query:
            like = f"%{query}%"
            q = q.filter(or_(User.username.like(like), User.email.like(like)))

        return q.order_by(User.id.desc()).limit(limit).offset(offset).all()

    def _upsert_role(self, db: Session, user_id: int, role: Role) -> None:
        row = db.query(UserRole).filter(UserRole.user_id == user_id).first()
        if row:
            row.role = role.value
        else:
            db.add(UserRole(user_id=user_id, role=role.value))


# Global instance
user_service = UserService()
