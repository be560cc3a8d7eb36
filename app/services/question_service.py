"""
Question bank service: authoring CRUD with ownership and soft delete
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.exceptions import Forbidden, NotFound
from app.models import Question, Role
from app.schemas.question import QuestionCreate, QuestionUpdate
from app.services.auth_service import AuthContext, require_role

logger = logging.getLogger(__name__)

STAFF_ROLES = (Role.TEACHER, Role.ADMIN)


class QuestionService:
    """Service for question authoring; only the author or an admin may touch a question"""

    def create(self, db: Session, ctx: AuthContext, request: QuestionCreate) -> Question:
        require_role(ctx, STAFF_ROLES)

        question = Question(
            author_id=ctx.user_id,
            type=request.type.value,
            schema_version=request.schema_version,
            content_json=request.content_json,
            answer_key_json=request.answer_key_json,
            rubric_json=request.rubric_json,
            is_active=True,
        )
        db.add(question)
        db.commit()
        db.refresh(question)

        logger.info(f"Question created: {question.id} ({question.type}) by {ctx.user_id}")
        return question

    def get_owned(self, db: Session, ctx: AuthContext, question_id: int) -> Question:
        require_role(ctx, STAFF_ROLES)

        question = db.query(Question).filter(Question.id == question_id).first()
        if not question:
            raise NotFound("Question not found")
        if question.author_id != ctx.user_id and ctx.role != Role.ADMIN:
            raise Forbidden()
        return question

    def update(self, db: Session, ctx: AuthContext, question_id: int, update: QuestionUpdate) -> None:
        """Replace only the fields that were supplied and are not null"""
        question = self.get_owned(db, ctx, question_id)

        for field, value in update.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(question, field, value)

        db.commit()
        logger.info(f"Question updated: {question_id}")

    def delete(self, db: Session, ctx: AuthContext, question_id: int) -> None:
        """Soft delete; exam_questions keep referencing the row"""
        question = self.get_owned(db, ctx, question_id)
        question.is_active = False
        db.commit()
        logger.info(f"Question deactivated: {question_id}")

    def list_owned(
        self,
        db: Session,
        ctx: AuthContext,
        question_type: Optional[str],
        include_content: bool,
        limit: int,
        offset: int
    ) -> List[Dict[str, Any]]:
        """Management view: own questions (all for admin), inactive ones included"""
        require_role(ctx, STAFF_ROLES)

        q = db.query(Question)
        if ctx.role != Role.ADMIN:
            q = q.filter(Question.author_id == ctx.user_id)
        if question_type:
            q = q.filter(Question.type == question_type)

        rows = q.order_by(Question.id.desc()).limit(limit).offset(offset).all()
        return [self._list_item(r, include_content) for r in rows]

    def list_public(
        self,
        db: Session,
        question_type: Optional[str],
        limit: int,
        offset: int
    ) -> List[Dict[str, Any]]:
        """Student-facing view: active questions of any author, no answer keys"""
        q = db.query(Question).filter(Question.is_active.is_(True))
        if question_type:
            q = q.filter(Question.type == question_type)

        rows = q.order_by(Question.id.desc()).limit(limit).offset(offset).all()
        return [self._list_item(r, include_content=True) for r in rows]

    def _list_item(self, question: Question, include_content: bool) -> Dict[str, Any]:
        item = {
            "id": question.id,
            "author_id": question.author_id,
            "type": question.type,
            "schema_version": question.schema_version,
            "is_active": question.is_active,
            "created_at": question.created_at,
            "updated_at": question.updated_at,
        }
        if include_content:
            item["content_json"] = question.content_json
        return item


# Global instance
question_service = QuestionService()
