"""
Exam authoring and lifecycle service

Lifecycle: draft -> published -> closed, forward only. Metadata and the
question list are mutable only while draft; assignment requires published.
"""
import logging
import random
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.exceptions import BadRequest, Forbidden, InvalidState, NotFound
from app.models import (
    Exam, ExamAssignment, ExamQuestion, ExamStatus, Question, Role, Submission, User
)
from app.schemas.exam import (
    AssignRequest, ExamCreate, ExamQuestionIn, ExamUpdate, PublicExam, PublishRequest
)
from app.services.auth_service import (
    AuthContext, ensure_grade, ensure_plan, is_assigned, is_exam_owner,
    require_exam_author, require_role
)
from app.utils.cache import cache_service
from app.utils.clock import to_naive_utc, utcnow

logger = logging.getLogger(__name__)

STAFF_ROLES = (Role.TEACHER, Role.ADMIN)


def check_window(exam: Exam, now=None) -> None:
    """Reject when now falls outside [start_at, end_at]; unset bounds are open"""
    now = now or utcnow()
    if exam.start_at and now < exam.start_at:
        raise InvalidState("Exam has not started yet")
    if exam.end_at and now > exam.end_at:
        raise InvalidState("Exam window has ended")


class ExamService:
    """Service for exam authoring, publishing, assignment and paper serving"""

    # Authoring

    def create(self, db: Session, ctx: AuthContext, request: ExamCreate) -> Exam:
        require_role(ctx, STAFF_ROLES)

        exam = Exam(
            title=request.title,
            description=request.description,
            author_id=ctx.user_id,
            total_points=0,
            status=ExamStatus.DRAFT.value,
            duration_minutes=request.duration_minutes,
            randomize=request.randomize,
            is_public=request.is_public,
            required_plan=request.required_plan,
            required_grade_level=request.required_grade_level,
        )
        db.add(exam)
        db.commit()
        db.refresh(exam)

        logger.info(f"Exam created: {exam.id} by {ctx.user_id}")
        return exam

    def update(self, db: Session, ctx: AuthContext, exam_id: int, update: ExamUpdate) -> None:
        exam = require_exam_author(db, ctx, exam_id)
        self._require_draft(exam, "Only draft exams can be edited")

        # null means leave unchanged, for every field
        for field, value in update.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(exam, field, value)

        db.commit()
        cache_service.invalidate_exam(exam_id)
        logger.info(f"Exam updated: {exam_id}")

    def set_questions(
        self,
        db: Session,
        ctx: AuthContext,
        exam_id: int,
        items: List[ExamQuestionIn]
    ) -> float:
        """
        Replace the whole question list and recompute total_points

        Returns:
            New total points (sum of the supplied points)
        """
        exam = require_exam_author(db, ctx, exam_id)
        self._require_draft(exam, "Only draft exams can change questions")

        question_ids = {item.question_id for item in items}
        found = {
            row.id for row in db.query(Question.id).filter(
                Question.id.in_(question_ids), Question.is_active.is_(True)
            )
        }
        missing = sorted(question_ids - found)
        if missing:
            raise BadRequest(f"Unknown or inactive questions: {missing}")

        db.query(ExamQuestion).filter(ExamQuestion.exam_id == exam_id).delete(synchronize_session=False)

        total_points = 0.0
        for item in items:
            total_points += item.points or 0
            db.add(ExamQuestion(
                exam_id=exam_id,
                question_id=item.question_id,
                order_index=item.order_index,
                points=item.points,
            ))

        exam.total_points = total_points
        db.commit()
        cache_service.invalidate_exam(exam_id)

        logger.info(f"Exam {exam_id} questions replaced: {len(items)} items, {total_points} points")
        return total_points

    def list_questions(self, db: Session, ctx: AuthContext, exam_id: int) -> List[Dict[str, Any]]:
        """Authoring view with content and rubric; answer keys are not included"""
        require_exam_author(db, ctx, exam_id)

        rows = self._exam_question_rows(db, exam_id)
        return [
            {
                "exam_question_id": eq.id,
                "question_id": q.id,
                "order_index": eq.order_index,
                "points": eq.points,
                "question": {
                    "id": q.id,
                    "type": q.type,
                    "schema_version": q.schema_version,
                    "content_json": q.content_json,
                    "rubric_json": q.rubric_json,
                },
            }
            for eq, q in rows
        ]

    # Lifecycle

    def publish(self, db: Session, ctx: AuthContext, exam_id: int, request: PublishRequest) -> None:
        exam = require_exam_author(db, ctx, exam_id)
        self._require_draft(exam, "Only draft exams can be published")

        start_at = to_naive_utc(request.start_at)
        end_at = to_naive_utc(request.end_at)
        if end_at <= start_at:
            raise BadRequest("end_at must be later than start_at")

        exam.status = ExamStatus.PUBLISHED.value
        exam.start_at = start_at
        exam.end_at = end_at
        db.commit()
        cache_service.invalidate_exam(exam_id)

        logger.info(f"Exam published: {exam_id} window {start_at} - {end_at}")

    def close(self, db: Session, ctx: AuthContext, exam_id: int) -> None:
        exam = require_exam_author(db, ctx, exam_id)
        exam.status = ExamStatus.CLOSED.value
        db.commit()
        cache_service.invalidate_exam(exam_id)

        logger.info(f"Exam closed: {exam_id}")

    # Assignments

    def assign(self, db: Session, ctx: AuthContext, exam_id: int, request: AssignRequest) -> int:
        """
        Assign students to a published exam

        Existing assignments and unknown user ids are skipped.

        Returns:
            Number of newly created assignment rows
        """
        exam = require_exam_author(db, ctx, exam_id)
        if exam.status != ExamStatus.PUBLISHED:
            raise InvalidState("Only published exams can be assigned")

        due_at = to_naive_utc(request.due_at)
        already = {
            row.user_id for row in db.query(ExamAssignment.user_id).filter(ExamAssignment.exam_id == exam_id)
        }
        known = {
            row.id for row in db.query(User.id).filter(User.id.in_(set(request.user_ids)))
        }

        created = 0
        for user_id in dict.fromkeys(request.user_ids):
            if user_id in already or user_id not in known:
                continue
            db.add(ExamAssignment(exam_id=exam_id, user_id=user_id, due_at=due_at))
            created += 1

        db.commit()
        logger.info(f"Exam {exam_id} assigned to {created} students")
        return created

    def list_assignments(self, db: Session, ctx: AuthContext, exam_id: int) -> List[ExamAssignment]:
        require_exam_author(db, ctx, exam_id)
        return (
            db.query(ExamAssignment)
            .filter(ExamAssignment.exam_id == exam_id)
            .order_by(ExamAssignment.id.desc())
            .all()
        )

    def revoke(self, db: Session, ctx: AuthContext, exam_id: int, assignment_ids: List[int]) -> int:
        require_exam_author(db, ctx, exam_id)
        deleted = db.query(ExamAssignment).filter(
            ExamAssignment.exam_id == exam_id,
            ExamAssignment.id.in_(assignment_ids),
        ).delete(synchronize_session=False)
        db.commit()

        logger.info(f"Exam {exam_id}: revoked {deleted} assignments")
        return deleted

    # Reading

    def list_exams(
        self,
        db: Session,
        ctx: Optional[AuthContext],
        public_only: bool,
        limit: int,
        offset: int
    ) -> List[Exam]:
        """
        Role-scoped listing

        public list: published public exams, no login needed
        admin: every exam; teacher: own exams; student: assigned exams
        """
        q = db.query(Exam)
        if public_only:
            q = q.filter(Exam.status == ExamStatus.PUBLISHED.value, Exam.is_public.is_(True))
        elif ctx.role == Role.ADMIN:
            pass
        elif ctx.role == Role.TEACHER:
            q = q.filter(Exam.author_id == ctx.user_id)
        else:
            q = q.join(
                ExamAssignment,
                (ExamAssignment.exam_id == Exam.id) & (ExamAssignment.user_id == ctx.user_id),
            )

        return q.order_by(Exam.id.desc()).limit(limit).offset(offset).all()

    def get_detail(self, db: Session, ctx: AuthContext, exam_id: int) -> Exam:
        """Owners and admins see any state; students see assigned or published public exams"""
        exam = db.query(Exam).filter(Exam.id == exam_id).first()
        if exam:
            if ctx.is_staff and is_exam_owner(ctx, exam):
                return exam
            if ctx.role == Role.STUDENT and (
                is_assigned(db, ctx, exam_id)
                or (exam.is_public and exam.status == ExamStatus.PUBLISHED)
            ):
                return exam
        raise NotFound("Exam not found or access denied")

    def get_paper(self, db: Session, ctx: AuthContext, exam_id: int, want_answers: bool) -> Dict[str, Any]:
        """
        Serve the exam paper

        Owners/admins get authoring order and, when asked, answer keys.
        Students need access (assignment or public exam), a published exam,
        the current time inside the window and plan/grade eligibility.
        """
        exam = db.query(Exam).filter(Exam.id == exam_id).first()
        if not exam:
            raise NotFound("Exam not found")

        is_owner = False
        if ctx.is_staff:
            is_owner = is_exam_owner(ctx, exam)
            if not is_owner:
                raise Forbidden()
        else:
            if not exam.is_public and not is_assigned(db, ctx, exam_id):
                raise Forbidden()
            if exam.status != ExamStatus.PUBLISHED:
                raise InvalidState("Exam is not published")
            check_window(exam)
            ensure_plan(ctx, exam.required_plan)
            ensure_grade(ctx, exam.required_grade_level)

        items = []
        for eq, q in self._exam_question_rows(db, exam_id):
            items.append({
                "exam_question_id": eq.id,
                "points": eq.points,
                "question": {
                    "id": q.id,
                    "type": q.type,
                    "schema_version": q.schema_version,
                    "content": q.content_json,
                    "answer_key": q.answer_key_json if (want_answers and is_owner) else None,
                },
            })

        if exam.randomize and not is_owner:
            # Stable per student across reloads
            random.Random(f"{exam_id}:{ctx.user_id}").shuffle(items)

        return {"exam_id": exam_id, "items": items}

    def list_submissions(self, db: Session, ctx: AuthContext, exam_id: int) -> List[Dict[str, Any]]:
        require_exam_author(db, ctx, exam_id)

        rows = (
            db.query(Submission, User.username)
            .join(User, User.id == Submission.user_id)
            .filter(Submission.exam_id == exam_id)
            .order_by(Submission.id.desc())
            .all()
        )
        return [
            {
                "id": sub.id,
                "user_id": sub.user_id,
                "username": username,
                "status": sub.status,
                "started_at": sub.started_at,
                "submitted_at": sub.submitted_at,
                "score_auto": sub.score_auto,
                "score_manual": sub.score_manual,
                "score_total": sub.score_total,
            }
            for sub, username in rows
        ]

    def get_public(self, db: Session, exam_id: int) -> PublicExam:
        """Anonymous detail of a published public exam, cached in Redis"""
        cache_key = cache_service.public_exam_key(exam_id)
        cached = cache_service.get(cache_key)
        if cached:
            return PublicExam(**cached)

        exam = db.query(Exam).filter(
            Exam.id == exam_id,
            Exam.status == ExamStatus.PUBLISHED.value,
            Exam.is_public.is_(True),
        ).first()
        if not exam:
            raise NotFound("Exam not found or not public")

        question_count = db.query(ExamQuestion).filter(ExamQuestion.exam_id == exam_id).count()
        public = PublicExam(
            id=exam.id,
            title=exam.title,
            description=exam.description,
            total_points=exam.total_points,
            status=exam.status,
            start_at=exam.start_at,
            end_at=exam.end_at,
            duration_minutes=exam.duration_minutes,
            is_public=exam.is_public,
            created_at=exam.created_at,
            updated_at=exam.updated_at,
            question_count=question_count,
        )

        cache_service.set(cache_key, public.model_dump(mode="json"))
        return public

    # Helpers

    def _require_draft(self, exam: Exam, message: str) -> None:
        if exam.status != ExamStatus.DRAFT:
            raise InvalidState(message)

    def _exam_question_rows(self, db: Session, exam_id: int):
        return (
            db.query(ExamQuestion, Question)
            .join(Question, Question.id == ExamQuestion.question_id)
            .filter(ExamQuestion.exam_id == exam_id)
            .order_by(ExamQuestion.order_index.asc(), ExamQuestion.id.asc())
            .all()
        )


# Global instance
exam_service = ExamService()
