"""
Submission lifecycle service: start, save answers, submit with auto-scoring,
manual grading and read access.

Lifecycle: in_progress -> submitted -> graded, forward only. Re-grading a
graded submission overwrites the item scores and recomputes the totals.
"""
import logging
from datetime import timedelta
from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.exceptions import BadRequest, Forbidden, InvalidState, NotFound
from app.models import (
    Exam, ExamQuestion, ExamStatus, Question, Role, Submission, SubmissionAnswer, SubmissionStatus
)
from app.schemas.submission import AnswerIn, ScoreRequest
from app.services.auth_service import (
    AuthContext, ensure_grade, ensure_plan, is_exam_owner, require_assigned, require_role
)
from app.services.exam_service import check_window
from app.services.scoring_service import scoring_service
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)


class SubmissionService:
    """Service for one student's attempt at one exam"""

    def start(self, db: Session, ctx: AuthContext, exam_id: int) -> int:
        """
        Create or resume the caller's submission

        Returns:
            Submission id; the same id while the attempt is in progress

        Raises:
            InvalidState: exam unpublished, outside its window, or already submitted
        """
        require_role(ctx, Role.STUDENT)

        exam = db.query(Exam).filter(Exam.id == exam_id).first()
        if not exam:
            raise NotFound("Exam not found")
        if exam.status != ExamStatus.PUBLISHED:
            raise InvalidState("Exam is not published")
        if not exam.is_public:
            require_assigned(db, ctx, exam_id)

        now = utcnow()
        check_window(exam, now)
        ensure_plan(ctx, exam.required_plan)
        ensure_grade(ctx, exam.required_grade_level)

        existing = self._find(db, exam_id, ctx.user_id)
        if existing:
            return self._resume(existing)

        deadline_at = now + timedelta(minutes=exam.duration_minutes) if exam.duration_minutes else None
        submission = Submission(
            exam_id=exam_id,
            user_id=ctx.user_id,
            status=SubmissionStatus.IN_PROGRESS.value,
            started_at=now,
            deadline_at=deadline_at,
        )
        db.add(submission)
        try:
            db.commit()
        except IntegrityError:
            # A concurrent start created the row first
            db.rollback()
            return self._resume(self._find(db, exam_id, ctx.user_id))

        logger.info(f"Submission started: {submission.id} exam={exam_id} user={ctx.user_id}")
        return submission.id

    def save_answers(self, db: Session, ctx: AuthContext, submission_id: int, items: List[AnswerIn]) -> int:
        """
        Upsert answers keyed by exam question; items not on the paper are skipped

        Returns:
            Number of answers saved
        """
        submission = self._own_in_progress(db, ctx, submission_id, "Submission is finished and cannot be changed")

        paper_ids = self._paper_question_ids(db, submission.exam_id)
        stored = {a.exam_question_id: a for a in submission.answers}

        saved = 0
        for item in items:
            if item.exam_question_id not in paper_ids:
                continue
            row = stored.get(item.exam_question_id)
            if row is None:
                row = SubmissionAnswer(exam_question_id=item.exam_question_id)
                submission.answers.append(row)
                stored[item.exam_question_id] = row
            row.answer_json = item.answer_json
            row.updated_at = utcnow()
            saved += 1

        db.commit()
        return saved

    def submit(self, db: Session, ctx: AuthContext, submission_id: int) -> float:
        """
        Finish the attempt and auto-score every objective question

        Each paper question gets an answer row holding its awarded points,
        unanswered questions included.

        Returns:
            score_auto
        """
        submission = self._own_in_progress(db, ctx, submission_id, "Submission has already been submitted")

        rows = (
            db.query(ExamQuestion, Question)
            .join(Question, Question.id == ExamQuestion.question_id)
            .filter(ExamQuestion.exam_id == submission.exam_id)
            .order_by(ExamQuestion.order_index.asc(), ExamQuestion.id.asc())
            .all()
        )
        questions = [
            {
                "exam_question_id": eq.id,
                "type": q.type,
                "answer_key": q.answer_key_json,
                "points": eq.points,
            }
            for eq, q in rows
        ]
        stored = {a.exam_question_id: a for a in submission.answers}
        answers = {eq_id: row.answer_json for eq_id, row in stored.items()}

        score_auto, breakdown = scoring_service.score_items(questions, answers)

        for item in breakdown:
            row = stored.get(item["exam_question_id"])
            if row is None:
                row = SubmissionAnswer(exam_question_id=item["exam_question_id"], answer_json=None)
                submission.answers.append(row)
            row.score = item["score"]
            row.is_auto_scored = True

        submission.status = SubmissionStatus.SUBMITTED.value
        submission.submitted_at = utcnow()
        submission.score_auto = score_auto
        submission.score_total = (submission.score_manual or 0) + score_auto
        db.commit()

        logger.info(f"Submission submitted: {submission_id} score_auto={score_auto}")
        return score_auto

    def grade(self, db: Session, ctx: AuthContext, submission_id: int, request: ScoreRequest) -> Dict[str, float]:
        """
        Apply manual scores and recompute every total from the stored items

        Overridden items are marked manual; score_auto sums the items still
        auto-scored, score_manual sums the manual ones, so partial calls keep
        earlier manual scores.
        """
        submission = db.query(Submission).filter(Submission.id == submission_id).first()
        if not submission:
            raise NotFound("Submission not found")
        if not is_exam_owner(ctx, submission.exam):
            raise Forbidden("Not allowed to grade this submission")
        if submission.status == SubmissionStatus.IN_PROGRESS:
            raise InvalidState("Submission has not been submitted yet")

        points_by_id = {
            row.id: row.points for row in db.query(ExamQuestion.id, ExamQuestion.points).filter(
                ExamQuestion.exam_id == submission.exam_id
            )
        }
        for item in request.items:
            if item.exam_question_id not in points_by_id:
                raise BadRequest(f"Question {item.exam_question_id} is not part of this exam")
            if item.score > points_by_id[item.exam_question_id]:
                raise BadRequest(f"Score for question {item.exam_question_id} exceeds its points")

        stored = {a.exam_question_id: a for a in submission.answers}
        for item in request.items:
            row = stored.get(item.exam_question_id)
            if row is None:
                row = SubmissionAnswer(exam_question_id=item.exam_question_id, answer_json=None)
                submission.answers.append(row)
                stored[item.exam_question_id] = row
            row.score = item.score
            row.is_auto_scored = False

        score_auto = sum(a.score or 0 for a in stored.values() if a.is_auto_scored)
        score_manual = sum(a.score or 0 for a in stored.values() if not a.is_auto_scored)

        submission.score_auto = score_auto
        submission.score_manual = score_manual
        submission.score_total = score_auto + score_manual
        submission.status = SubmissionStatus.GRADED.value
        if request.feedback is not None:
            submission.feedback = request.feedback
        db.commit()

        logger.info(
            f"Submission graded: {submission_id} by {ctx.user_id} "
            f"auto={score_auto} manual={score_manual}"
        )
        return {"score_auto": score_auto, "score_manual": score_manual, "score_total": score_auto + score_manual}

    def get_status(self, db: Session, ctx: AuthContext, submission_id: int) -> Dict[str, Any]:
        submission = self._readable(db, ctx, submission_id)
        return {"status": submission.status, "deadline_at": submission.deadline_at, "now": utcnow()}

    def get_detail(self, db: Session, ctx: AuthContext, submission_id: int) -> Dict[str, Any]:
        submission = self._readable(db, ctx, submission_id)
        return {
            "submission": {
                "id": submission.id,
                "exam_id": submission.exam_id,
                "user_id": submission.user_id,
                "author_id": submission.exam.author_id,
                "status": submission.status,
                "started_at": submission.started_at,
                "deadline_at": submission.deadline_at,
                "submitted_at": submission.submitted_at,
                "score_auto": submission.score_auto,
                "score_manual": submission.score_manual,
                "score_total": submission.score_total,
                "feedback": submission.feedback,
            },
            "answers": list(submission.answers),
        }

    # Helpers

    def _find(self, db: Session, exam_id: int, user_id: int) -> Submission:
        return db.query(Submission).filter(
            Submission.exam_id == exam_id,
            Submission.user_id == user_id,
        ).first()

    def _resume(self, submission: Submission) -> int:
        if submission.status != SubmissionStatus.IN_PROGRESS:
            raise InvalidState("Exam has already been submitted")
        return submission.id

    def _own_in_progress(self, db: Session, ctx: AuthContext, submission_id: int, message: str) -> Submission:
        submission = db.query(Submission).filter(Submission.id == submission_id).first()
        if not submission:
            raise NotFound("Submission not found")
        if submission.user_id != ctx.user_id:
            raise Forbidden()
        if submission.status != SubmissionStatus.IN_PROGRESS:
            raise InvalidState(message)
        return submission

    def _readable(self, db: Session, ctx: AuthContext, submission_id: int) -> Submission:
        """The student who owns it, the exam author, or an admin"""
        submission = db.query(Submission).filter(Submission.id == submission_id).first()
        if not submission:
            raise NotFound("Submission not found")
        if submission.user_id != ctx.user_id and not (ctx.is_staff and is_exam_owner(ctx, submission.exam)):
            raise Forbidden()
        return submission

    def _paper_question_ids(self, db: Session, exam_id: int) -> set:
        return {
            row.id for row in db.query(ExamQuestion.id).filter(ExamQuestion.exam_id == exam_id)
        }


# Global instance
submission_service = SubmissionService()
