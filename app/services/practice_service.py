"""
Practice mode: random question draw and stateless objective scoring.
Nothing is persisted.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import BadRequest
from app.models import Question, QuestionType
from app.schemas.practice import PracticeAnswer
from app.services.scoring_service import scoring_service

logger = logging.getLogger(__name__)

VALID_TYPES = {t.value for t in QuestionType}


class PracticeService:

    def clamp_count(self, count: Optional[int]) -> int:
        if count is None:
            return settings.PRACTICE_DEFAULT_COUNT
        return max(1, min(settings.PRACTICE_MAX_COUNT, count))

    def draw(self, db: Session, count: Optional[int], question_type: Optional[str]) -> List[Dict[str, Any]]:
        """Random active questions; an unknown type filter is ignored"""
        q = db.query(Question).filter(Question.is_active.is_(True))
        if question_type in VALID_TYPES:
            q = q.filter(Question.type == question_type)

        rows = q.order_by(func.random()).limit(self.clamp_count(count)).all()
        return [
            {
                "question_id": r.id,
                "type": r.type,
                "schema_version": r.schema_version,
                "content": r.content_json,
            }
            for r in rows
        ]

    def score(self, db: Session, items: List[PracticeAnswer]) -> Dict[str, Any]:
        """
        Score answers against stored keys and reveal the keys

        Unknown question ids score 0 with no key.
        """
        ids = {item.question_id for item in items}
        if not ids:
            raise BadRequest("No answers supplied")

        questions = {q.id: q for q in db.query(Question).filter(Question.id.in_(ids)).all()}

        results = []
        for item in items:
            question = questions.get(item.question_id)
            if question is None:
                results.append({
                    "question_id": item.question_id,
                    "correct": False,
                    "score_unit": 0,
                    "answer_key": None,
                })
                continue

            unit = scoring_service.score_objective(question.type, question.answer_key_json, item.answer)
            results.append({
                "question_id": item.question_id,
                "correct": unit == 1,
                "score_unit": unit,
                "answer_key": question.answer_key_json,
            })

        correct_count = sum(1 for r in results if r["correct"])
        logger.info(f"Practice scored: {correct_count}/{len(results)}")

        return {"results": results, "correct_count": correct_count, "total": len(results)}


# Global instance
practice_service = PracticeService()
