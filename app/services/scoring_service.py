"""
Objective scoring service
single_choice / multiple_choice / fill_blank: compared against the stored answer key
short_answer / essay: never auto-scored, left for manual grading
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from app.models.question import QuestionType

logger = logging.getLogger(__name__)


def _as_text(value: Any) -> str:
    """Loose scalar-to-text conversion so "1", 1 and 1.0 compare equal"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _unwrap(value: Any) -> Any:
    """A one-element list stands for its only item"""
    if isinstance(value, (list, tuple)) and len(value) == 1:
        return value[0]
    return value


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


class ScoringService:
    """
    Service for scoring submitted answers against answer keys

    Every objective question is all-or-nothing: the unit score is 1 or 0 and
    the awarded points are unit * points. Fill-blank has no partial credit.
    """

    def score_objective(self, question_type: str, answer_key: Any, answer: Any) -> int:
        """
        Score one answer

        Args:
            question_type: Question type value
            answer_key: Stored answer key (parsed JSON)
            answer: Submitted answer (parsed JSON), None when unanswered

        Returns:
            1 if correct, otherwise 0. Never raises.
        """
        if answer_key is None:
            return 0

        try:
            if question_type == QuestionType.SINGLE_CHOICE:
                return self._score_single_choice(answer_key, answer)
            if question_type == QuestionType.MULTIPLE_CHOICE:
                return self._score_multiple_choice(answer_key, answer)
            if question_type == QuestionType.FILL_BLANK:
                return self._score_fill_blank(answer_key, answer)
        except Exception as e:
            logger.warning(f"Objective scoring failed for {question_type}: {str(e)}")
            return 0

        # Subjective types are graded manually
        return 0

    def _score_single_choice(self, answer_key: Any, answer: Any) -> int:
        if answer is None:
            return 0
        return 1 if _as_text(_unwrap(answer)) == _as_text(_unwrap(answer_key)) else 0

    def _score_multiple_choice(self, answer_key: Any, answer: Any) -> int:
        """Order-independent exact set match"""
        expected = sorted(_as_text(v) for v in _as_list(answer_key))
        if not expected:
            return 0
        given = sorted(_as_text(v) for v in _as_list(answer))
        return 1 if given == expected else 0

    def _score_fill_blank(self, answer_key: Any, answer: Any) -> int:
        """
        Key holds one entry per blank; an entry may be a list of accepted synonyms.
        Comparison is trimmed and case-insensitive; every blank must match.
        """
        if not isinstance(answer_key, list) or not answer_key:
            return 0
        blanks = answer if isinstance(answer, list) else []
        if len(blanks) != len(answer_key):
            return 0

        for given, accepted in zip(blanks, answer_key):
            got = _as_text(given).strip().lower()
            options = {_as_text(v).strip().lower() for v in _as_list(accepted)}
            if got not in options:
                return 0
        return 1

    def score_items(
        self,
        questions: List[Dict[str, Any]],
        answers: Dict[int, Any]
    ) -> Tuple[float, List[Dict[str, Any]]]:
        """
        Score a full paper

        Args:
            questions: [{exam_question_id, type, answer_key, points}] in serving order
            answers: {exam_question_id: answer}; missing entries count as unanswered

        Returns:
            Tuple of (total_awarded_points, per-item breakdown)
        """
        total = 0.0
        breakdown = []

        for question in questions:
            eq_id = question["exam_question_id"]
            points = float(question.get("points") or 0)
            answer: Optional[Any] = answers.get(eq_id)

            unit = self.score_objective(question["type"], question.get("answer_key"), answer)
            awarded = points if unit == 1 else 0.0
            total += awarded

            breakdown.append({
                "exam_question_id": eq_id,
                "score": awarded,
                "points": points,
                "correct": unit == 1,
            })

        logger.info(f"Paper scored: {total:.2f} over {len(questions)} questions")

        return total, breakdown


# Global instance
scoring_service = ScoringService()
