"""Scoring engine for scoring-enabled forms (CISS and similar).

Scores travel inside option labels: an option reads ``"Ofta (3)"`` and the
trailing parenthesized integer is the score. Labels are parsed once into
:class:`ScoredOption` pairs; the rest of the engine works on numbers.

Scoring rules:
1. Only questions with ``scoring.enabled`` contribute.
2. A question's score is the number embedded in its selected option, the
   answer itself for numeric answers, or the sum over a multi-select.
   Labels without a parsable score count as 0.
3. Only currently visible questions contribute unless scoring is
   explicitly asked to cover all questions.
4. Max-possible is the sum of ``max_value`` over contributing questions.
5. A question is flagged when its score >= its ``flag_threshold``.
6. The form exceeds its threshold when total >= ``total_threshold``.
"""

import logging
import math
import re
from typing import TYPE_CHECKING, Any, Collection, Dict, List, Optional

from anamnesis_engine.schemas.scoring import FlaggedQuestion, ScoredOption, ScoringResult
from anamnesis_engine.schemas.template import FormQuestion, FormSection, FormTemplate
from anamnesis_engine.utils.answers import is_empty_answer

if TYPE_CHECKING:
    from anamnesis_engine.runtime.visibility import VisibilityResolver

logger = logging.getLogger(__name__)

# The convention appends the score, so the last "(N)" group wins.
_SCORE_PATTERN = re.compile(r"\((-?\d+)\)")


def parse_option_score(label: str) -> Optional[int]:
    """Extract the embedded score from an option label.

    Returns:
        The trailing ``(N)`` integer, or None if the label has none.
    """
    if not isinstance(label, str):
        return None
    matches = _SCORE_PATTERN.findall(label)
    if not matches:
        return None
    return int(matches[-1])


def parse_options(question: FormQuestion) -> List[ScoredOption]:
    """Typed ``{label, score}`` view of a question's options."""
    return [
        ScoredOption(label=label, score=parse_option_score(label))
        for label in question.option_values
    ]


def answer_score(answer: Any) -> float:
    """Numeric score of a single answer value (0 when unparsable)."""
    if is_empty_answer(answer) or isinstance(answer, bool):
        return 0
    if isinstance(answer, (int, float)):
        return answer
    if isinstance(answer, str):
        score = parse_option_score(answer)
        if score is None:
            logger.debug(f"No embedded score in answer '{answer}', counting 0")
            return 0
        return score
    if isinstance(answer, (list, tuple)):
        return sum(answer_score(item) for item in answer)
    return 0


def _contributes(question: FormQuestion, visible_ids: Optional[Collection[str]]) -> bool:
    if not question.scoring_enabled or question.is_followup_template:
        return False
    return visible_ids is None or question.id in visible_ids


def section_score(
    section: FormSection,
    answers: Dict[str, Any],
    visible_ids: Optional[Collection[str]] = None,
) -> float:
    """Sum of scores of the answered scoring-enabled questions in one section.

    This is the single summation routine; form totals and ``section_score``
    visibility conditions both go through it.
    """
    total: float = 0
    for question in section.questions:
        if not _contributes(question, visible_ids):
            continue
        answer = answers.get(question.id)
        if is_empty_answer(answer):
            continue
        total += answer_score(answer)
    return total


def is_scoring_enabled(template: FormTemplate) -> bool:
    """Whether the form opted into scoring."""
    return template.scoring_config is not None and template.scoring_config.enabled


class ScoringEngine:
    """Computes :class:`ScoringResult` from a template and an answer map.

    Stateless; a fresh result is built on every call.
    """

    def __init__(self, resolver: Optional["VisibilityResolver"] = None):
        """Initialize the engine.

        Args:
            resolver: Visibility resolver used when the caller passes no
                visible ids. Created on first use if not provided.
        """
        self._resolver = resolver

    @property
    def resolver(self) -> "VisibilityResolver":
        if self._resolver is None:
            from anamnesis_engine.runtime.visibility import VisibilityResolver

            self._resolver = VisibilityResolver()
        return self._resolver

    def score(
        self,
        template: FormTemplate,
        answers: Dict[str, Any],
        visible_ids: Optional[Collection[str]] = None,
        optician_mode: bool = False,
        all_questions: bool = False,
    ) -> ScoringResult:
        """Score ``answers`` against ``template``.

        Hidden questions neither score nor count toward the max.

        Args:
            template: Parsed form template.
            answers: Current answer map.
            visible_ids: Visible question ids, if already resolved. When
                omitted, visibility is resolved for ``optician_mode``.
            optician_mode: Viewing mode used to resolve visibility.
            all_questions: Score hidden questions too.
        """
        if all_questions:
            visible_ids = None
        elif visible_ids is None:
            snapshot = self.resolver.resolve(template, answers, optician_mode)
            visible_ids = set(snapshot.visible_question_ids())

        total_score: float = 0
        max_possible: float = 0
        flagged: List[FlaggedQuestion] = []

        for section in template.sections:
            total_score += section_score(section, answers, visible_ids)

            for question in section.questions:
                if not _contributes(question, visible_ids):
                    continue
                scoring = question.scoring
                max_possible += scoring.max_value

                answer = answers.get(question.id)
                if is_empty_answer(answer):
                    continue
                score = answer_score(answer)
                if scoring.flag_threshold is not None and score >= scoring.flag_threshold:
                    flagged.append(
                        FlaggedQuestion(
                            question_id=question.id,
                            label=question.label,
                            score=score,
                            warning_message=scoring.warning_message,
                        )
                    )

        percentage = math.floor(total_score / max_possible * 100 + 0.5) if max_possible > 0 else 0

        config = template.scoring_config
        threshold_exceeded = (
            config is not None
            and config.total_threshold is not None
            and total_score >= config.total_threshold
        )

        return ScoringResult(
            total_score=total_score,
            max_possible_score=max_possible,
            percentage=percentage,
            threshold_exceeded=threshold_exceeded,
            flagged_questions=flagged,
        )
