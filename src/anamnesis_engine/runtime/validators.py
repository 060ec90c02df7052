"""
Required-answer validation for a form fill.

Only questions the patient can currently see are checked: a required
question inside a hidden section, behind a false ``show_if`` or outside the
current viewing mode never blocks submission. Dynamic follow-up instances
inherit ``required`` from their template.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from anamnesis_engine.runtime.visibility import VisibilityResolver
from anamnesis_engine.schemas.runtime import VisibilitySnapshot, answer_key
from anamnesis_engine.schemas.template import FormQuestion, FormTemplate, QuestionType
from anamnesis_engine.utils.answers import is_empty_answer, selected_values

REQUIRED_MESSAGE = "Detta fält är obligatoriskt"
CHECKBOX_MESSAGE = "Välj minst ett alternativ"
NUMBER_MESSAGE = "Ange ett giltigt nummer"


class ValidationIssue(BaseModel):
    """A single blocking problem with the answers."""

    question_id: str
    message: str


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, str):
        try:
            float(value.strip().replace(",", "."))
        except ValueError:
            return False
        return True
    return False


def validate_question(question: FormQuestion, value: Any) -> Optional[str]:
    """
    Check one visible question's answer.

    Returns:
        An error message, or None if the answer is acceptable
    """
    if question.type == QuestionType.INFO:
        return None

    if question.type == QuestionType.CHECKBOX and question.required:
        if not isinstance(value, (list, tuple)) or not selected_values(value):
            return CHECKBOX_MESSAGE
        return None

    if question.required and is_empty_answer(value):
        return REQUIRED_MESSAGE

    if question.type == QuestionType.NUMBER and not is_empty_answer(value) and not _is_number(value):
        return NUMBER_MESSAGE

    return None


def validate_required(
    template: FormTemplate,
    answers: Dict[str, Any],
    optician_mode: bool = False,
    snapshot: Optional[VisibilitySnapshot] = None,
    resolver: Optional[VisibilityResolver] = None,
) -> List[ValidationIssue]:
    """
    Validate the visible questions of a form fill.

    Args:
        template: Parsed form template
        answers: Current answer map
        optician_mode: Viewing mode used for visibility
        snapshot: Precomputed visibility; resolved here when omitted
        resolver: Resolver used when no snapshot is given

    Returns:
        Issues in template walk order (empty list when the fill is complete)
    """
    answers = answers or {}
    if snapshot is None:
        snapshot = (resolver or VisibilityResolver()).resolve(template, answers, optician_mode)

    issues: List[ValidationIssue] = []
    for section in snapshot.sections:
        for question in section.all_questions:
            key = answer_key(question)
            message = validate_question(question, answers.get(key))
            if message is not None:
                issues.append(ValidationIssue(question_id=key, message=message))
    return issues
