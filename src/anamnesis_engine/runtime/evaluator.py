"""
Condition Evaluator - leaf component of the form runtime.

Responsibility: decide whether a single ``show_if`` rule holds for the
current answer map.

Rules are compiled into standard JSON Logic and executed with the json-logic
library. Compilation happens against the answer snapshot, so branches that
depend on the answer's shape (array membership for ``contains``) and derived
numbers (``section_score``) are resolved before execution. The result is a
pure function of (condition, answers, template).

Both rule shapes are supported:
- Legacy: ``{question, equals?, contains?}``
- Advanced: ``{conditions: [...], logic: "and" | "or"}`` with condition
  kinds ``answer``, ``any_answer`` and ``section_score``
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

try:
    from json_logic import jsonLogic
except ImportError:
    raise ImportError(
        "json-logic library not found. Install with: pip install json-logic-qubit"
    )

from anamnesis_engine.schemas.template import (
    AdvancedCondition,
    ConditionType,
    FormTemplate,
    ScoreOperator,
    ShowIf,
)
from anamnesis_engine.scoring.engine import section_score

logger = logging.getLogger(__name__)

JsonLogicRule = Union[Dict[str, Any], bool]

_SCORE_OPERATORS = {
    ScoreOperator.LESS_THAN: "<",
    ScoreOperator.GREATER_THAN: ">",
    ScoreOperator.EQUALS: "==",
}


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _compile_legacy(
    question_id: str,
    equals: Any,
    contains: Any,
    answers: Dict[str, Any],
) -> JsonLogicRule:
    """Compile a legacy single-question check.

    A missing answer resolves to None through ``var``, and every comparison
    against None is false, so dangling references simply hide the element.
    """
    var = {"var": question_id}
    value = answers.get(question_id)

    if contains is not None:
        if isinstance(value, (list, tuple)):
            return {"in": [contains, var]}
        return {"===": [var, contains]}

    if equals is not None:
        if isinstance(equals, (list, tuple)):
            return {"in": [var, list(equals)]}
        return {"===": [var, equals]}

    return {"!!": [var]}


def _compile_answer(condition: AdvancedCondition, answers: Dict[str, Any]) -> JsonLogicRule:
    if not condition.question_id:
        logger.warning("'answer' condition without question_id, evaluating as false")
        return False

    if condition.values is None:
        return _compile_legacy(condition.question_id, None, None, answers)

    targets = _as_list(condition.values)
    var = {"var": condition.question_id}
    value = answers.get(condition.question_id)
    if isinstance(value, (list, tuple)):
        return {"or": [{"in": [target, var]} for target in targets]}
    return {"in": [var, targets]}


def _compile_any_answer(
    condition: AdvancedCondition,
    answers: Dict[str, Any],
    template: Optional[FormTemplate],
) -> JsonLogicRule:
    index = condition.section_index
    if template is None or index is None or not 0 <= index < len(template.sections):
        logger.warning(f"'any_answer' condition references unknown section {index}")
        return False
    if condition.any_value is None:
        return False

    targets = _as_list(condition.any_value)
    checks: List[Dict[str, Any]] = []
    for question in template.sections[index].questions:
        if question.is_followup_template:
            continue
        var = {"var": question.id}
        if isinstance(answers.get(question.id), (list, tuple)):
            checks.extend({"in": [target, var]} for target in targets)
        else:
            checks.append({"in": [var, targets]})

    if not checks:
        return False
    return {"or": checks}


def _compile_section_score(
    condition: AdvancedCondition,
    answers: Dict[str, Any],
    template: Optional[FormTemplate],
) -> JsonLogicRule:
    index = condition.target_section_index
    if template is None or index is None or not 0 <= index < len(template.sections):
        logger.warning(f"'section_score' condition references unknown section {index}")
        return False
    if condition.operator is None or condition.threshold is None:
        logger.warning("'section_score' condition without operator or threshold")
        return False

    score = section_score(template.sections[index], answers)
    return {_SCORE_OPERATORS[condition.operator]: [score, condition.threshold]}


def compile_advanced_condition(
    condition: AdvancedCondition,
    answers: Dict[str, Any],
    template: Optional[FormTemplate] = None,
) -> JsonLogicRule:
    """Compile one entry of an advanced condition list."""
    if condition.type == ConditionType.ANSWER.value:
        return _compile_answer(condition, answers)
    if condition.type == ConditionType.ANY_ANSWER.value:
        return _compile_any_answer(condition, answers, template)
    if condition.type == ConditionType.SECTION_SCORE.value:
        return _compile_section_score(condition, answers, template)

    logger.warning(f"Unknown condition type '{condition.type}', evaluating as false")
    return False


def compile_condition(
    condition: Optional[ShowIf],
    answers: Dict[str, Any],
    template: Optional[FormTemplate] = None,
) -> JsonLogicRule:
    """Compile a ``show_if`` rule into standard JSON Logic.

    Args:
        condition: The rule, or None for "always visible".
        answers: Current answer map.
        template: Template the rule belongs to; needed by the section-wide
            condition kinds.

    Returns:
        A JSON Logic expression, or a literal bool when the outcome is known
        without execution.
    """
    if condition is None:
        return True

    if condition.conditions:
        parts = [compile_advanced_condition(c, answers, template) for c in condition.conditions]
        return {condition.logic: parts}

    if condition.question:
        return _compile_legacy(condition.question, condition.equals, condition.contains, answers)

    return True


class IConditionEvaluator(ABC):
    """
    Abstract interface for visibility rule evaluation.

    Stateless: accepts (rule + answers) and returns a boolean.
    """

    @abstractmethod
    def evaluate(
        self,
        condition: Optional[ShowIf],
        answers: Dict[str, Any],
        template: Optional[FormTemplate] = None,
    ) -> bool:
        """
        Evaluate a visibility rule against an answer snapshot.

        Args:
            condition: Section or question ``show_if`` (None means visible)
            answers: Flat answer map keyed by static or runtime id
            template: Owning template, for section-wide condition kinds

        Returns:
            True if the element is visible
        """
        pass


class JsonLogicConditionEvaluator(IConditionEvaluator):
    """
    Concrete implementation using the json-logic library.
    """

    def evaluate(
        self,
        condition: Optional[ShowIf],
        answers: Dict[str, Any],
        template: Optional[FormTemplate] = None,
    ) -> bool:
        rule = compile_condition(condition, answers, template)
        if isinstance(rule, bool):
            return rule

        try:
            result = jsonLogic(rule, answers)
        except ValueError as e:
            # Unrecognized operation: hide the element, keep the pass going
            logger.warning(f"Failed to evaluate condition {rule}: {e}")
            return False

        return bool(result)


def evaluate_condition(
    condition: Optional[ShowIf],
    answers: Dict[str, Any],
    template: Optional[FormTemplate] = None,
) -> bool:
    """Module-level shortcut around :class:`JsonLogicConditionEvaluator`."""
    return JsonLogicConditionEvaluator().evaluate(condition, answers, template)
