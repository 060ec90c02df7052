"""
Runtime components of the form evaluation engine.

This module implements the 4 components of the form runtime:
1. Condition Evaluator - evaluator
2. Visibility Resolver - visibility
3. Submission Document Builder - submission_builder, submission_state
4. Scoring Engine - anamnesis_engine.scoring

Dependencies point one way: the resolver uses the evaluator, the builder
uses the resolver. The evaluator sits behind IConditionEvaluator so the
JSON Logic backend can be swapped.
"""

from anamnesis_engine.runtime.evaluator import (
    IConditionEvaluator,
    JsonLogicConditionEvaluator,
    compile_condition,
    evaluate_condition,
)
from anamnesis_engine.runtime.schema_loader import load_template, parse_template
from anamnesis_engine.runtime.submission_builder import (
    SubmissionDocumentBuilder,
    process_form_answers,
)
from anamnesis_engine.runtime.submission_state import SubmissionState
from anamnesis_engine.runtime.validators import ValidationIssue, validate_required
from anamnesis_engine.runtime.visibility import (
    VisibilityResolver,
    prune_stale_followup_answers,
)

__all__ = [
    "IConditionEvaluator",
    "JsonLogicConditionEvaluator",
    "compile_condition",
    "evaluate_condition",
    "load_template",
    "parse_template",
    "SubmissionDocumentBuilder",
    "process_form_answers",
    "SubmissionState",
    "ValidationIssue",
    "validate_required",
    "VisibilityResolver",
    "prune_stale_followup_answers",
]
