"""Pydantic schemas for templates, runtime entities, submissions and scores."""

from anamnesis_engine.schemas.runtime import (
    DynamicFollowupQuestion,
    VisibilitySnapshot,
    VisibleSection,
    answer_key,
)
from anamnesis_engine.schemas.scoring import FlaggedQuestion, ScoredOption, ScoringResult
from anamnesis_engine.schemas.submission import (
    AnsweredSection,
    Response,
    SubmissionDocument,
    SubmissionMetadata,
    SubmissionPayload,
)
from anamnesis_engine.schemas.template import (
    AdvancedCondition,
    ConditionType,
    FormQuestion,
    FormSection,
    FormTemplate,
    OptionObject,
    QuestionScoring,
    QuestionType,
    ScoreOperator,
    ScoringConfig,
    ShowIf,
)

__all__ = [
    "AdvancedCondition",
    "AnsweredSection",
    "ConditionType",
    "DynamicFollowupQuestion",
    "FlaggedQuestion",
    "FormQuestion",
    "FormSection",
    "FormTemplate",
    "OptionObject",
    "QuestionScoring",
    "QuestionType",
    "Response",
    "ScoreOperator",
    "ScoredOption",
    "ScoringConfig",
    "ScoringResult",
    "ShowIf",
    "SubmissionDocument",
    "SubmissionMetadata",
    "SubmissionPayload",
    "VisibilitySnapshot",
    "VisibleSection",
    "answer_key",
]
