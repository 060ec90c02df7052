"""Pydantic schemas for form templates.

A form template is the organization-authored definition of one examination
type: ordered sections of questions, visibility rules (``show_if``),
follow-up templates and optional scoring. Templates are read-only at
runtime; every evaluation pass works against the same parsed instance.
"""

from enum import Enum
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class QuestionType(str, Enum):
    """Input type tag of a question."""

    TEXT = "text"
    TEXTAREA = "textarea"
    RADIO = "radio"
    SELECT = "select"
    CHECKBOX = "checkbox"
    DROPDOWN = "dropdown"
    NUMBER = "number"
    DATE = "date"
    EMAIL = "email"
    TEL = "tel"
    URL = "url"
    INFO = "info"


class ConditionType(str, Enum):
    """Kind of an advanced visibility condition."""

    ANSWER = "answer"
    ANY_ANSWER = "any_answer"
    SECTION_SCORE = "section_score"


class ScoreOperator(str, Enum):
    """Comparison used by ``section_score`` conditions."""

    LESS_THAN = "less_than"
    GREATER_THAN = "greater_than"
    EQUALS = "equals"


class OptionObject(BaseModel):
    """Option with an explicit follow-up trigger flag."""

    value: str = Field(..., description="Option label as shown and stored")
    triggers_followups: bool = Field(
        default=True,
        description="Whether selecting this option instantiates follow-up questions",
    )


QuestionOption = Union[str, OptionObject]


class AdvancedCondition(BaseModel):
    """One entry of an advanced ``show_if.conditions`` list."""

    type: str = Field(..., description="answer, any_answer or section_score")

    # answer
    question_id: Optional[str] = Field(None, description="Question checked by 'answer'")
    values: Optional[Union[List[Any], Any]] = Field(
        None, description="Value(s) that satisfy an 'answer' condition"
    )

    # any_answer
    section_index: Optional[int] = Field(
        None, description="Section whose questions are scanned by 'any_answer'"
    )
    any_value: Optional[Union[List[Any], Any]] = Field(
        None, description="Value(s) any question of the section may hold"
    )

    # section_score
    target_section_index: Optional[int] = Field(
        None, description="Section whose score is compared by 'section_score'"
    )
    operator: Optional[ScoreOperator] = Field(None, description="Score comparison")
    threshold: Optional[float] = Field(None, description="Score threshold")


class ShowIf(BaseModel):
    """Visibility rule for a section or question.

    Legacy rules name a single ``question`` with an optional ``equals`` or
    ``contains`` comparator. Advanced rules carry a ``conditions`` list
    reduced with ``logic`` (default ``or``). When both are present the
    advanced list wins.
    """

    question: Optional[str] = None
    equals: Optional[Any] = None
    contains: Optional[Any] = None
    conditions: Optional[List[AdvancedCondition]] = None
    logic: Literal["and", "or"] = "or"


class QuestionScoring(BaseModel):
    """Per-question scoring block."""

    enabled: bool = False
    min_value: float = 0
    max_value: float = 0
    flag_threshold: Optional[float] = None
    warning_message: Optional[str] = None


class FormQuestion(BaseModel):
    """A static question definition."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1, description="Unique id within the template")
    label: str = Field("", description="Question text; may contain {option}")
    type: QuestionType = Field(QuestionType.TEXT, description="Input type tag")
    options: Optional[List[QuestionOption]] = None
    required: bool = False
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    show_if: Optional[ShowIf] = None
    is_followup_template: bool = False
    followup_question_ids: Optional[List[str]] = None
    show_in_mode: Optional[Literal["patient", "optician", "all"]] = None
    scoring: Optional[QuestionScoring] = None

    @property
    def option_values(self) -> List[str]:
        """Option labels regardless of plain or object form."""
        return [o.value if isinstance(o, OptionObject) else o for o in self.options or []]

    @property
    def scoring_enabled(self) -> bool:
        return self.scoring is not None and self.scoring.enabled

    def option_triggers_followups(self, value: Any) -> bool:
        """Whether the selected ``value`` may spawn follow-up instances.

        Plain string options always trigger; option objects honour their
        ``triggers_followups`` flag. Values not among the options trigger
        too, so free-form parents keep working.
        """
        for option in self.options or []:
            if isinstance(option, OptionObject) and option.value == value:
                return option.triggers_followups
        return True


class FormSection(BaseModel):
    """An ordered group of questions with an optional visibility rule."""

    model_config = ConfigDict(extra="allow")

    section_title: Optional[str] = None
    questions: List[FormQuestion] = Field(default_factory=list)
    show_if: Optional[ShowIf] = None

    def find_question(self, question_id: str) -> Optional[FormQuestion]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


class ScoringConfig(BaseModel):
    """Form-level scoring configuration."""

    enabled: bool = False
    total_threshold: Optional[float] = None
    show_score_to_patient: bool = False
    threshold_message: Optional[str] = None
    disable_ai_summary: bool = False


class QuestionPreset(BaseModel):
    """Reusable option set offered by the form builder."""

    name: str
    type: Literal["radio", "dropdown", "checkbox"]
    options: List[str] = Field(default_factory=list)
    scoring: Optional[QuestionScoring] = None


class KioskMode(BaseModel):
    """Kiosk-mode flags carried on the template."""

    enabled: bool = False
    require_supervisor_code: bool = False
    auto_submit: bool = False


class FormTemplate(BaseModel):
    """Immutable schema for one examination type."""

    model_config = ConfigDict(extra="allow")

    title: str = Field("", description="Form title")
    sections: List[FormSection] = Field(default_factory=list)
    scoring_config: Optional[ScoringConfig] = None
    question_presets: Optional[List[QuestionPreset]] = None
    kiosk_mode: Optional[KioskMode] = None

    def iter_questions(self):
        """Yield ``(section_index, section, question)`` in schema order."""
        for index, section in enumerate(self.sections):
            for question in section.questions:
                yield index, section, question

    def find_question(self, question_id: str) -> Optional[FormQuestion]:
        for _, _, question in self.iter_questions():
            if question.id == question_id:
                return question
        return None

    def static_question_ids(self) -> set[str]:
        return {question.id for _, _, question in self.iter_questions()}
