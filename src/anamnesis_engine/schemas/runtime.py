"""Pydantic schemas for runtime-only entities.

Nothing in this module is persisted: dynamic follow-up instances and
visibility snapshots are re-derived from the template and the answer map on
every evaluation pass.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from anamnesis_engine.schemas.template import FormQuestion


class DynamicFollowupQuestion(FormQuestion):
    """A follow-up template instantiated for one selected parent value.

    ``id`` keeps the template's static id; answers are stored under
    ``runtime_id``.
    """

    parent_id: str = Field(..., description="Id of the question that triggered the instance")
    parent_value: Any = Field(..., description="Selected parent value (literal)")
    original_id: str = Field(..., description="Static id of the follow-up template")
    runtime_id: str = Field(..., description="Sanitized composite answer key")


def answer_key(question: FormQuestion) -> str:
    """Key under which a question's answer lives in the answer map."""
    if isinstance(question, DynamicFollowupQuestion):
        return question.runtime_id
    return question.id


class VisibleSection(BaseModel):
    """A visible section with its visible static and dynamic questions."""

    index: int = Field(..., description="Section index in the template")
    section_title: Optional[str] = None
    questions: List[FormQuestion] = Field(
        default_factory=list, description="Visible static questions in schema order"
    )
    dynamic_questions: List[DynamicFollowupQuestion] = Field(
        default_factory=list,
        description="Materialized follow-ups in parent/option encounter order",
    )

    @property
    def all_questions(self) -> List[FormQuestion]:
        return [*self.questions, *self.dynamic_questions]

    def question_ids(self) -> List[str]:
        return [answer_key(q) for q in self.all_questions]


class VisibilitySnapshot(BaseModel):
    """Output of one visibility resolution."""

    sections: List[VisibleSection] = Field(default_factory=list)
    passes: int = Field(0, description="Question-level passes needed to stabilize")
    converged: bool = Field(True, description="False when the pass cap was hit")

    def visible_section_indices(self) -> List[int]:
        return [section.index for section in self.sections]

    def section(self, index: int) -> Optional[VisibleSection]:
        for section in self.sections:
            if section.index == index:
                return section
        return None

    def visible_question_ids(self) -> List[str]:
        """Visible answer keys (static ids and runtime ids), in output order."""
        ids: List[str] = []
        for section in self.sections:
            ids.extend(section.question_ids())
        return ids

    def dynamic_questions(self) -> List[DynamicFollowupQuestion]:
        return [dq for section in self.sections for dq in section.dynamic_questions]

    def runtime_ids(self) -> set[str]:
        return {dq.runtime_id for dq in self.dynamic_questions()}

    def to_dict(self) -> Dict[str, Any]:
        """Compact, JSON-friendly view used by the CLI."""
        return {
            "sections": [
                {
                    "index": s.index,
                    "section_title": s.section_title,
                    "questions": [q.id for q in s.questions],
                    "dynamic_questions": [
                        {
                            "runtime_id": dq.runtime_id,
                            "label": dq.label,
                            "parent_id": dq.parent_id,
                            "parent_value": dq.parent_value,
                        }
                        for dq in s.dynamic_questions
                    ],
                }
                for s in self.sections
            ],
            "passes": self.passes,
            "converged": self.converged,
        }
