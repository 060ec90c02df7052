"""Pydantic schemas for the submission document.

The submission document is the normalized, section-grouped and
visibility-filtered record of the answers. It is what the persistence
boundary receives at submit time, next to the raw answer map.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Response(BaseModel):
    """One answered question."""

    id: str = Field(..., description="Static id or runtime id of the question")
    answer: Any = Field(..., description="Answer value as entered")


class AnsweredSection(BaseModel):
    """A visible section with at least one non-empty response."""

    section_title: str
    responses: List[Response] = Field(default_factory=list)


class SubmissionDocument(BaseModel):
    """Formatted answers for one form fill."""

    form_title: str = Field("", description="Title of the template")
    submission_timestamp: str = Field(..., description="ISO-8601 UTC timestamp")
    answered_sections: List[AnsweredSection] = Field(default_factory=list)
    is_optician_submission: bool = False

    def section(self, section_title: str) -> Optional[AnsweredSection]:
        for section in self.answered_sections:
            if section.section_title == section_title:
                return section
        return None

    def response_count(self) -> int:
        return sum(len(s.responses) for s in self.answered_sections)

    def answers_by_id(self) -> Dict[str, Any]:
        return {r.id: r.answer for s in self.answered_sections for r in s.responses}

    def to_wire(self) -> Dict[str, Any]:
        """Serialize to the camelCase shape stored by the submit endpoint."""
        data: Dict[str, Any] = {
            "formTitle": self.form_title,
            "submissionTimestamp": self.submission_timestamp,
            "answeredSections": [
                {
                    "section_title": s.section_title,
                    "responses": [{"id": r.id, "answer": r.answer} for r in s.responses],
                }
                for s in self.answered_sections
            ],
        }
        if self.is_optician_submission:
            data["isOpticianSubmission"] = True
        return data

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "SubmissionDocument":
        """Inverse of :meth:`to_wire`; tolerates missing optional keys."""
        return cls(
            form_title=data.get("formTitle", ""),
            submission_timestamp=data.get("submissionTimestamp", ""),
            answered_sections=[
                AnsweredSection(
                    section_title=s.get("section_title", ""),
                    responses=[
                        Response(id=r["id"], answer=r.get("answer"))
                        for r in s.get("responses", [])
                        if isinstance(r, dict) and "id" in r
                    ],
                )
                for s in data.get("answeredSections", [])
                if isinstance(s, dict)
            ],
            is_optician_submission=bool(data.get("isOpticianSubmission", False)),
        )


class SubmissionMetadata(BaseModel):
    """Metadata attached to a finalized submission."""

    form_template_id: str
    submitted_at: str
    version: str = "2.0"


class SubmissionPayload(BaseModel):
    """Immutable payload handed to the persistence boundary."""

    model_config = ConfigDict(frozen=True)

    formatted_answers: SubmissionDocument
    raw_answers: Dict[str, Any] = Field(default_factory=dict)
    metadata: SubmissionMetadata

    def to_wire(self) -> Dict[str, Any]:
        return {
            "formattedAnswers": self.formatted_answers.to_wire(),
            "rawAnswers": dict(self.raw_answers),
            "metadata": {
                "formTemplateId": self.metadata.form_template_id,
                "submittedAt": self.metadata.submitted_at,
                "version": self.metadata.version,
            },
        }
