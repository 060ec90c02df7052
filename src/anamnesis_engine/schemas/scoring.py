"""Pydantic schemas for scoring results."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ScoredOption(BaseModel):
    """Typed view of an option label carrying an embedded score."""

    label: str = Field(..., description="Full option label, e.g. 'Ofta (3)'")
    score: Optional[int] = Field(None, description="Extracted score; None if absent")


class FlaggedQuestion(BaseModel):
    """A question whose score met or exceeded its flag threshold."""

    question_id: str
    label: str
    score: float
    warning_message: Optional[str] = None


class ScoringResult(BaseModel):
    """Derived scoring outcome; recomputed from answers, never mutated."""

    total_score: float = 0
    max_possible_score: float = 0
    percentage: int = Field(0, description="Rounded total / max * 100")
    threshold_exceeded: bool = False
    flagged_questions: List[FlaggedQuestion] = Field(default_factory=list)

    def to_record(self) -> Dict[str, Any]:
        """Shape stored as ``scoring_result`` on the entry record."""
        return self.model_dump(mode="json")
