"""Scoring of scoring-enabled forms."""

from anamnesis_engine.scoring.engine import (
    ScoringEngine,
    answer_score,
    is_scoring_enabled,
    parse_option_score,
    parse_options,
    section_score,
)

__all__ = [
    "ScoringEngine",
    "answer_score",
    "is_scoring_enabled",
    "parse_option_score",
    "parse_options",
    "section_score",
]
