"""Text rendering of submissions."""

from anamnesis_engine.summary.text_renderer import (
    extract_formatted_answers,
    format_answer_value,
    render_summary,
)

__all__ = ["extract_formatted_answers", "format_answer_value", "render_summary"]
