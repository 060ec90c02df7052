"""
Plain-text rendering of a submission for AI summarization.

Combines the template (for labels and order) with the submission document
(for answers) into a compact, token-efficient text block:

    Patientens anamnesinformation:

    -- Synhistorik --
    Använder du glasögon?: Ja
    Hur länge (Ja): 5 år

Optician-only questions are left out; the text is what the patient told us.
"""

import json
import logging
from typing import Any, Dict, Optional

from anamnesis_engine.config.settings import EngineConfig, get_engine_config
from anamnesis_engine.runtime.visibility import OPTION_PLACEHOLDER
from anamnesis_engine.schemas.submission import AnsweredSection, Response, SubmissionDocument
from anamnesis_engine.schemas.template import FormTemplate
from anamnesis_engine.utils.answers import is_empty_answer
from anamnesis_engine.utils.question_ids import (
    RUNTIME_ID_SEPARATOR,
    match_followup_prefix,
    parse_runtime_id,
    sanitize_id_fragment,
)

logger = logging.getLogger(__name__)

SUMMARY_HEADER = "Patientens anamnesinformation:"
NO_INFORMATION = "Ingen information tillgänglig"
NO_ANSWER = "Inget svar"
RAW_SECTION_TITLE = "Patientens svar"

_METADATA_KEYS = {"formMetadata", "metadata"}


def format_answer_value(answer: Any) -> str:
    """Render one answer value as text."""
    if answer is None:
        return NO_ANSWER

    if isinstance(answer, (list, tuple)):
        parts = []
        for item in answer:
            if isinstance(item, dict):
                item = item["value"] if "value" in item else json.dumps(item, ensure_ascii=False)
            if is_empty_answer(item):
                continue
            parts.append(str(item))
        return ", ".join(parts)

    if isinstance(answer, dict):
        if "value" in answer:
            return format_answer_value(answer["value"])
        return json.dumps(answer, ensure_ascii=False)

    return str(answer)


def render_summary(
    template: FormTemplate,
    document: SubmissionDocument,
    config: Optional[EngineConfig] = None,
) -> str:
    """
    Render answered questions in template order.

    Args:
        template: Template providing labels and order
        document: Submission document providing the answers
        config: Engine configuration (untitled section names)

    Returns:
        The summary text; a fixed "no information" line when nothing is answered
    """
    config = config or get_engine_config()
    output = f"{SUMMARY_HEADER}\n"

    answered: Dict[str, Any] = {
        response.id: response.answer
        for section in document.answered_sections
        for response in section.responses
        if not is_empty_answer(response.answer)
    }
    if not answered:
        return output + f"\n{NO_INFORMATION}"

    for index, section in enumerate(template.sections):
        if not section.questions:
            continue

        lines = []
        followup_labels = {}
        for question in section.questions:
            if question.show_in_mode == "optician":
                continue
            if question.is_followup_template:
                label = question.label.replace(OPTION_PLACEHOLDER, "").strip()
                followup_labels[sanitize_id_fragment(question.id)] = label or question.id
                continue
            if question.id in answered:
                label = question.label or question.id
                lines.append(f"{label}: {format_answer_value(answered[question.id])}")

        for key, answer in answered.items():
            prefix = match_followup_prefix(key, followup_labels)
            if prefix is None:
                continue
            base_label = followup_labels[prefix]
            parent_value = key[len(prefix) + len(RUNTIME_ID_SEPARATOR):].replace("_", " ")
            lines.append(f"{base_label} ({parent_value}): {format_answer_value(answer)}")

        if lines:
            title = section.section_title or config.untitled_section_title(index)
            output += f"\n-- {title} --\n"
            output += "".join(f"{line}\n" for line in lines)

    return output


def extract_formatted_answers(blob: Any) -> Optional[SubmissionDocument]:
    """
    Recover a submission document from a stored answers blob.

    Handles every shape the entry record has held over time:
    1. Direct ``{answeredSections: [...]}``
    2. Nested under ``formattedAnswers`` (once or twice)
    3. Inside a ``rawAnswers`` wrapper
    4. A bare answer map, collected into a single section

    Returns:
        The document, or None when the blob holds nothing usable
    """
    if not isinstance(blob, dict) or not blob:
        return None

    if isinstance(blob.get("answeredSections"), list):
        logger.debug("Found direct answeredSections structure")
        return SubmissionDocument.from_wire(blob)

    formatted = blob.get("formattedAnswers")
    if isinstance(formatted, dict):
        if "answeredSections" in formatted:
            logger.debug("Found single-nested formattedAnswers structure")
            return SubmissionDocument.from_wire(formatted)
        if isinstance(formatted.get("formattedAnswers"), dict):
            logger.debug("Found double-nested formattedAnswers structure")
            return SubmissionDocument.from_wire(formatted["formattedAnswers"])

    if isinstance(blob.get("rawAnswers"), dict):
        inner = extract_formatted_answers(blob["rawAnswers"])
        if inner is not None:
            return inner

    logger.debug("Transforming raw answers to a single section")
    responses = []
    for key, answer in blob.items():
        if key in _METADATA_KEYS:
            continue
        parsed = parse_runtime_id(key)
        if parsed is not None:
            answer = {"parent_question": parsed[0], "parent_value": parsed[1], "value": answer}
        responses.append(Response(id=key, answer=answer))

    return SubmissionDocument(
        submission_timestamp="",
        answered_sections=[AnsweredSection(section_title=RAW_SECTION_TITLE, responses=responses)],
    )
