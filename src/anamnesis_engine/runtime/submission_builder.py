"""
Submission Document Builder.

Turns a visibility snapshot and the raw answer map into the normalized,
section-grouped submission document.

Invariant: a section is in the document iff it is visible and has at least
one non-empty response. Hidden sections, hidden questions and removed
follow-up instances never leak into the document, even if they were
answered earlier.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from anamnesis_engine.config.settings import EngineConfig, get_engine_config
from anamnesis_engine.runtime.visibility import VisibilityResolver
from anamnesis_engine.schemas.runtime import VisibilitySnapshot, VisibleSection, answer_key
from anamnesis_engine.schemas.submission import AnsweredSection, Response, SubmissionDocument
from anamnesis_engine.schemas.template import FormQuestion, FormSection, FormTemplate, QuestionType
from anamnesis_engine.utils.answers import is_empty_answer

logger = logging.getLogger(__name__)

_OTHER_QUESTION_TYPES = (QuestionType.RADIO, QuestionType.DROPDOWN)


def utc_timestamp() -> str:
    """Current time as ``2025-01-31T12:00:00.000Z``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SubmissionDocumentBuilder:
    """Builds and reconciles submission documents.

    ``build`` is the one-shot path (finalize at submit, regenerating a
    summary from stored raw answers). ``apply`` reconciles an existing
    document in place and is what the incremental state uses.
    """

    def __init__(
        self,
        resolver: Optional[VisibilityResolver] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.config = config or get_engine_config()
        self.resolver = resolver or VisibilityResolver(config=self.config)

    def section_title(self, section: FormSection, index: int) -> str:
        return section.section_title or self.config.untitled_section_title(index)

    def build(
        self,
        template: FormTemplate,
        answers: Dict[str, Any],
        optician_mode: bool = False,
        snapshot: Optional[VisibilitySnapshot] = None,
        timestamp: Optional[str] = None,
    ) -> SubmissionDocument:
        """Build a fresh document from a template and an answer snapshot."""
        document = SubmissionDocument(
            form_title=template.title,
            submission_timestamp=timestamp or utc_timestamp(),
            is_optician_submission=optician_mode,
        )
        return self.apply(document, template, answers, optician_mode, snapshot)

    def apply(
        self,
        document: SubmissionDocument,
        template: FormTemplate,
        answers: Dict[str, Any],
        optician_mode: bool = False,
        snapshot: Optional[VisibilitySnapshot] = None,
    ) -> SubmissionDocument:
        """Reconcile ``document`` with the current answers.

        Existing section and response objects are updated in place; entries
        are ordered as the template walks them; hidden or emptied entries
        are removed and empty sections pruned.

        Args:
            document: Document to mutate.
            template: Parsed form template.
            answers: Current answer map.
            optician_mode: Viewing mode used for visibility.
            snapshot: Precomputed visibility; resolved here when omitted.

        Returns:
            The same ``document`` instance.
        """
        answers = answers or {}
        if snapshot is None:
            snapshot = self.resolver.resolve(template, answers, optician_mode)

        existing = {s.section_title: s for s in document.answered_sections}
        static_ids = template.static_question_ids()
        sections: List[AnsweredSection] = []

        for index, section in enumerate(template.sections):
            title = self.section_title(section, index)
            visible = snapshot.section(index)

            if visible is None:
                if title in existing:
                    logger.debug(f"Removing hidden section: {title}")
                continue

            pairs = self._collect_responses(visible, answers, static_ids)
            if not pairs:
                continue

            entry = existing.pop(title, None) or AnsweredSection(section_title=title)
            entry.responses = self._reconcile(entry.responses, pairs)
            sections.append(entry)

        document.answered_sections = sections
        return document

    def _collect_responses(
        self,
        visible: VisibleSection,
        answers: Dict[str, Any],
        static_ids: set,
    ) -> List[tuple]:
        """Ordered ``(id, answer)`` pairs for one visible section."""
        pairs: List[tuple] = []
        seen = set()
        visible_ids = set(visible.question_ids())

        for question in visible.all_questions:
            key = answer_key(question)
            answer = answers.get(key)
            if is_empty_answer(answer) or key in seen:
                continue
            pairs.append((key, answer))
            seen.add(key)

            companion = self._other_companion(question, key, answer, answers, visible_ids, static_ids)
            if companion is not None and companion[0] not in seen:
                pairs.append(companion)
                seen.add(companion[0])

        return pairs

    def _other_companion(
        self,
        question: FormQuestion,
        key: str,
        answer: Any,
        answers: Dict[str, Any],
        visible_ids: set,
        static_ids: set,
    ) -> Optional[tuple]:
        """Free-text answer accompanying an "other" selection, if any."""
        if question.type not in _OTHER_QUESTION_TYPES:
            return None

        sentinels = self.config.other_sentinels
        if isinstance(answer, (list, tuple)):
            selected_other = any(v in sentinels for v in answer)
        else:
            selected_other = answer in sentinels
        if not selected_other:
            return None

        for suffix in self.config.other_suffixes:
            companion_id = f"{key}{suffix}"
            if companion_id in static_ids and companion_id not in visible_ids:
                continue
            companion_answer = answers.get(companion_id)
            if not is_empty_answer(companion_answer):
                return companion_id, companion_answer
        return None

    @staticmethod
    def _reconcile(responses: List[Response], pairs: List[tuple]) -> List[Response]:
        """Upsert ``pairs`` into ``responses``, dropping everything else."""
        by_id = {r.id: r for r in responses}
        result = []
        for question_id, answer in pairs:
            response = by_id.get(question_id)
            if response is None:
                response = Response(id=question_id, answer=answer)
            else:
                response.answer = answer
            result.append(response)
        return result


def process_form_answers(
    template: FormTemplate,
    answers: Dict[str, Any],
    optician_mode: bool = False,
) -> SubmissionDocument:
    """One-shot build with default settings."""
    return SubmissionDocumentBuilder().build(template, answers, optician_mode)
