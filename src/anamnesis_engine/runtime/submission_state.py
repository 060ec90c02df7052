"""
Incremental submission state for a form being filled in.

Every recomputation is a full re-derivation of the document from the
current answer map, so the document cannot drift from the answers.
Recomputation is memoized on a hash of the answer map: an unchanged map
returns the current document without walking the template.
Answers of follow-up instances that no longer exist are dropped from the
stored answer map, so they never reach the submit payload.

``schedule`` throttles recomputation while the user types. Updates arriving
within the debounce window replace each other; only the latest answer
snapshot is ever materialized, and a superseded timer that still fires is
ignored. ``flush`` and ``finalize`` never wait for the timer.
"""

import hashlib
import json
import logging
import threading
from typing import Any, Callable, Dict, Optional

from anamnesis_engine.config.settings import EngineConfig, get_engine_config
from anamnesis_engine.runtime.submission_builder import SubmissionDocumentBuilder, utc_timestamp
from anamnesis_engine.runtime.visibility import prune_stale_followup_answers
from anamnesis_engine.schemas.submission import (
    SubmissionDocument,
    SubmissionMetadata,
    SubmissionPayload,
)
from anamnesis_engine.schemas.template import FormTemplate

logger = logging.getLogger(__name__)

SUBMISSION_FORMAT_VERSION = "2.0"


def hash_answers(answers: Dict[str, Any]) -> str:
    """Stable SHA-256 of an answer map (key order does not matter)."""
    canonical = json.dumps(answers or {}, sort_keys=True, ensure_ascii=False, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class SubmissionState:
    """Holds the live submission document for one form fill."""

    def __init__(
        self,
        template: FormTemplate,
        optician_mode: bool = False,
        builder: Optional[SubmissionDocumentBuilder] = None,
        config: Optional[EngineConfig] = None,
        timer_factory: Callable[..., Any] = threading.Timer,
        template_id: Optional[str] = None,
    ):
        """Initialize the state.

        Args:
            template: Template being filled in.
            optician_mode: Whether an optician fills in the form.
            builder: Document builder. A default one is created if omitted.
            config: Engine configuration (debounce window).
            timer_factory: ``threading.Timer``-compatible factory.
            template_id: Stored template id for the payload metadata.
                Falls back to the template title.
        """
        self.template = template
        self.template_id = template_id or template.title
        self.optician_mode = optician_mode
        self.config = config or get_engine_config()
        self.builder = builder or SubmissionDocumentBuilder(config=self.config)
        self._timer_factory = timer_factory

        self._lock = threading.RLock()
        self._document = SubmissionDocument(
            form_title=template.title,
            submission_timestamp=utc_timestamp(),
            is_optician_submission=optician_mode,
        )
        self._answers: Dict[str, Any] = {}
        self._last_hash: Optional[str] = None

        self._pending: Optional[Dict[str, Any]] = None
        self._pending_hash: Optional[str] = None
        self._timer = None
        self._generation = 0

        self.processing_count = 0

    @property
    def document(self) -> SubmissionDocument:
        with self._lock:
            return self._document

    @property
    def answers(self) -> Dict[str, Any]:
        """Last processed answers, without stale follow-up answers."""
        with self._lock:
            return dict(self._answers)

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def update(self, answers: Dict[str, Any]) -> SubmissionDocument:
        """Recompute the document now (no-op if the answers are unchanged)."""
        answers_hash = hash_answers(answers)
        with self._lock:
            if answers_hash == self._last_hash:
                return self._document

            answers = answers or {}
            snapshot = self.builder.resolver.resolve(self.template, answers, self.optician_mode)
            self.builder.apply(self._document, self.template, answers, self.optician_mode, snapshot)
            self._answers = prune_stale_followup_answers(self.template, answers, snapshot)
            self._last_hash = answers_hash
            self.processing_count += 1
            logger.debug(
                f"Submission document recomputed ({self._document.response_count()} responses "
                f"in {len(self._document.answered_sections)} sections)"
            )
            return self._document

    def schedule(self, answers: Dict[str, Any]) -> bool:
        """Queue a debounced recomputation with the latest answers.

        Returns:
            False if the answers match what is already computed or pending.
        """
        answers_hash = hash_answers(answers)
        with self._lock:
            if self._pending is not None and answers_hash == self._pending_hash:
                return False
            if self._pending is None and answers_hash == self._last_hash:
                return False

            self._cancel_timer()
            self._generation += 1
            self._pending = dict(answers or {})
            self._pending_hash = answers_hash

            timer = self._timer_factory(
                self.config.debounce_seconds, self._fire, args=(self._generation,)
            )
            timer.daemon = True
            self._timer = timer
            timer.start()
            return True

    def flush(self) -> SubmissionDocument:
        """Run any pending recomputation immediately."""
        with self._lock:
            self._cancel_timer()
            pending = self._take_pending()
            if pending is not None:
                self.update(pending)
            return self._document

    def finalize(self, raw_answers: Optional[Dict[str, Any]] = None) -> SubmissionPayload:
        """Flush, refresh the timestamp and return an immutable payload.

        Args:
            raw_answers: Answer map to build from. Defaults to the last
                processed answers.
        """
        with self._lock:
            self.flush()
            if raw_answers is not None:
                self.update(raw_answers)

            timestamp = utc_timestamp()
            self._document.submission_timestamp = timestamp
            logger.info(
                f"Finalized submission for '{self.template.title}' with "
                f"{self._document.response_count()} responses"
            )
            return SubmissionPayload(
                formatted_answers=self._document.model_copy(deep=True),
                raw_answers=dict(self._answers),
                metadata=SubmissionMetadata(
                    form_template_id=self.template_id,
                    submitted_at=timestamp,
                    version=SUBMISSION_FORMAT_VERSION,
                ),
            )

    def cancel(self) -> None:
        """Drop any pending recomputation."""
        with self._lock:
            self._cancel_timer()
            self._take_pending()

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                # Superseded by a newer schedule() or a flush()
                return
            self._timer = None
            pending = self._take_pending()
            if pending is not None:
                self.update(pending)

    def _take_pending(self) -> Optional[Dict[str, Any]]:
        pending = self._pending
        self._pending = None
        self._pending_hash = None
        return pending

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._generation += 1
