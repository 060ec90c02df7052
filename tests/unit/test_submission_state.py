"""Tests for incremental, debounced submission state."""

import pytest
from pydantic import ValidationError

from anamnesis_engine.config.settings import EngineConfig
from anamnesis_engine.runtime.submission_state import SubmissionState, hash_answers


class FakeTimer:
    """threading.Timer stand-in that only fires when told to."""

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.function(*self.args, **self.kwargs)


@pytest.fixture
def timers():
    return []


@pytest.fixture
def state(eye_template, timers):
    def factory(*args, **kwargs):
        timer = FakeTimer(*args, **kwargs)
        timers.append(timer)
        return timer

    return SubmissionState(eye_template, config=EngineConfig(debounce_ms=100), timer_factory=factory)


class TestHashing:
    """Answer-map hash used for memoization."""

    def test_key_order_does_not_matter(self):
        assert hash_answers({"a": 1, "b": [1, 2]}) == hash_answers({"b": [1, 2], "a": 1})

    def test_value_changes_change_hash(self):
        assert hash_answers({"a": "Ja"}) != hash_answers({"a": "Nej"})


class TestUpdate:
    """Synchronous recomputation."""

    def test_update_builds_document(self, state):
        document = state.update({"glasses": "Ja"})
        assert document.answers_by_id() == {"glasses": "Ja"}
        assert state.processing_count == 1

    def test_unchanged_answers_short_circuit(self, state):
        state.update({"glasses": "Ja", "symptoms": ["Huvudvärk"]})
        state.update({"symptoms": ["Huvudvärk"], "glasses": "Ja"})
        assert state.processing_count == 1

    def test_document_object_is_stable(self, state):
        first = state.update({"glasses": "Ja"})
        second = state.update({"glasses": "Nej"})
        assert first is second is state.document

    def test_answers_drop_removed_followups(self, state):
        state.update({"symptoms": ["Huvudvärk"], "symptom_detail_for_Huvudvark": "Morgon"})
        assert state.answers == {"symptoms": ["Huvudvärk"], "symptom_detail_for_Huvudvark": "Morgon"}

        state.update({"symptoms": [], "symptom_detail_for_Huvudvark": "Morgon"})
        assert state.answers == {"symptoms": []}


class TestDebounce:
    """Coalescing of rapid updates."""

    def test_schedule_defers_work(self, state, timers):
        assert state.schedule({"glasses": "Ja"}) is True
        assert state.processing_count == 0
        assert state.has_pending is True
        assert timers[0].started is True
        assert timers[0].daemon is True
        assert timers[0].interval == pytest.approx(0.1)

        timers[0].fire()
        assert state.processing_count == 1
        assert state.document.answers_by_id() == {"glasses": "Ja"}
        assert state.has_pending is False

    def test_last_write_wins(self, state, timers):
        state.schedule({"glasses": "J"})
        state.schedule({"glasses": "Ja"})
        assert timers[0].cancelled is True

        # A superseded timer that fires anyway does nothing
        timers[0].fire()
        assert state.processing_count == 0

        timers[1].fire()
        assert state.processing_count == 1
        assert state.document.answers_by_id() == {"glasses": "Ja"}

    def test_flush_runs_pending_immediately(self, state, timers):
        state.schedule({"glasses": "Nej"})
        document = state.flush()
        assert document.answers_by_id() == {"glasses": "Nej"}
        assert timers[0].cancelled is True

        timers[0].fire()
        assert state.processing_count == 1

    def test_schedule_of_current_answers_is_noop(self, state, timers):
        state.update({"glasses": "Ja"})
        assert state.schedule({"glasses": "Ja"}) is False
        assert timers == []

    def test_same_pending_answers_not_rescheduled(self, state, timers):
        state.schedule({"glasses": "Ja"})
        assert state.schedule({"glasses": "Ja"}) is False
        assert len(timers) == 1

    def test_cancel_drops_pending(self, state, timers):
        state.schedule({"glasses": "Ja"})
        state.cancel()
        assert state.has_pending is False
        timers[0].fire()
        assert state.document.answered_sections == []

    def test_flush_without_pending(self, state):
        assert state.flush().answered_sections == []
        assert state.processing_count == 0


class TestFinalize:
    """Immutable payload at submit time."""

    def test_finalize_flushes_pending(self, state):
        state.schedule({"glasses": "Ja", "glasses_years": 10})
        payload = state.finalize()
        assert payload.formatted_answers.answers_by_id() == {"glasses": "Ja", "glasses_years": 10}
        assert payload.raw_answers == {"glasses": "Ja", "glasses_years": 10}

    def test_finalize_with_raw_answers(self, state):
        payload = state.finalize({"glasses": "Nej"})
        assert payload.formatted_answers.answers_by_id() == {"glasses": "Nej"}

    def test_metadata(self, state):
        payload = state.finalize({"glasses": "Nej"})
        assert payload.metadata.form_template_id == "Synundersökning"
        assert payload.metadata.version == "2.0"
        assert payload.metadata.submitted_at == payload.formatted_answers.submission_timestamp

    def test_payload_is_frozen(self, state):
        payload = state.finalize({"glasses": "Nej"})
        with pytest.raises(ValidationError):
            payload.raw_answers = {}

    def test_payload_detached_from_live_document(self, state):
        payload = state.finalize({"glasses": "Nej"})
        state.update({"glasses": "Ja"})
        assert payload.formatted_answers.answers_by_id() == {"glasses": "Nej"}

    def test_wire_shape(self, state):
        wire = state.finalize({"glasses": "Nej"}).to_wire()
        assert set(wire) == {"formattedAnswers", "rawAnswers", "metadata"}
        assert wire["metadata"]["formTemplateId"] == "Synundersökning"
        assert wire["formattedAnswers"]["formTitle"] == "Synundersökning"

    def test_stale_followup_answers_not_submitted(self, state):
        answers = {
            "symptoms": ["Dubbelseende"],
            "symptom_detail_for_Huvudvark": "gammalt",
            "symptom_detail_for_Dubbelseende": "Vid läsning",
        }
        payload = state.finalize(answers)
        assert payload.raw_answers == {
            "symptoms": ["Dubbelseende"],
            "symptom_detail_for_Dubbelseende": "Vid läsning",
        }
        assert payload.formatted_answers.answers_by_id() == payload.raw_answers

    def test_static_answers_of_hidden_questions_kept(self, state):
        payload = state.finalize({"glasses": "Nej", "glasses_years": 4})
        assert payload.raw_answers == {"glasses": "Nej", "glasses_years": 4}
        assert payload.formatted_answers.answers_by_id() == {"glasses": "Nej"}

    def test_explicit_template_id(self, eye_template):
        state = SubmissionState(eye_template, config=EngineConfig(), template_id="synundersokning-v3")
        payload = state.finalize({"glasses": "Nej"})
        assert payload.metadata.form_template_id == "synundersokning-v3"
        assert payload.formatted_answers.form_title == "Synundersökning"
