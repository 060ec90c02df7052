"""Tests for required-answer validation."""

from anamnesis_engine.runtime.validators import (
    CHECKBOX_MESSAGE,
    NUMBER_MESSAGE,
    REQUIRED_MESSAGE,
    validate_question,
    validate_required,
)
from anamnesis_engine.schemas.template import FormQuestion, FormTemplate


def issue_ids(issues):
    return [issue.question_id for issue in issues]


class TestValidateRequired:
    """Only visible questions can block submission."""

    def test_missing_required_answer(self, eye_template):
        issues = validate_required(eye_template, {})
        assert issue_ids(issues) == ["glasses"]
        assert issues[0].message == REQUIRED_MESSAGE

    def test_complete_fill_has_no_issues(self, eye_template):
        assert validate_required(eye_template, {"glasses": "Nej"}) == []

    def test_dynamic_followups_inherit_required(self, eye_template):
        answers = {"glasses": "Nej", "symptoms": ["Huvudvärk", "Dubbelseende"], "symptom_detail_for_Huvudvark": "Ofta"}
        assert issue_ids(validate_required(eye_template, answers)) == ["symptom_detail_for_Dubbelseende"]

    def test_hidden_required_question_ignored(self):
        template = FormTemplate.model_validate(
            {
                "sections": [
                    {
                        "show_if": {"question": "gate", "equals": "open"},
                        "questions": [{"id": "inner", "required": True}],
                    },
                    {"questions": [{"id": "gate"}]},
                ]
            }
        )
        assert validate_required(template, {"gate": "closed"}) == []
        assert issue_ids(validate_required(template, {"gate": "open"})) == ["inner"]

    def test_mode_restricted_required_question(self):
        template = FormTemplate.model_validate(
            {"sections": [{"questions": [{"id": "op", "required": True, "show_in_mode": "optician"}]}]}
        )
        assert validate_required(template, {}) == []
        assert issue_ids(validate_required(template, {}, optician_mode=True)) == ["op"]


class TestValidateQuestion:
    """Per-question rules."""

    def test_checkbox_needs_selection(self):
        question = FormQuestion(id="c", type="checkbox", required=True)
        assert validate_question(question, []) == CHECKBOX_MESSAGE
        assert validate_question(question, [""]) == CHECKBOX_MESSAGE
        assert validate_question(question, ["A"]) is None

    def test_number_must_be_numeric(self):
        question = FormQuestion(id="n", type="number")
        assert validate_question(question, "tre") == NUMBER_MESSAGE
        assert validate_question(question, "3,5") is None
        assert validate_question(question, 3) is None
        assert validate_question(question, None) is None

    def test_info_never_required(self):
        question = FormQuestion(id="i", type="info", required=True)
        assert validate_question(question, None) is None

    def test_zero_and_false_satisfy_required(self):
        assert validate_question(FormQuestion(id="n", type="number", required=True), 0) is None
        assert validate_question(FormQuestion(id="b", required=True), False) is None
