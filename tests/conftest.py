"""
Pytest fixtures and configuration for anamnesis engine tests.
Provides sample templates shared across test modules.
"""

import json

import pytest

from anamnesis_engine.config.settings import CONFIG_ENV_VAR, EngineConfig, reset_engine_config_cache
from anamnesis_engine.schemas.template import FormTemplate


@pytest.fixture(autouse=True)
def isolated_engine_config(monkeypatch):
    """Every test starts from default engine config."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    reset_engine_config_cache()
    yield
    reset_engine_config_cache()


@pytest.fixture
def engine_config():
    return EngineConfig()


def _eye_template_data():
    return {
        "title": "Synundersökning",
        "sections": [
            {
                "section_title": "Synhistorik",
                "questions": [
                    {
                        "id": "glasses",
                        "label": "Använder du glasögon?",
                        "type": "radio",
                        "options": ["Ja", "Nej"],
                        "required": True,
                    },
                    {
                        "id": "glasses_years",
                        "label": "Hur många år?",
                        "type": "number",
                        "show_if": {"question": "glasses", "equals": "Ja"},
                    },
                    {
                        "id": "symptoms",
                        "label": "Vilka besvär har du?",
                        "type": "checkbox",
                        "options": ["Huvudvärk", "Dubbelseende", "Inga besvär"],
                        "followup_question_ids": ["symptom_detail"],
                    },
                    {
                        "id": "symptom_detail",
                        "label": "Beskriv {option}",
                        "type": "textarea",
                        "is_followup_template": True,
                        "required": True,
                    },
                    {
                        "id": "referral",
                        "label": "Hur hittade du till oss?",
                        "type": "radio",
                        "options": ["Annons", "Vän", "Övrigt"],
                    },
                ],
            },
            {
                "section_title": "Ögonsjukdomar",
                "show_if": {"question": "glasses", "equals": "Ja"},
                "questions": [
                    {
                        "id": "eye_disease",
                        "label": "Har du någon ögonsjukdom?",
                        "type": "radio",
                        "options": ["Ja", "Nej"],
                    },
                    {
                        "id": "eye_disease_which",
                        "label": "Vilken?",
                        "type": "text",
                        "show_if": {"question": "eye_disease", "equals": "Ja"},
                    },
                ],
            },
            {
                "section_title": "Optikerns anteckningar",
                "questions": [
                    {
                        "id": "optician_note",
                        "label": "Anteckning",
                        "type": "textarea",
                        "show_in_mode": "optician",
                    },
                    {
                        "id": "patient_comment",
                        "label": "Övriga kommentarer",
                        "type": "textarea",
                        "show_in_mode": "patient",
                    },
                ],
            },
        ],
    }


@pytest.fixture
def eye_template_data():
    """Raw template blob as stored on the form record."""
    return _eye_template_data()


@pytest.fixture
def eye_template():
    """Three sections: history with follow-ups, a gated section, mode-restricted notes."""
    return FormTemplate.model_validate(_eye_template_data())


@pytest.fixture
def followup_template():
    """One radio question with a single follow-up template."""
    return FormTemplate.model_validate(
        {
            "title": "Uppföljning",
            "sections": [
                {
                    "questions": [
                        {
                            "id": "A",
                            "label": "Fråga A",
                            "type": "radio",
                            "options": ["Ja", "Nej"],
                            "followup_question_ids": ["A_detail"],
                        },
                        {
                            "id": "A_detail",
                            "label": "Detaljer för {option}",
                            "type": "text",
                            "is_followup_template": True,
                        },
                    ]
                }
            ],
        }
    )


@pytest.fixture
def chain_template():
    """a -> b -> c chain plus a section gated on c."""
    return FormTemplate.model_validate(
        {
            "title": "Kedja",
            "sections": [
                {
                    "section_title": "Kedja",
                    "questions": [
                        {"id": "a", "label": "A", "type": "radio", "options": ["ja", "nej"]},
                        {
                            "id": "b",
                            "label": "B",
                            "type": "radio",
                            "options": ["ja", "nej"],
                            "show_if": {"question": "a", "equals": "ja"},
                        },
                        {
                            "id": "c",
                            "label": "C",
                            "type": "radio",
                            "options": ["ja", "nej"],
                            "show_if": {"question": "b", "equals": "ja"},
                        },
                    ],
                },
                {
                    "section_title": "Slut",
                    "show_if": {"question": "c", "equals": "ja"},
                    "questions": [{"id": "d", "label": "D", "type": "text"}],
                },
            ],
        }
    )


def scored_question(question_id, flag_threshold=None, warning_message=None):
    return {
        "id": question_id,
        "label": f"Fråga {question_id}",
        "type": "radio",
        "options": ["Aldrig (0)", "Sällan (1)", "Ibland (2)", "Ofta (3)", "Alltid (4)"],
        "scoring": {
            "enabled": True,
            "min_value": 0,
            "max_value": 4,
            "flag_threshold": flag_threshold,
            "warning_message": warning_message,
        },
    }


@pytest.fixture
def scoring_template():
    """CISS-style section: three scored questions (max 4 each)."""
    return FormTemplate.model_validate(
        {
            "title": "CISS",
            "scoring_config": {"enabled": True, "total_threshold": 9},
            "sections": [
                {
                    "section_title": "Symptom",
                    "questions": [
                        scored_question("q1"),
                        scored_question("q2", flag_threshold=3, warning_message="Vanligt besvär"),
                        scored_question("q3", flag_threshold=3),
                        {"id": "comment", "label": "Kommentar", "type": "text"},
                    ],
                },
                {
                    "section_title": "Uppföljning",
                    "show_if": {
                        "conditions": [
                            {
                                "type": "section_score",
                                "target_section_index": 0,
                                "operator": "greater_than",
                                "threshold": 5,
                            }
                        ]
                    },
                    "questions": [{"id": "followup_note", "label": "Notering", "type": "text"}],
                },
            ],
        }
    )


@pytest.fixture
def write_json(tmp_path):
    """Write a JSON file under tmp_path and return its path."""

    def _write(name, data):
        path = tmp_path / name
        path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        return path

    return _write
