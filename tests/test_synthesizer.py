from dataclasses import fields

import pytest

from health_assistant.agents.synthesizer import (
    CONDITION_TEMPLATES,
    EMERGENCY_SUGGESTIONS,
    ResponseSynthesizer,
    template_language,
)
from health_assistant.core.models import GeneratedResponse, MedicalCondition
from health_assistant.knowledge.loader import KnowledgeTables, get_knowledge_tables


@pytest.fixture
def synthesizer():
    return ResponseSynthesizer()


def test_emergency_entity_short_circuits(synthesizer):
    result = synthesizer.get_medical_response("general_health", ["chest pain", "fever"])

    assert result.emergency is True
    assert "medical emergency" in result.response
    assert result.suggestions == EMERGENCY_SUGGESTIONS
    assert result.follow_up is None
    assert result.confidence == 1.0


def test_emergency_intent_short_circuits(synthesizer):
    result = synthesizer.get_medical_response("emergency", [], language="te")

    assert result.emergency is True
    assert "అత్యవసర" in result.response


def test_condition_match(synthesizer):
    result = synthesizer.get_medical_response("symptom_inquiry", ["fever"])

    assert result.response.startswith("Fever is a medical condition that can cause elevated body temperature")
    assert result.suggestions == ["rest", "hydration", "fever reducers", "cool compresses"]
    assert result.follow_up == "Would you like more information about Fever or its treatment options?"
    assert result.emergency is False
    assert result.confidence == 0.9


def test_condition_match_appends_user_conditions_note(synthesizer):
    first = synthesizer.get_medical_response("general_health", ["cough"], ["asthma", "diabetes"])
    second = synthesizer.get_medical_response("general_health", ["cough"], ["asthma", "diabetes"])

    assert first.suggestions[-1] == (
        "Note: You have recorded conditions: asthma, diabetes. Please inform your healthcare provider."
    )
    # The stored treatments are not modified between calls
    assert first.suggestions == second.suggestions
    assert len(first.suggestions) == 5


def test_condition_match_in_hindi(synthesizer):
    result = synthesizer.get_medical_response("disease_info", ["diabetes"], language="hi")

    assert result.response.startswith("Diabetes एक चिकित्सा स्थिति है")
    # Follow-up and suggestions stay English until the delivery step
    assert result.follow_up.startswith("Would you like")


def test_unsupported_template_language_uses_english(synthesizer):
    result = synthesizer.get_medical_response("disease_info", ["hypertension"], language="ta")

    assert result.response.startswith("High Blood Pressure is a medical condition")


def test_generic_fallback(synthesizer):
    result = synthesizer.get_medical_response("medication_query", ["pill"])

    assert result.response.startswith("For medication advice")
    assert result.suggestions[0] == "Consult pharmacist"
    assert result.emergency is False
    assert result.follow_up is None
    assert result.confidence == 0.5


def test_generic_fallback_unknown_intent_uses_default(synthesizer):
    result = synthesizer.get_medical_response("smalltalk", [], language="hi")

    assert result.response.startswith("मैं आपके स्वास्थ्य प्रश्नों")


def test_all_branches_share_the_response_shape(synthesizer):
    results = [
        synthesizer.get_medical_response("emergency", []),
        synthesizer.get_medical_response("general_health", ["fever"]),
        synthesizer.get_medical_response("general_health", []),
    ]

    expected = {f.name for f in fields(GeneratedResponse)}
    for result in results:
        assert isinstance(result, GeneratedResponse)
        assert {f.name for f in fields(result)} == expected
        assert 0.0 <= result.confidence <= 1.0


def test_template_language():
    assert template_language("te") == "te"
    assert template_language("kn") == "en"
    assert set(CONDITION_TEMPLATES) == {"en", "hi", "te"}


def test_is_emergency(synthesizer):
    assert synthesizer.is_emergency("emergency", [])
    assert synthesizer.is_emergency("general_health", ["Chest Pain"])
    assert not synthesizer.is_emergency("disease_info", ["fever", "head"])
    assert not synthesizer.is_emergency("general_health", [])


def test_is_emergency_from_condition_flag():
    defaults = get_knowledge_tables()
    tables = KnowledgeTables(
        conditions={
            "sepsis": MedicalCondition(
                name="Sepsis",
                symptoms=("fever",),
                causes=("infection",),
                treatments=("hospital care",),
                precautions=("seek care now",),
                emergency=True,
            ),
        },
        vocabulary=defaults.vocabulary,
    )

    assert ResponseSynthesizer(tables).is_emergency("disease_info", ["sepsis"])
