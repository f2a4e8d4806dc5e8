import pytest

from health_assistant.knowledge.loader import INTENT_LABELS
from health_assistant.nlp.extractor import IntentExtractor, preprocess_text


@pytest.fixture
def extractor():
    return IntentExtractor()


def test_extract_entities_chest_pain_and_headache(extractor):
    result = extractor.extract_entities("I have chest pain and a headache")

    assert "chest pain" in result.symptoms
    assert "headache" in result.symptoms
    # Substring matching also picks up the shorter keywords
    assert "pain" in result.symptoms
    assert result.body_parts == ["head", "chest"]
    assert result.diseases == []
    assert result.medications == []


def test_extract_entities_flattened_without_duplicates(extractor):
    result = extractor.extract_entities("Fever and cough, should I take an antibiotic?")

    assert result.entities == ["fever", "cough", "antibiotic"]
    assert len(result.entities) == len(set(result.entities))


def test_extract_entities_no_body_parts_without_keyword(extractor):
    result = extractor.extract_entities("I have a fever")

    assert result.symptoms == ["fever"]
    assert result.body_parts == []


def test_detect_intent_symptom_inquiry(extractor):
    result = extractor.detect_intent("What are the symptoms of diabetes?")

    assert result.intent == "symptom_inquiry"
    assert result.entities == ["diabetes"]
    assert result.confidence == pytest.approx(24 / 34 + 0.1)


def test_detect_intent_emergency(extractor):
    result = extractor.detect_intent("Call an ambulance")

    assert result.intent == "emergency"
    assert result.confidence == pytest.approx(9 / 17)


def test_detect_intent_boosts_confidence_with_entities(extractor):
    result = extractor.detect_intent("I have chest pain and a headache")

    assert result.intent == "general_health"
    assert result.entities == ["headache", "pain", "ache", "chest pain", "head", "chest"]
    assert result.confidence == pytest.approx(0.7)


def test_detect_intent_confidence_capped(extractor):
    text = "fever headache cough nausea vomiting diarrhea fatigue rash"
    result = extractor.detect_intent(text)

    assert result.confidence == 1.0


def test_detect_intent_weak_match_keeps_default(extractor):
    text = "I was in a rush this morning and forgot to eat my breakfast before leaving home"
    result = extractor.detect_intent(text)

    assert result.intent == "general_health"


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_detect_intent_empty_text(extractor, text):
    result = extractor.detect_intent(text)

    assert result.intent == "general_health"
    assert result.confidence == 0.1
    assert result.entities == []


@pytest.mark.parametrize("text", [
    "help",
    "What is a migraine and what medicine for it?",
    "URGENT!!! chest pain",
    "exercise",
    "random words with nothing medical",
])
def test_detect_intent_bounds(extractor, text):
    result = extractor.detect_intent(text)

    assert result.intent in INTENT_LABELS
    assert 0.0 <= result.confidence <= 1.0


def test_preprocess_text():
    assert preprocess_text("  Hello,   World! Fever?? ") == "hello world fever"
