import json

import pytest

from health_assistant.knowledge.base import KnowledgeBase, canonical_id
from health_assistant.knowledge.loader import INTENT_LABELS, KnowledgeLoader, get_knowledge_tables


def _write_tables(path, vocabulary):
    (path / "conditions.json").write_text(json.dumps({
        "Sore Throat": {
            "name": "Sore Throat",
            "symptoms": ["scratchy throat"],
            "causes": ["virus"],
            "treatments": ["warm fluids"],
            "precautions": ["rest voice"],
        },
    }), encoding="utf-8")
    (path / "vocabulary.json").write_text(json.dumps(vocabulary), encoding="utf-8")


def _vocabulary(**overrides):
    vocabulary = {
        "intent_patterns": {"emergency": ["urgent"]},
        "entity_keywords": {
            "symptoms": ["sore throat"],
            "diseases": [],
            "medications": [],
            "body_parts": ["throat"],
        },
        "emergency_triggers": ["Stroke"],
    }
    vocabulary.update(overrides)
    return vocabulary


def test_default_tables_are_loaded_once():
    tables = get_knowledge_tables()

    assert tables is get_knowledge_tables()
    assert set(tables.conditions) == {"fever", "headache", "cough", "chest_pain", "diabetes", "hypertension"}
    assert tuple(tables.vocabulary.intent_patterns) == INTENT_LABELS
    assert "chest pain" in tables.vocabulary.emergency_triggers


def test_tables_are_read_only():
    tables = get_knowledge_tables()

    with pytest.raises(TypeError):
        tables.conditions["flu"] = tables.conditions["fever"]


def test_loader_normalizes_keys(tmp_path):
    _write_tables(tmp_path, _vocabulary())

    tables = KnowledgeLoader(str(tmp_path)).load()

    assert "sore throat" in tables.conditions
    assert tables.conditions["sore throat"].emergency is False
    assert tables.vocabulary.emergency_triggers == frozenset({"stroke"})
    assert tables.vocabulary.intent_patterns["general_health"] == ()


def test_loader_rejects_unknown_intent(tmp_path):
    _write_tables(tmp_path, _vocabulary(intent_patterns={"smalltalk": ["hi"]}))

    with pytest.raises(ValueError, match="smalltalk"):
        KnowledgeLoader(str(tmp_path)).load_vocabulary()


def test_loader_rejects_missing_category(tmp_path):
    _write_tables(tmp_path, _vocabulary(entity_keywords={"symptoms": ["cough"]}))

    with pytest.raises(ValueError, match="body_parts"):
        KnowledgeLoader(str(tmp_path)).load_vocabulary()


def test_canonical_id():
    assert canonical_id("Chest Pain") == "chest_pain"
    assert canonical_id("  fever ") == "fever"


def test_knowledge_base_lookup():
    kb = KnowledgeBase(get_knowledge_tables().conditions)

    assert kb.get("chest pain").name == "Chest Pain"
    assert kb.get("Hypertension").name == "High Blood Pressure"
    assert kb.get("migraine") is None
    assert "diabetes" in kb
    assert len(kb) == 6


def test_knowledge_base_find_first_uses_entity_order():
    kb = KnowledgeBase(get_knowledge_tables().conditions)

    assert kb.find_first(["pain", "cough", "fever"]).name == "Cough"
    assert kb.find_first(["pain", "arm"]) is None
    assert kb.find_first([]) is None
