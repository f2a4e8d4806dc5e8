import json
import logging
import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from health_assistant.config import KNOWLEDGE_DIR
from health_assistant.core.models import MedicalCondition

logger = logging.getLogger(__name__)

INTENT_LABELS = ("symptom_inquiry", "disease_info", "medication_query", "emergency", "general_health")
ENTITY_CATEGORIES = ("symptoms", "diseases", "medications", "body_parts")


@dataclass(frozen=True)
class Vocabulary:
    intent_patterns: Mapping[str, tuple[str, ...]]
    entity_keywords: Mapping[str, tuple[str, ...]]
    emergency_triggers: frozenset


@dataclass(frozen=True)
class KnowledgeTables:
    conditions: Mapping[str, MedicalCondition]
    vocabulary: Vocabulary


class KnowledgeLoader:
    def __init__(self, base_path: str = KNOWLEDGE_DIR):
        self.base_path = base_path

    def load(self) -> KnowledgeTables:
        tables = KnowledgeTables(
            conditions=self.load_conditions(),
            vocabulary=self.load_vocabulary(),
        )
        logger.info(
            f"Loaded {len(tables.conditions)} conditions and "
            f"{len(tables.vocabulary.intent_patterns)} intents from {self.base_path}"
        )
        return tables

    def load_conditions(self) -> Mapping[str, MedicalCondition]:
        raw = self._read_json("conditions.json")
        conditions = {}
        for key, entry in raw.items():
            conditions[key.strip().lower()] = MedicalCondition(
                name=entry["name"],
                symptoms=tuple(entry.get("symptoms", [])),
                causes=tuple(entry.get("causes", [])),
                treatments=tuple(entry.get("treatments", [])),
                precautions=tuple(entry.get("precautions", [])),
                emergency=bool(entry.get("emergency", False)),
            )
        return MappingProxyType(conditions)

    def load_vocabulary(self) -> Vocabulary:
        raw = self._read_json("vocabulary.json")

        patterns = raw.get("intent_patterns", {})
        unknown = set(patterns) - set(INTENT_LABELS)
        if unknown:
            raise ValueError(f"Unknown intent labels in vocabulary: {sorted(unknown)}")

        keywords = raw.get("entity_keywords", {})
        missing = set(ENTITY_CATEGORIES) - set(keywords)
        if missing:
            raise ValueError(f"Missing entity categories in vocabulary: {sorted(missing)}")

        # Intent order drives tie-breaking, so keep the fixed label order
        return Vocabulary(
            intent_patterns=MappingProxyType({
                label: tuple(p.lower() for p in patterns.get(label, []))
                for label in INTENT_LABELS
            }),
            entity_keywords=MappingProxyType({
                category: tuple(k.lower() for k in keywords[category])
                for category in ENTITY_CATEGORIES
            }),
            emergency_triggers=frozenset(t.lower() for t in raw.get("emergency_triggers", [])),
        )

    def _read_json(self, filename: str) -> dict:
        file_path = os.path.join(self.base_path, filename)
        with open(file_path, "r", encoding="utf-8") as f:
            return json.load(f)


# Loaded once per process
_default_tables: Optional[KnowledgeTables] = None


def get_knowledge_tables(base_path: str = None) -> KnowledgeTables:
    global _default_tables

    if base_path is not None:
        return KnowledgeLoader(base_path).load()

    if _default_tables is None:
        _default_tables = KnowledgeLoader().load()

    return _default_tables
