from typing import Mapping, Optional

from health_assistant.core.models import MedicalCondition


def canonical_id(term: str) -> str:
    # "Chest Pain" -> "chest_pain"
    return "_".join(term.strip().lower().split())


class KnowledgeBase:
    """Read-only lookup of medical conditions by canonical id."""

    def __init__(self, conditions: Mapping[str, MedicalCondition]):
        self._conditions = conditions

    def get(self, term: str) -> Optional[MedicalCondition]:
        return self._conditions.get(canonical_id(term))

    def find_first(self, entities: list[str]) -> Optional[MedicalCondition]:
        # First entity with a known condition wins
        for entity in entities:
            condition = self.get(entity)
            if condition is not None:
                return condition
        return None

    def keys(self) -> list[str]:
        return list(self._conditions.keys())

    def __contains__(self, term: str) -> bool:
        return canonical_id(term) in self._conditions

    def __len__(self):
        return len(self._conditions)
