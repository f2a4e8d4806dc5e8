import logging
import re
from typing import Optional

from health_assistant.core.models import EntityExtraction, IntentResult
from health_assistant.knowledge.loader import Vocabulary, get_knowledge_tables

logger = logging.getLogger(__name__)

DEFAULT_INTENT = "general_health"
CONFIDENCE_FLOOR = 0.1
ENTITY_BOOST = 0.1


class IntentExtractor:
    """Keyword/pattern matcher for intent labels and medical terms.

    Matching is plain substring containment on the lower-cased text, so
    "chest pain" also yields "pain" and "chest", and "headache" yields
    "ache" and "head".
    """

    def __init__(self, vocabulary: Optional[Vocabulary] = None):
        self.vocabulary = vocabulary or get_knowledge_tables().vocabulary

    def detect_intent(self, text: str) -> IntentResult:
        lower_text = text.lower()
        best_intent = DEFAULT_INTENT
        best_confidence = CONFIDENCE_FLOOR

        for intent, patterns in self.vocabulary.intent_patterns.items():
            for pattern in patterns:
                if pattern in lower_text:
                    confidence = len(pattern) / len(text)
                    if confidence > best_confidence:
                        best_intent = intent
                        best_confidence = confidence

        extraction = self.extract_entities(text)
        entities = extraction.entities

        result = IntentResult(
            intent=best_intent,
            confidence=min(best_confidence + len(entities) * ENTITY_BOOST, 1.0),
            entities=list(entities),
        )
        logger.debug(f"Intent {result.intent} ({result.confidence:.2f}), entities: {result.entities}")
        return result

    def extract_entities(self, text: str) -> EntityExtraction:
        lower_text = text.lower()
        found = {}

        for category, keywords in self.vocabulary.entity_keywords.items():
            found[category] = [keyword for keyword in keywords if keyword in lower_text]

        flattened = []
        for category in ("symptoms", "diseases", "medications", "body_parts"):
            for keyword in found.get(category, []):
                if keyword not in flattened:
                    flattened.append(keyword)

        return EntityExtraction(
            symptoms=found.get("symptoms", []),
            diseases=found.get("diseases", []),
            medications=found.get("medications", []),
            body_parts=found.get("body_parts", []),
            entities=flattened,
        )


def preprocess_text(text: str) -> str:
    text = re.sub(r"[^\w\s]", " ", text.lower())
    return re.sub(r"\s+", " ", text).strip()
