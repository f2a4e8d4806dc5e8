import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


@dataclass(frozen=True)
class MedicalCondition:
    name: str
    symptoms: tuple[str, ...]
    causes: tuple[str, ...]
    treatments: tuple[str, ...]
    precautions: tuple[str, ...]
    emergency: bool = False


@dataclass
class IntentResult:
    intent: str
    confidence: float
    entities: list[str] = field(default_factory=list)


@dataclass
class EntityExtraction:
    symptoms: list[str] = field(default_factory=list)
    diseases: list[str] = field(default_factory=list)
    medications: list[str] = field(default_factory=list)
    body_parts: list[str] = field(default_factory=list)
    entities: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "symptoms": list(self.symptoms),
            "diseases": list(self.diseases),
            "medications": list(self.medications),
            "bodyParts": list(self.body_parts),
            "entities": list(self.entities),
        }


@dataclass
class GeneratedResponse:
    """Shared output shape of the knowledge-base and LLM paths."""

    response: str
    suggestions: list[str] = field(default_factory=list)
    emergency: bool = False
    follow_up: Optional[str] = None
    confidence: float = 0.8

    def __post_init__(self):
        if self.suggestions is None:
            self.suggestions = []
        confidence = float(self.confidence)
        if not math.isfinite(confidence):
            raise ValueError(f"Confidence must be a finite number, got {self.confidence!r}")
        self.confidence = min(max(confidence, 0.0), 1.0)

    def to_dict(self) -> dict:
        data = {
            "response": self.response,
            "suggestions": list(self.suggestions),
            "emergency": self.emergency,
            "confidence": self.confidence,
        }
        if self.follow_up:
            data["followUp"] = self.follow_up
        return data


@dataclass
class ChatTurn:
    role: str
    content: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    language: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "language": self.language,
        }


@dataclass
class UserContext:
    conditions: list[str] = field(default_factory=list)
    preferred_language: str = "en"
