from dataclasses import dataclass
from typing import Any, Optional, TypedDict

from health_assistant.core.models import EntityExtraction, GeneratedResponse, IntentResult


@dataclass
class PipelineServices:
    """Collaborators handed to every node through the run config."""

    extractor: Any
    synthesizer: Any
    chat_store: Any
    responder: Optional[Any] = None
    translator: Optional[Any] = None


class PipelineState(TypedDict, total=False):
    """State that flows through the LangGraph."""

    # Input
    user_id: str
    message: str
    user_conditions: list
    preferred_language: str
    use_llm: bool

    # Analysis
    detected_language: str
    translated_message: str
    intent_result: IntentResult
    extraction: EntityExtraction
    history: list

    # Generation
    generated: GeneratedResponse
    llm_used: bool
    response_language: str
    suggestions_language: str

    # Output
    final_response: str
    final_suggestions: list
    final_follow_up: Optional[str]


def create_initial_state(
    user_id: str,
    message: str,
    user_conditions: list,
    preferred_language: str,
    use_llm: bool,
) -> PipelineState:
    return PipelineState(
        user_id=user_id,
        message=message,
        user_conditions=list(user_conditions),
        preferred_language=preferred_language,
        use_llm=use_llm,
        detected_language="en",
        translated_message=message,
        history=[],
        llm_used=False,
        response_language="en",
        suggestions_language="en",
        final_follow_up=None,
    )


def get_services(config) -> PipelineServices:
    return config["configurable"]["services"]
