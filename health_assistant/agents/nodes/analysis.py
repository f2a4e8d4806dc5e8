import logging

from langchain_core.runnables import RunnableConfig

from health_assistant.agents.state import PipelineState, get_services
from health_assistant.config import CHAT_CONTEXT_LIMIT
from health_assistant.nlp.language import detect_language, translate_text

logger = logging.getLogger(__name__)


def detect_language_node(state: PipelineState) -> dict:
    message = state.get("message", "")
    detected = detect_language(message)
    logger.info(f"Detected language: {detected}")
    return {"detected_language": detected}


async def analyze_node(state: PipelineState, config: RunnableConfig) -> dict:
    services = get_services(config)
    message = state.get("message", "")
    detected = state.get("detected_language", "en")
    user_id = state.get("user_id")

    # Intent matching runs on English text
    translated = await translate_text(message, "en", detected, provider=services.translator)

    intent_result = services.extractor.detect_intent(translated)
    extraction = services.extractor.extract_entities(translated)

    history = [
        {"role": turn.role, "content": turn.content}
        for turn in services.chat_store.get_recent(user_id, CHAT_CONTEXT_LIMIT)
    ]

    logger.info(
        f"Intent: {intent_result.intent} ({intent_result.confidence:.2f}), "
        f"{len(extraction.entities)} entities, {len(history)} history turns"
    )

    return {
        "translated_message": translated,
        "intent_result": intent_result,
        "extraction": extraction,
        "history": history,
    }
