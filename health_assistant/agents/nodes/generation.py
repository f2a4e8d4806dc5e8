import logging
from dataclasses import replace

from langchain_core.runnables import RunnableConfig

from health_assistant.agents.responder import get_fallback_response
from health_assistant.agents.state import PipelineState, get_services
from health_assistant.agents.synthesizer import template_language

logger = logging.getLogger(__name__)


async def llm_node(state: PipelineState, config: RunnableConfig) -> dict:
    services = get_services(config)
    language = state.get("preferred_language", "en")
    intent_result = state["intent_result"]
    extraction = state["extraction"]

    generated = await services.responder.generate_response(
        user_message=state.get("message", ""),
        intent=intent_result.intent,
        entities=extraction.entities,
        user_conditions=state.get("user_conditions", []),
        language=language,
        chat_history=state.get("history", []),
    )

    # The fallback payload is already localized
    source = language if generated == get_fallback_response(language) else "en"

    if generated.emergency and not services.synthesizer.is_emergency(intent_result.intent, extraction.entities):
        logger.warning("Dropping emergency flag from LLM response: no emergency intent or trigger")
        generated = replace(generated, emergency=False)

    logger.info(f"LLM response generated (confidence {generated.confidence:.2f})")

    return {
        "generated": generated,
        "llm_used": True,
        "response_language": source,
        "suggestions_language": source,
    }


def knowledge_base_node(state: PipelineState, config: RunnableConfig) -> dict:
    services = get_services(config)
    language = state.get("preferred_language", "en")
    intent_result = state["intent_result"]
    extraction = state["extraction"]

    generated = services.synthesizer.get_medical_response(
        intent=intent_result.intent,
        entities=extraction.entities,
        user_conditions=state.get("user_conditions", []),
        language=language,
    )
    logger.info(f"Knowledge base response generated (emergency={generated.emergency})")

    return {
        "generated": generated,
        "llm_used": False,
        "response_language": template_language(language),
        "suggestions_language": "en",
    }
