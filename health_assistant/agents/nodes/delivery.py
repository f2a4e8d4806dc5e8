import asyncio
import logging

from langchain_core.runnables import RunnableConfig

from health_assistant.agents.state import PipelineState, get_services
from health_assistant.core.models import ChatTurn
from health_assistant.nlp.language import translate_text

logger = logging.getLogger(__name__)


async def localize_node(state: PipelineState, config: RunnableConfig) -> dict:
    """Translate the generated reply into the user's preferred language.

    Skipped when the LLM answered an English-preferring user. LLM replies
    are otherwise re-translated from English even though the model was asked
    to answer in the target language, so this is best-effort only.
    """
    services = get_services(config)
    generated = state["generated"]
    language = state.get("preferred_language", "en")
    provider = services.translator

    response = generated.response
    suggestions = list(generated.suggestions)

    if not state.get("llm_used") or language != "en":
        response = await translate_text(
            generated.response, language, state.get("response_language", "en"), provider=provider
        )
        suggestion_source = state.get("suggestions_language", "en")
        suggestions = list(await asyncio.gather(*[
            translate_text(suggestion, language, suggestion_source, provider=provider)
            for suggestion in generated.suggestions
        ]))

    follow_up = None
    if generated.follow_up:
        follow_up = await translate_text(generated.follow_up, language, "en", provider=provider)

    return {
        "final_response": response,
        "final_suggestions": suggestions,
        "final_follow_up": follow_up,
    }


async def persist_node(state: PipelineState, config: RunnableConfig) -> dict:
    services = get_services(config)
    user_id = state["user_id"]

    services.chat_store.append_many(user_id, [
        ChatTurn(
            role="user",
            content=state.get("message", ""),
            language=state.get("detected_language"),
        ),
        ChatTurn(
            role="assistant",
            content=state.get("final_response", ""),
            language=state.get("preferred_language"),
        ),
    ])

    logger.info(f"Saved chat turns for user {user_id}")
    return {}
