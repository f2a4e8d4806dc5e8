import logging
from typing import Optional

from health_assistant.agents.graph import create_graph, run_pipeline
from health_assistant.agents.responder import LLMResponder
from health_assistant.agents.state import PipelineServices, create_initial_state
from health_assistant.agents.synthesizer import ResponseSynthesizer
from health_assistant.core.models import UserContext
from health_assistant.knowledge.loader import KnowledgeTables, get_knowledge_tables
from health_assistant.nlp.extractor import IntentExtractor
from health_assistant.nlp.language import TranslationProvider, normalize_language

logger = logging.getLogger(__name__)


class ChatPipeline:
    """Processes chat messages end to end.

    Wraps the compiled LangGraph workflow: language detection, translation,
    intent/entity extraction, LLM or knowledge base generation, response
    translation and persistence.
    """

    def __init__(
        self,
        chat_store,
        responder: Optional[LLMResponder] = None,
        translator: Optional[TranslationProvider] = None,
        tables: Optional[KnowledgeTables] = None,
    ):
        tables = tables or get_knowledge_tables()
        self.services = PipelineServices(
            extractor=IntentExtractor(tables.vocabulary),
            synthesizer=ResponseSynthesizer(tables),
            chat_store=chat_store,
            responder=responder,
            translator=translator,
        )
        self.graph = create_graph()

        mode = "LLM" if responder is not None else "knowledge base"
        logger.info(f"ChatPipeline initialized ({mode} mode)")

    @property
    def llm_enabled(self) -> bool:
        return self.services.responder is not None

    async def process_message(self, user_id: str, message: str, user: UserContext) -> dict:
        """Run one chat message through the pipeline.

        Args:
            user_id: Owner of the chat transcript
            message: Raw user message in any supported language
            user: Known conditions and preferred language

        Returns:
            Response payload for the HTTP layer
        """
        logger.info(f"Processing: {message[:50]}...")

        initial_state = create_initial_state(
            user_id=user_id,
            message=message,
            user_conditions=user.conditions,
            preferred_language=normalize_language(user.preferred_language),
            use_llm=self.llm_enabled,
        )
        result = await run_pipeline(initial_state, self.services, graph=self.graph)

        return build_payload(result)


def build_payload(result: dict) -> dict:
    generated = result["generated"]
    payload = {
        "response": result.get("final_response", generated.response),
        "suggestions": result.get("final_suggestions", list(generated.suggestions)),
        "emergency": generated.emergency,
        "intent": result["intent_result"].intent,
        "confidence": generated.confidence,
        "entities": result["extraction"].to_dict(),
        "detectedLanguage": result.get("detected_language", "en"),
        "llmUsed": result.get("llm_used", False),
    }
    if result.get("final_follow_up"):
        payload["followUp"] = result["final_follow_up"]
    return payload
