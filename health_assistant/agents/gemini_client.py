import logging
from typing import Optional

from google import genai
from google.genai import types

from health_assistant.config import GEMINI_API_KEY, GEMINI_MODEL, DEFAULT_TEMPERATURE, DEFAULT_MAX_TOKENS

logger = logging.getLogger(__name__)


class GeminiClient:
    def __init__(self, api_key: str = None, model: str = GEMINI_MODEL):
        api_key = api_key or GEMINI_API_KEY
        if not api_key:
            raise ValueError("GEMINI_API_KEY not set")
        self.client = genai.Client(api_key=api_key)
        self.model = model

    async def generate_chat(
        self,
        prompt: str,
        history: Optional[list[dict]] = None,
        system_instruction: str = None,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> str:
        """Send one chat turn after the given history.

        History entries are {"role": "user" | "model", "text": str}.
        """
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=temperature,
            max_output_tokens=max_tokens,
        )

        contents = [
            types.Content(role=turn["role"], parts=[types.Part(text=turn["text"])])
            for turn in history or []
        ]
        contents.append(types.Content(role="user", parts=[types.Part(text=prompt)]))

        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=contents,
            config=config,
        )

        return response.text or ""


# Shared client for the default wiring
_gemini_client: Optional[GeminiClient] = None


def get_gemini_client() -> GeminiClient:
    global _gemini_client

    if _gemini_client is None:
        _gemini_client = GeminiClient()
        logger.info(f"Gemini client initialized for model {_gemini_client.model}")

    return _gemini_client
