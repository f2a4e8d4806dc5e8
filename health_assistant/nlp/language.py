import logging
import re
from typing import Optional, Protocol

import httpx

from health_assistant.config import (
    DEFAULT_LANGUAGE,
    SUPPORTED_LANGUAGES,
    TRANSLATE_ENDPOINT,
    TRANSLATE_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {
    "en": "English",
    "hi": "Hindi",
    "te": "Telugu",
    "ta": "Tamil",
    "kn": "Kannada",
    "ml": "Malayalam",
}

# Checked in order; first matching script wins
SCRIPT_PATTERNS = [
    ("hi", re.compile(r"[\u0900-\u097F]")),
    ("ta", re.compile(r"[\u0B80-\u0BFF]")),
    ("te", re.compile(r"[\u0C00-\u0C7F]")),
    ("kn", re.compile(r"[\u0C80-\u0CFF]")),
    ("ml", re.compile(r"[\u0D00-\u0D7F]")),
]


class TranslationProvider(Protocol):
    async def translate(self, text: str, source: str, target: str) -> str:
        ...


def create_translate_client(timeout: float = TRANSLATE_TIMEOUT_SECONDS) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=httpx.Timeout(timeout, connect=5.0))


class GoogleTranslateProvider:
    """Client for the public Google translate endpoint.

    Pass a long-lived client to reuse connections across calls; without one
    each call opens and closes its own.
    """

    def __init__(
        self,
        endpoint: str = TRANSLATE_ENDPOINT,
        timeout: float = TRANSLATE_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self._client = client

    async def translate(self, text: str, source: str, target: str) -> str:
        params = {"client": "gtx", "sl": source, "tl": target, "dt": "t", "q": text}

        if self._client is not None:
            response = await self._client.get(self.endpoint, params=params)
        else:
            async with create_translate_client(self.timeout) as client:
                response = await client.get(self.endpoint, params=params)

        response.raise_for_status()
        return _join_segments(response.json())

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def _join_segments(payload) -> str:
    # Payload shape: [[["translated", "source", ...], ...], ...]
    if not isinstance(payload, list) or not payload or not isinstance(payload[0], list):
        raise ValueError("Unexpected translation payload")
    return "".join(
        segment[0] for segment in payload[0]
        if isinstance(segment, list) and segment and isinstance(segment[0], str)
    )


def normalize_language(code: Optional[str]) -> str:
    if code and code.strip().lower() in SUPPORTED_LANGUAGES:
        return code.strip().lower()
    return DEFAULT_LANGUAGE


def get_language_name(code: str) -> str:
    return LANGUAGE_NAMES[normalize_language(code)]


def detect_language(text: str) -> str:
    for code, pattern in SCRIPT_PATTERNS:
        if pattern.search(text):
            return code
    return DEFAULT_LANGUAGE


async def translate_text(
    text: str,
    target_language: str,
    source_language: str = DEFAULT_LANGUAGE,
    provider: Optional[TranslationProvider] = None,
) -> str:
    """Translate text, returning it unchanged on any failure."""
    if not text or not text.strip() or source_language == target_language:
        return text

    if provider is None:
        provider = GoogleTranslateProvider()

    try:
        translated = await provider.translate(text, source_language, target_language)
    except Exception as e:
        logger.error(f"Translation error ({source_language}->{target_language}): {e}")
        return text

    return translated or text
