import asyncio
import json
import logging
import math
import re
from typing import Optional

from health_assistant.config import HISTORY_WINDOW, LLM_TIMEOUT_SECONDS
from health_assistant.core.models import GeneratedResponse
from health_assistant.nlp.language import get_language_name, normalize_language

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a helpful healthcare assistant AI. Your role is to provide general health information and guidance while emphasizing the importance of professional medical consultation.

Guidelines:
- Provide accurate, evidence-based health information
- Always recommend consulting healthcare professionals for serious concerns
- Be empathetic and supportive
- Avoid providing specific medical diagnoses
- Suggest preventive measures and general wellness advice
- If symptoms suggest an emergency, clearly state this
- Consider user diseases when providing advice"""

RESPONSE_FORMAT = """IMPORTANT: You must respond ONLY with valid JSON in the following exact format. Do not include any additional text, explanations, or markdown formatting:

{
  "response": "Your main response to the user",
  "suggestions": ["suggestion1", "suggestion2", "suggestion3"],
  "emergency": false,
  "followUp": "Optional follow-up question",
  "confidence": 0.8
}"""

LANGUAGE_INSTRUCTIONS = {
    "en": "Respond in English.",
    "hi": "Respond in Hindi (हिंदी में जवाब दें).",
    "te": "Respond in Telugu (తెలుగులో జవాబు ఇవ్వండి).",
    "ta": "Respond in Tamil (தமிழில் பதிலளிக்கவும்).",
    "kn": "Respond in Kannada (ಕನ್ನಡದಲ್ಲಿ ಉತ್ತರಿಸಿ).",
    "ml": "Respond in Malayalam (മലയാളത്തിൽ മറുപടി നൽകുക).",
}

FALLBACK_RESPONSES = {
    "en": (
        "I apologize, but I'm having trouble processing your request right now. Please try again or consult with a healthcare professional for immediate assistance.",
        ["Try rephrasing your question", "Consult a healthcare professional", "Check your internet connection"],
    ),
    "hi": (
        "मुझे खेद है, लेकिन मैं अभी आपके अनुरोध को संसाधित करने में परेशानी हो रही हूं। कृपया पुनः प्रयास करें या तत्काल सहायता के लिए स्वास्थ्य देखभाल पेशेवर से परामर्श करें।",
        ["अपना प्रश्न फिर से लिखें", "स्वास्थ्य देखभाल पेशेवर से परामर्श करें", "अपना इंटरनेट कनेक्शन जांचें"],
    ),
    "te": (
        "క్షమించండి, కానీ నేను ప్రస్తుతం మీ అభ్యర్థనను ప్రాసెస్ చేయడంలో సమస్యను ఎదుర్కొంటున్నాను. దయచేసి మళ్లీ ప్రయత్నించండి లేదా తక్షణ సహాయం కోసం ఆరోగ్య సంరక్షణ నిపుణుడిని సంప్రదించండి.",
        ["మీ ప్రశ్నను మళ్లీ రాయండి", "ఆరోగ్య సంరక్షణ నిపుణుడిని సంప్రదించండి", "మీ ఇంటర్నెట్ కనెక్షన్‌ను తనిఖీ చేయండి"],
    ),
    "ta": (
        "மன்னிக்கவும், தற்போது உங்கள் கோரிக்கையை செயலாக்குவதில் சிக்கல் ஏற்படுகிறது. தயவுசெய்து மீண்டும் முயற்சிக்கவும் அல்லது உடனடி உதவிக்காக ஒரு சுகாதார நிபுணரிடம் ஆலோசிக்கவும்.",
        ["உங்கள் கேள்வியை மறுபடியும் எழுதுங்கள்", "மருத்துவரிடம் ஆலோசிக்கவும்", "இணைய இணைப்பை சரிபார்க்கவும்"],
    ),
    "kn": (
        "ಕ್ಷಮಿಸಿ, ನಾನು ಪ್ರಸ್ತುತ ನಿಮ್ಮ ವಿನಂತಿಯನ್ನು ಪ್ರಕ್ರಿಯೆಗೊಳಿಸಲು ತೊಂದರೆಯನ್ನು ಎದುರಿಸುತ್ತಿದ್ದೇನೆ. ದಯವಿಟ್ಟು ಮತ್ತೆ ಪ್ರಯತ್ನಿಸಿ ಅಥವಾ ತುರ್ತು ಸಹಾಯಕ್ಕಾಗಿ ಆರೋಗ್ಯ ತಜ್ಞರನ್ನು ಸಂಪರ್ಕಿಸಿ.",
        ["ನಿಮ್ಮ ಪ್ರಶ್ನೆಯನ್ನು ಮರುಬರೆಯಿರಿ", "ಆರೋಗ್ಯ ತಜ್ಞರನ್ನು ಸಂಪರ್ಕಿಸಿ", "ನಿಮ್ಮ ಇಂಟರ್ನೆಟ್ ಸಂಪರ್ಕವನ್ನು ಪರಿಶೀಲಿಸಿ"],
    ),
    "ml": (
        "ക്ഷമിക്കണം, നിങ്ങളുടെ അഭ്യർത്ഥന ഇപ്പോൾ പ്രോസസ്സ് ചെയ്യുന്നതിൽ ബുദ്ധിമുട്ട് നേരിടുന്നു. ദയവായി വീണ്ടും ശ്രമിക്കുക അല്ലെങ്കിൽ അടിയന്തര സഹായത്തിനായി ഒരു ഹെൽത്ത് കെയർ പ്രൊഫഷണലുമായി ബന്ധപ്പെടുക.",
        ["നിങ്ങളുടെ ചോദ്യം പുനഃരചിക്കുക", "ഹെൽത്ത് കെയർ പ്രൊഫഷണലുമായി ബന്ധപ്പെടുക", "നിങ്ങളുടെ ഇന്റർനെറ്റ് കണക്ഷൻ പരിശോധിക്കുക"],
    ),
}

PARSED_DEFAULT_CONFIDENCE = 0.8
RAW_TEXT_CONFIDENCE = 0.7
FALLBACK_CONFIDENCE = 0.1

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")


class LLMResponder:
    """Generates structured replies through a chat-capable LLM client.

    Any failure inside (client error, timeout) degrades to the localized
    fallback payload instead of raising.
    """

    def __init__(self, client, timeout: float = LLM_TIMEOUT_SECONDS, history_window: int = HISTORY_WINDOW):
        self.client = client
        self.timeout = timeout
        self.history_window = history_window

    async def generate_response(
        self,
        user_message: str,
        intent: str,
        entities: list[str],
        user_conditions: list[str],
        language: str,
        chat_history: Optional[list[dict]] = None,
    ) -> GeneratedResponse:
        language = normalize_language(language)
        system_prompt = build_system_prompt(user_conditions, language)
        user_prompt = build_user_prompt(user_message, intent, entities, language)
        history = self.build_history(chat_history or [])

        try:
            content = await asyncio.wait_for(
                self.client.generate_chat(
                    prompt=user_prompt,
                    history=history,
                    system_instruction=system_prompt,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"LLM call timed out after {self.timeout}s")
            return get_fallback_response(language)
        except Exception as e:
            logger.error(f"LLM service error: {e}")
            return get_fallback_response(language)

        return parse_llm_response(content)

    def build_history(self, chat_history: list[dict]) -> list[dict]:
        if self.history_window <= 0:
            return []
        return [
            {
                "role": "model" if turn.get("role") == "assistant" else "user",
                "text": turn.get("content", ""),
            }
            for turn in chat_history[-self.history_window:]
        ]


def build_system_prompt(user_conditions: list[str], language: str) -> str:
    condition_context = ""
    if user_conditions:
        condition_context = (
            f"\nIMPORTANT: The user has diseases: {', '.join(user_conditions)}. "
            "Always consider this when providing medical advice."
        )

    language_instruction = LANGUAGE_INSTRUCTIONS.get(language, LANGUAGE_INSTRUCTIONS["en"])

    return f"{SYSTEM_PROMPT}{condition_context}\n\n{language_instruction}\n\n{RESPONSE_FORMAT}"


def build_user_prompt(user_message: str, intent: str, entities: list[str], language: str) -> str:
    return (
        f'User message: "{user_message}"\n'
        f"Detected intent: {intent}\n"
        f"Extracted entities: {', '.join(entities)}\n"
        f"User prefers {get_language_name(language)}.\n\n"
        "Please provide a helpful response considering the user's query, "
        "detected intent, and extracted medical entities."
    )


def strip_code_fences(content: str) -> str:
    text = content.strip()
    if text.startswith("```"):
        text = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", text, count=1))
    return text


def find_json_object(text: str) -> Optional[str]:
    """Return the first balanced {...} span, ignoring braces inside strings."""
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        char = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:idx + 1]
    return None


def parse_flag(value) -> bool:
    # Only JSON true or the string "true" count; "false", "no", 1 do not
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


def parse_llm_response(content: str) -> GeneratedResponse:
    cleaned = strip_code_fences(content or "")
    candidate = find_json_object(cleaned) or cleaned

    try:
        parsed = json.loads(candidate)
        if not isinstance(parsed, dict):
            raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    except ValueError as e:
        # json.JSONDecodeError is a ValueError
        logger.warning(f"JSON parsing failed: {e}")
        logger.debug(f"Content was: {content}")
        return GeneratedResponse(
            response=content,
            suggestions=[],
            emergency=False,
            confidence=RAW_TEXT_CONFIDENCE,
        )

    suggestions = parsed.get("suggestions")
    if not isinstance(suggestions, list):
        suggestions = []

    confidence = parsed.get("confidence")
    if (
        isinstance(confidence, bool)
        or not isinstance(confidence, (int, float))
        or not math.isfinite(confidence)
    ):
        # json.loads accepts NaN and Infinity
        confidence = PARSED_DEFAULT_CONFIDENCE

    response = parsed.get("response")
    if not isinstance(response, str) or not response:
        response = content

    follow_up = parsed.get("followUp")

    return GeneratedResponse(
        response=response,
        suggestions=[str(s) for s in suggestions],
        emergency=parse_flag(parsed.get("emergency")),
        follow_up=follow_up if isinstance(follow_up, str) and follow_up else None,
        confidence=confidence,
    )


def get_fallback_response(language: str) -> GeneratedResponse:
    response, suggestions = FALLBACK_RESPONSES[normalize_language(language)]
    return GeneratedResponse(
        response=response,
        suggestions=list(suggestions),
        emergency=False,
        confidence=FALLBACK_CONFIDENCE,
    )
