import os
from dotenv import load_dotenv

load_dotenv()

# Paths
BASE_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(BASE_DIR)
KNOWLEDGE_DIR = os.getenv("KNOWLEDGE_DIR", os.path.join(BASE_DIR, "knowledge", "data"))
DATABASE_PATH = os.getenv("DATABASE_PATH", os.path.join(PROJECT_ROOT, "health_assistant.db"))

# Gemini API settings
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash-lite")
USE_LLM = os.getenv("USE_LLM", "true").lower() in ("1", "true", "yes")

# LLM generation settings
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1000
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))

# Translation
TRANSLATE_ENDPOINT = os.getenv(
    "TRANSLATE_ENDPOINT", "https://translate.googleapis.com/translate_a/single"
)
TRANSLATE_TIMEOUT_SECONDS = float(os.getenv("TRANSLATE_TIMEOUT_SECONDS", "10"))

# Languages
DEFAULT_LANGUAGE = "en"
SUPPORTED_LANGUAGES = ("en", "hi", "te", "ta", "kn", "ml")

# Conversation context
CHAT_CONTEXT_LIMIT = 10    # turns read from the transcript
HISTORY_WINDOW = 6         # turns forwarded to the model

# Auth
TOKEN_TTL_HOURS = int(os.getenv("TOKEN_TTL_HOURS", "168"))
PASSWORD_HASH_ITERATIONS = 200_000

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.path.join(BASE_DIR, "logs")
LOG_FILE = os.path.join(LOG_DIR, "app.log")
