import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from health_assistant.agents.gemini_client import get_gemini_client
from health_assistant.agents.pipeline import ChatPipeline
from health_assistant.agents.responder import LLMResponder
from health_assistant.auth.security import TokenService, hash_password, verify_password
from health_assistant.config import (
    DATABASE_PATH,
    DEFAULT_LANGUAGE,
    GEMINI_API_KEY,
    LOG_DIR,
    LOG_FILE,
    LOG_LEVEL,
    SUPPORTED_LANGUAGES,
    USE_LLM,
)
from health_assistant.nlp.language import GoogleTranslateProvider, create_translate_client
from health_assistant.storage.chats import ChatStore
from health_assistant.storage.database import Database
from health_assistant.storage.users import UserExistsError, UserRecord, UserStore

# Configure logging with both console and file output
os.makedirs(LOG_DIR, exist_ok=True)

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(),  # Console output
        logging.FileHandler(LOG_FILE, mode="a", encoding="utf-8"),  # File output
    ],
)
logger = logging.getLogger(__name__)


# Request/response models
class SignupRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    preferredLanguage: str = DEFAULT_LANGUAGE


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None
    conditions: Optional[list[str]] = None
    preferredLanguage: Optional[str] = None


class ChatRequest(BaseModel):
    message: Optional[str] = None


class EntitiesModel(BaseModel):
    symptoms: list[str]
    diseases: list[str]
    medications: list[str]
    bodyParts: list[str]
    entities: list[str]


class ChatResponse(BaseModel):
    response: str
    suggestions: list[str]
    emergency: bool
    followUp: Optional[str] = None
    intent: str
    confidence: float
    entities: EntitiesModel
    detectedLanguage: str
    llmUsed: bool


bearer_scheme = HTTPBearer(auto_error=False)


def _default_responder() -> Optional[LLMResponder]:
    if not USE_LLM or not GEMINI_API_KEY:
        logger.warning("Gemini not configured, using knowledge base responses")
        return None
    return LLMResponder(get_gemini_client())


def create_app(
    database_path: str = DATABASE_PATH,
    responder: Optional[LLMResponder] = None,
    translator=None,
    use_default_llm: bool = True,
) -> FastAPI:
    """Build the API application.

    Args:
        database_path: SQLite file, or ":memory:"
        responder: LLM responder; built from config when omitted and use_default_llm is set
        translator: Translation provider; the Google endpoint client when omitted
        use_default_llm: Whether to fall back to the configured Gemini responder
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Health Assistant API...")

        db = Database(database_path).open()
        chat_store = ChatStore(db)
        active_translator = translator or GoogleTranslateProvider(client=create_translate_client())
        active_responder = responder
        if active_responder is None and use_default_llm:
            active_responder = _default_responder()

        app.state.db = db
        app.state.translator = active_translator
        app.state.users = UserStore(db)
        app.state.chats = chat_store
        app.state.tokens = TokenService(db)
        app.state.pipeline = ChatPipeline(
            chat_store=chat_store,
            responder=active_responder,
            translator=active_translator,
        )

        yield

        logger.info("Shutting down Health Assistant API...")
        if translator is None:
            await active_translator.aclose()
        db.close()

    app = FastAPI(
        title="Health Assistant",
        description="Multilingual health-advice chat assistant",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    async def get_current_user(
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    ) -> UserRecord:
        if credentials is None or not credentials.credentials:
            raise HTTPException(status_code=401, detail="Authentication required")

        user_id = request.app.state.tokens.verify(credentials.credentials)
        if not user_id:
            raise HTTPException(status_code=401, detail="Invalid token")

        user = request.app.state.users.get_by_id(user_id)
        if user is None:
            raise HTTPException(status_code=404, detail="User not found")
        return user

    # API endpoints
    @app.get("/api/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        return {
            "status": "healthy",
            "llm_enabled": request.app.state.pipeline.llm_enabled,
            "version": "1.0.0",
        }

    @app.post("/api/auth/signup")
    async def signup(body: SignupRequest, request: Request):
        if not body.email or not body.password or not body.name:
            raise HTTPException(status_code=400, detail="Email, password, and name are required")
        if body.preferredLanguage not in SUPPORTED_LANGUAGES:
            raise HTTPException(status_code=400, detail=f"Unsupported language: {body.preferredLanguage}")

        try:
            user = request.app.state.users.create_user(
                email=body.email,
                name=body.name,
                password_hash=hash_password(body.password),
                preferred_language=body.preferredLanguage,
            )
        except UserExistsError:
            raise HTTPException(status_code=400, detail="User already exists")

        token = request.app.state.tokens.issue(user.id)
        logger.info(f"User created: {user.id}")

        return {
            "message": "User created successfully",
            "token": token,
            "user": user.to_public_dict(),
        }

    @app.post("/api/auth/login")
    async def login(body: LoginRequest, request: Request):
        if not body.email or not body.password:
            raise HTTPException(status_code=400, detail="Email and password are required")

        user = request.app.state.users.get_by_email(body.email)
        if user is None or not verify_password(body.password, user.password_hash):
            raise HTTPException(status_code=401, detail="Invalid credentials")

        token = request.app.state.tokens.issue(user.id)
        return {"token": token, "user": user.to_public_dict()}

    @app.get("/api/profile")
    async def get_profile(user: UserRecord = Depends(get_current_user)):
        return {"user": user.to_public_dict()}

    @app.put("/api/profile")
    async def update_profile(
        body: ProfileUpdateRequest,
        request: Request,
        user: UserRecord = Depends(get_current_user),
    ):
        try:
            updated = request.app.state.users.update_profile(
                user.id,
                name=body.name,
                conditions=body.conditions,
                preferred_language=body.preferredLanguage,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        if updated is None:
            raise HTTPException(status_code=404, detail="User not found")

        return {"message": "Profile updated successfully", "user": updated.to_public_dict()}

    @app.post("/api/chat")
    async def chat(
        body: ChatRequest,
        request: Request,
        user: UserRecord = Depends(get_current_user),
    ) -> ChatResponse:
        """Process a chat message for the authenticated user."""
        if not body.message or not body.message.strip():
            raise HTTPException(status_code=400, detail="Message is required")

        context = request.app.state.users.get_context(user.id)

        try:
            payload = await request.app.state.pipeline.process_message(user.id, body.message, context)
            return ChatResponse(**payload)

        except Exception as e:
            logger.error(f"Chat error: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal server error")

    @app.get("/api/chat")
    async def get_chat_history(request: Request, user: UserRecord = Depends(get_current_user)):
        messages = request.app.state.chats.get_messages(user.id)
        return {"messages": [turn.to_dict() for turn in messages]}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "health_assistant.api.server:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
