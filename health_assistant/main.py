import argparse
import asyncio
import logging

from health_assistant.agents.gemini_client import get_gemini_client
from health_assistant.agents.pipeline import ChatPipeline
from health_assistant.agents.responder import LLMResponder
from health_assistant.auth.security import hash_password
from health_assistant.config import DATABASE_PATH, GEMINI_API_KEY, SUPPORTED_LANGUAGES, USE_LLM
from health_assistant.nlp.language import GoogleTranslateProvider, create_translate_client
from health_assistant.storage.chats import ChatStore
from health_assistant.storage.database import Database
from health_assistant.storage.users import UserStore

CLI_EMAIL = "cli@localhost"

logger = logging.getLogger(__name__)


def get_cli_user(users: UserStore):
    user = users.get_by_email(CLI_EMAIL)
    if user is None:
        user = users.create_user(email=CLI_EMAIL, name="Terminal User", password_hash=hash_password(""))
    return user


def handle_command(command: str, user_id: str, users: UserStore, chats: ChatStore):
    """Apply a terminal command. Returns a status line, or None if not a command."""
    parts = command.split(maxsplit=1)
    name = parts[0].lower() if parts else ""
    argument = parts[1].strip() if len(parts) > 1 else ""

    if name == "reset":
        chats.clear(user_id)
        return "Chat history cleared."

    if name == "lang":
        if argument not in SUPPORTED_LANGUAGES:
            return f"Supported languages: {', '.join(SUPPORTED_LANGUAGES)}"
        users.update_profile(user_id, preferred_language=argument)
        return f"Preferred language set to {argument}."

    if name == "conditions":
        conditions = [c.strip() for c in argument.split(",") if c.strip()]
        users.update_profile(user_id, conditions=conditions)
        return f"Recorded conditions: {', '.join(conditions) or 'none'}"

    return None


async def chat_loop(pipeline: ChatPipeline, users: UserStore, chats: ChatStore):
    user = get_cli_user(users)

    while True:
        try:
            user_input = input("You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye!")
            break

        if not user_input:
            continue

        if user_input.lower() == "quit":
            print("Goodbye!")
            break

        status = handle_command(user_input, user.id, users, chats)
        if status is not None:
            print(f"{status}\n")
            continue

        context = users.get_context(user.id)
        try:
            result = await pipeline.process_message(user.id, user_input, context)
        except Exception as e:
            logger.error(f"Pipeline error: {e}", exc_info=True)
            print(f"\nAssistant: I encountered an error: {e}. Please try again.\n")
            continue

        print(f"\nAssistant: {result['response']}")
        if result["emergency"]:
            print("  !! Possible emergency: seek medical help immediately.")
        for suggestion in result["suggestions"]:
            print(f"  - {suggestion}")
        if result.get("followUp"):
            print(f"  {result['followUp']}")
        print()


async def run_cli(db: Database, responder=None):
    users = UserStore(db)
    chats = ChatStore(db)
    translator = GoogleTranslateProvider(client=create_translate_client())
    try:
        pipeline = ChatPipeline(chat_store=chats, responder=responder, translator=translator)
        await chat_loop(pipeline, users, chats)
    finally:
        await translator.aclose()


def main():
    """Interactive chat with the assistant."""
    parser = argparse.ArgumentParser(description="Chat with the health assistant")
    parser.add_argument("--db", default=DATABASE_PATH, help="SQLite database path")
    parser.add_argument("--no-llm", action="store_true", help="Use knowledge base responses only")
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING)

    print("Health Assistant")
    print("Type 'quit' to exit, 'reset' to clear history, 'lang <code>' to switch language,")
    print("'conditions a, b' to record your conditions\n")

    responder = None
    if USE_LLM and GEMINI_API_KEY and not args.no_llm:
        responder = LLMResponder(get_gemini_client())

    with Database(args.db) as db:
        asyncio.run(run_cli(db, responder))


if __name__ == "__main__":
    main()
