import asyncio
import json

import pytest

from health_assistant.storage.chats import ChatStore
from health_assistant.storage.database import Database
from health_assistant.storage.users import UserStore


class FakeTranslator:
    """Records calls; returns mapped text or a "[target] text" marker."""

    def __init__(self, mapping=None, fail=False):
        self.mapping = mapping or {}
        self.fail = fail
        self.calls = []

    async def translate(self, text, source, target):
        self.calls.append((text, source, target))
        if self.fail:
            raise ConnectionError("translation service unavailable")
        return self.mapping.get(text, f"[{target}] {text}")


class FakeGeminiClient:
    def __init__(self, reply="", error=None, delay=0.0):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls = []

    async def generate_chat(self, prompt, history=None, system_instruction=None, **kwargs):
        self.calls.append({
            "prompt": prompt,
            "history": list(history or []),
            "system_instruction": system_instruction,
        })
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


def json_reply(**fields) -> str:
    payload = {
        "response": "Stay hydrated and rest.",
        "suggestions": ["Drink water", "Sleep well"],
        "emergency": False,
        "followUp": "How long have you had the fever?",
        "confidence": 0.85,
    }
    payload.update(fields)
    return json.dumps(payload)


@pytest.fixture
def db():
    database = Database(":memory:").open()
    yield database
    database.close()


@pytest.fixture
def users(db):
    return UserStore(db)


@pytest.fixture
def chats(db):
    return ChatStore(db)


@pytest.fixture
def user(users):
    return users.create_user(email="asha@example.com", name="Asha", password_hash="x")
