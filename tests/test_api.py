import httpx
import pytest
from fastapi.testclient import TestClient

from health_assistant.api.server import create_app
from health_assistant.nlp.language import GoogleTranslateProvider

from conftest import FakeTranslator


@pytest.fixture
def client():
    app = create_app(database_path=":memory:", translator=FakeTranslator(), use_default_llm=False)
    with TestClient(app) as test_client:
        yield test_client


def _signup(client, email="asha@example.com", language="en"):
    response = client.post("/api/auth/signup", json={
        "email": email,
        "password": "s3cret",
        "name": "Asha",
        "preferredLanguage": language,
    })
    assert response.status_code == 200
    return response.json()


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["llm_enabled"] is False


def test_signup_and_login(client):
    data = _signup(client)

    assert data["token"]
    assert data["user"]["email"] == "asha@example.com"
    assert "password_hash" not in data["user"]

    response = client.post("/api/auth/login", json={"email": "asha@example.com", "password": "s3cret"})
    assert response.status_code == 200
    assert response.json()["user"]["id"] == data["user"]["id"]


def test_signup_validation(client):
    assert client.post("/api/auth/signup", json={"email": "a@b.c"}).status_code == 400

    response = client.post("/api/auth/signup", json={
        "email": "a@b.c", "password": "x", "name": "A", "preferredLanguage": "fr",
    })
    assert response.status_code == 400


def test_signup_duplicate(client):
    _signup(client)

    response = client.post("/api/auth/signup", json={
        "email": "asha@example.com", "password": "other", "name": "Asha",
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "User already exists"


def test_login_bad_credentials(client):
    _signup(client)

    assert client.post("/api/auth/login", json={"email": "asha@example.com", "password": "nope"}).status_code == 401
    assert client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "x"}).status_code == 401
    assert client.post("/api/auth/login", json={}).status_code == 400


def test_requires_authentication(client):
    assert client.get("/api/profile").status_code == 401
    assert client.post("/api/chat", json={"message": "hi"}).status_code == 401
    assert client.get("/api/chat", headers=_auth("bogus")).status_code == 401


def test_profile_update(client):
    token = _signup(client)["token"]

    response = client.put("/api/profile", headers=_auth(token), json={
        "conditions": ["diabetes"],
        "preferredLanguage": "hi",
    })
    assert response.status_code == 200
    assert response.json()["user"]["conditions"] == ["diabetes"]

    profile = client.get("/api/profile", headers=_auth(token)).json()["user"]
    assert profile["preferredLanguage"] == "hi"

    bad = client.put("/api/profile", headers=_auth(token), json={"preferredLanguage": "xx"})
    assert bad.status_code == 400


def test_chat_and_history(client):
    token = _signup(client)["token"]

    response = client.post("/api/chat", headers=_auth(token), json={"message": "I have a fever"})

    assert response.status_code == 200
    data = response.json()
    assert data["response"].startswith("Fever is a medical condition")
    assert data["llmUsed"] is False
    assert data["detectedLanguage"] == "en"
    assert data["entities"]["symptoms"] == ["fever"]
    assert data["followUp"].startswith("Would you like more information")

    history = client.get("/api/chat", headers=_auth(token)).json()["messages"]
    assert [m["role"] for m in history] == ["user", "assistant"]
    assert history[0]["content"] == "I have a fever"


def test_chat_history_is_per_user(client):
    first = _signup(client)["token"]
    second = _signup(client, email="ravi@example.com")["token"]

    client.post("/api/chat", headers=_auth(first), json={"message": "I have a cough"})

    assert client.get("/api/chat", headers=_auth(second)).json()["messages"] == []


def test_chat_requires_message(client):
    token = _signup(client)["token"]

    assert client.post("/api/chat", headers=_auth(token), json={"message": "   "}).status_code == 400
    assert client.post("/api/chat", headers=_auth(token), json={}).status_code == 400


def test_chat_uses_profile_conditions(client):
    token = _signup(client)["token"]
    client.put("/api/profile", headers=_auth(token), json={"conditions": ["asthma"]})

    data = client.post("/api/chat", headers=_auth(token), json={"message": "I have a cough"}).json()

    assert data["suggestions"][-1].startswith("Note: You have recorded conditions: asthma")


def test_lifespan_shares_one_translate_client():
    app = create_app(database_path=":memory:", use_default_llm=False)

    with TestClient(app):
        translator = app.state.translator
        assert isinstance(translator, GoogleTranslateProvider)
        assert isinstance(translator._client, httpx.AsyncClient)
        assert app.state.pipeline.services.translator is translator

    assert translator._client is None
