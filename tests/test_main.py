from health_assistant.core.models import ChatTurn
from health_assistant.main import CLI_EMAIL, get_cli_user, handle_command


def test_cli_user_is_created_once(users):
    first = get_cli_user(users)
    second = get_cli_user(users)

    assert first.id == second.id
    assert first.email == CLI_EMAIL


def test_reset_clears_history(users, chats, user):
    chats.append(user.id, ChatTurn(role="user", content="hello"))

    assert handle_command("reset", user.id, users, chats) == "Chat history cleared."
    assert chats.count(user.id) == 0


def test_lang_command(users, chats, user):
    assert handle_command("lang ta", user.id, users, chats) == "Preferred language set to ta."
    assert users.get_context(user.id).preferred_language == "ta"

    status = handle_command("lang fr", user.id, users, chats)
    assert status.startswith("Supported languages:")
    assert users.get_context(user.id).preferred_language == "ta"


def test_conditions_command(users, chats, user):
    status = handle_command("conditions asthma, diabetes", user.id, users, chats)

    assert status == "Recorded conditions: asthma, diabetes"
    assert users.get_context(user.id).conditions == ["asthma", "diabetes"]
    assert handle_command("conditions", user.id, users, chats) == "Recorded conditions: none"


def test_regular_message_is_not_a_command(users, chats, user):
    assert handle_command("I have a fever", user.id, users, chats) is None
