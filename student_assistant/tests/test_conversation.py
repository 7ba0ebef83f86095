import pytest

from student_assistant.domain.conversation import ConversationLog, Message, parse_timestamp
from student_assistant.domain.models import Identity, SessionState


def test_models_exist():
    m = Message.create("user", "hi")
    assert m.role == "user"
    assert parse_timestamp(m.timestamp).tzinfo is not None
    log = ConversationLog("c1", [m])
    assert len(log) == 1
    assert log.history() == [{"role": "user", "content": "hi"}]


def test_message_rejects_empty_content_and_unknown_role():
    with pytest.raises(ValueError):
        Message(role="user", content="", timestamp="2024-01-01T00:00:00Z")
    with pytest.raises(ValueError):
        Message(role="system", content="x", timestamp="2024-01-01T00:00:00Z")


def test_appended_returns_new_log():
    base = ConversationLog("c1", [Message.create("assistant", "hello")])
    grown = base.appended(Message.create("user", "hello"))
    assert len(base) == 1
    assert len(grown) == 2
    # 允许重复内容
    assert grown.messages[0].content == grown.messages[1].content


def test_identity_from_profile_role_aliases():
    ident = Identity.from_profile({"full_name": "Ada", "email": "a@x.io", "userType": "admin"}, token="t")
    assert ident.name == "Ada"
    assert ident.role == "admin"
    assert ident.token == "t"
    assert Identity.from_profile({"name": "B", "role": "student"}).role == "student"
    with pytest.raises(TypeError):
        Identity.from_profile(["not", "a", "dict"])


def test_session_state_views():
    st = SessionState()
    assert st.checking and not st.settled and not st.is_authenticated
    st = SessionState(status="logging_in")
    assert st.logging_in and not st.checking and not st.signing_up
