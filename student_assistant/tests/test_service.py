"""测试应用上下文的组装与端到端流程。"""

import tempfile

from student_assistant.api.service import build_context
from student_assistant.infrastructure.storage.json_store import MemoryKeyValueStore


class SettingsStub:
    api_base_url = "http://api.test/api"
    http_timeout = 1.0
    storage_root = ".storage"
    history_prefix = "chat_history_"
    token_key = "token"
    user_key = "user"
    default_conversation_id = "default"
    prompt_locale = "en"


class Resp:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body

    def json(self):
        return self._body


def install_server(monkeypatch, routes, seen):
    """按 (method, path) 返回预置响应的假 httpx.Client。"""

    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def request(self, method, url, json=None, headers=None, **_):
            path = url.replace(SettingsStub.api_base_url, "")
            seen.append((method, path, (headers or {}).get("Authorization")))
            return routes[(method, path)]

    monkeypatch.setattr("httpx.Client", Client)


def test_contexts_are_isolated():
    a = build_context(SettingsStub(), store=MemoryKeyValueStore())
    b = build_context(SettingsStub(), store=MemoryKeyValueStore())
    assert a.session is not b.session
    assert a.conversations is not b.conversations
    a.credentials.set_token("tok")
    assert b.credentials.get_token() is None


def test_build_context_with_json_store():
    with tempfile.TemporaryDirectory() as d:
        ctx = build_context(SettingsStub(), storage_root=d)
        ctx.conversations.load_or_initialize()
        assert ctx.conversations.list_conversation_ids() == ["default"]


def test_login_check_chat_logout_flow(monkeypatch):
    seen = []
    profile = {"full_name": "Ada Obi", "email": "ada@x.io", "role": "student"}
    install_server(
        monkeypatch,
        {
            ("POST", "/auth/login"): Resp(200, {"access_token": "tok", "user": profile}),
            ("GET", "/auth/me"): Resp(200, profile),
            ("POST", "/chat"): Resp(200, {"response": "Visit the admissions office."}),
            ("POST", "/auth/logout"): Resp(500, {"detail": "down"}),
        },
        seen,
    )
    ctx = build_context(SettingsStub(), store=MemoryKeyValueStore())
    redirects = []
    route = ctx.private_route(redirects.append)

    assert route.render().pending
    assert route.render().kind == "redirect"
    assert redirects == ["/"]

    assert ctx.session.log_in("ada@x.io", "pw").success
    assert ctx.session.check_auth().identity.name == "Ada Obi"
    assert route.render().admitted

    log = ctx.conversations.load_or_initialize()
    result = ctx.conversations.send_message("default", "What are the admission requirements?", log)
    assert result.success
    assert ("POST", "/chat", "Bearer tok") in seen

    out = ctx.session.log_out()
    assert out.status is False
    assert ctx.session.identity is None
    assert ctx.credentials.get_token() is None

    # 登出后凭证已清除，聊天在发请求前就判定为未认证
    calls_before = len(seen)
    failed = ctx.conversations.send_message("default", "Hello again")
    assert failed.error == "Unauthenticated"
    assert len(seen) == calls_before
    assert len(ctx.conversations.get_history("default")) == 3
