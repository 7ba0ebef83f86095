"""测试路由守卫。"""

from student_assistant.domain.models import Identity, SessionState
from student_assistant.infrastructure.storage.credentials import CredentialStore
from student_assistant.infrastructure.storage.json_store import MemoryKeyValueStore
from student_assistant.session.guard import (
    GuardedRoute,
    require_authenticated,
    require_role,
    require_unauthenticated,
)
from student_assistant.session.store import SessionStore


STUDENT = Identity(name="Ada", email="ada@x.io", role="student")
ADMIN = Identity(name="Root", email="root@x.io", role="admin")


class FakeSession:
    """只暴露 state 与 check_auth 的会话替身。"""

    def __init__(self, state):
        self.state = state
        self.check_calls = 0

    def check_auth(self):
        self.check_calls += 1
        return self.state


def test_pure_decisions():
    checking = SessionState(status="checking")
    anon = SessionState(status="idle")
    student = SessionState(status="idle", identity=STUDENT)
    admin = SessionState(status="idle", identity=ADMIN)

    assert require_authenticated(checking, "/").pending
    assert require_authenticated(anon, "/").target == "/"
    assert require_authenticated(student, "/").admitted

    assert require_unauthenticated(checking, "/home").pending
    assert require_unauthenticated(anon, "/home").admitted
    assert require_unauthenticated(student, "/home").target == "/home"

    assert require_role(checking, "admin", "/home").pending
    assert require_role(anon, "admin", "/home").target == "/home"
    assert require_role(student, "admin", "/home").target == "/home"
    assert require_role(admin, "admin", "/home").admitted


def test_guard_scenario_pending_redirect_admit():
    session = FakeSession(SessionState(status="checking"))
    redirects = []
    route = GuardedRoute.authenticated(session, redirects.append, signin_path="/signin")

    assert route.render().pending
    assert redirects == []

    session.state = SessionState(status="idle")
    decision = route.render()
    assert decision.kind == "redirect"
    route.render()
    assert redirects == ["/signin"]

    session.state = SessionState(status="idle", identity=STUDENT)
    assert route.render().admitted
    assert redirects == ["/signin"]


def test_check_auth_runs_once_per_mount():
    session = FakeSession(SessionState(status="checking"))
    route = GuardedRoute.unauthenticated(session, landing_path="/home")
    for _ in range(5):
        route.render()
    assert session.check_calls == 1

    route.unmount()
    route.render()
    assert session.check_calls == 2


def test_role_guard_redirects_non_admin():
    session = FakeSession(SessionState(status="idle", identity=STUDENT))
    redirects = []
    route = GuardedRoute.role(session, "admin", redirects.append, fallback_path="/home")
    assert route.render().target == "/home"
    assert redirects == ["/home"]


def test_guard_with_real_session_store():
    class Api:
        calls = 0

        def me(self):
            Api.calls += 1
            return {"full_name": "Ada", "email": "ada@x.io", "role": "student"}

    class SettingsStub:
        token_key = "token"
        user_key = "user"

    creds = CredentialStore(MemoryKeyValueStore(), SettingsStub())
    creds.set_token("tok")
    session = SessionStore(Api(), creds)
    redirects = []
    route = GuardedRoute.authenticated(session, redirects.append, signin_path="/")

    assert route.render().pending
    assert route.render().admitted
    assert route.render().admitted
    assert Api.calls == 1
    assert redirects == []
