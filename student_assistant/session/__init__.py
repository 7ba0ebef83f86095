"""会话认证状态与路由守卫。"""

from student_assistant.session.guard import (
    GuardDecision,
    GuardedRoute,
    require_authenticated,
    require_role,
    require_unauthenticated,
)
from student_assistant.session.store import SessionStore

__all__ = [
    "GuardDecision",
    "GuardedRoute",
    "SessionStore",
    "require_authenticated",
    "require_role",
    "require_unauthenticated",
]
