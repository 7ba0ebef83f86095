"""路由守卫。

三个 require_* 函数是 SessionState 的纯函数判定：
- checking 期间返回 pending（展示占位，不做跳转决定）；
- 状态稳定后返回 admit 或 redirect。

GuardedRoute 把判定函数包装成"已挂载页面"：每次挂载只触发一次 check_auth，
同一跳转目标只下发一次 navigate。
"""

from dataclasses import dataclass
from typing import Callable, Literal, Optional

from student_assistant.config.settings import settings
from student_assistant.domain.models import SessionState


DecisionKind = Literal["pending", "admit", "redirect"]


@dataclass(frozen=True)
class GuardDecision:
    kind: DecisionKind
    target: Optional[str] = None

    @property
    def pending(self) -> bool:
        return self.kind == "pending"

    @property
    def admitted(self) -> bool:
        return self.kind == "admit"


PENDING = GuardDecision("pending")
ADMIT = GuardDecision("admit")


def require_authenticated(state: SessionState, signin_path: str) -> GuardDecision:
    """已登录则放行，否则跳转到登录页。"""

    if state.checking:
        return PENDING
    if state.identity is not None:
        return ADMIT
    return GuardDecision("redirect", signin_path)


def require_unauthenticated(state: SessionState, landing_path: str) -> GuardDecision:
    if state.checking:
        return PENDING
    if state.identity is None:
        return ADMIT
    return GuardDecision("redirect", landing_path)


def require_role(state: SessionState, role: str, fallback_path: str) -> GuardDecision:
    """角色匹配才放行；未登录与角色不符都跳转到 fallback_path。"""

    if state.checking:
        return PENDING
    if state.identity is not None and state.identity.role == role:
        return ADMIT
    return GuardDecision("redirect", fallback_path)


Decide = Callable[[SessionState], GuardDecision]
Navigate = Callable[[str], None]


class GuardedRoute:
    """挂载在单个页面上的守卫。

    render() 可以被反复调用：挂载副作用（check_auth）只在依赖变化时重新执行，
    navigate 只在跳转目标与上一次不同时调用。
    """

    def __init__(self, session, decide: Decide, navigate: Optional[Navigate] = None):
        self._session = session
        self._decide = decide
        self._navigate = navigate
        self._effect_dep: Optional[Callable] = None
        self._last_redirect: Optional[str] = None

    @classmethod
    def authenticated(cls, session, navigate=None, signin_path: Optional[str] = None) -> "GuardedRoute":
        path = signin_path or settings.signin_path
        return cls(session, lambda s: require_authenticated(s, path), navigate)

    @classmethod
    def unauthenticated(cls, session, navigate=None, landing_path: Optional[str] = None) -> "GuardedRoute":
        path = landing_path or settings.landing_path
        return cls(session, lambda s: require_unauthenticated(s, path), navigate)

    @classmethod
    def role(cls, session, role: Optional[str] = None, navigate=None,
             fallback_path: Optional[str] = None) -> "GuardedRoute":
        wanted = role or settings.admin_role
        path = fallback_path or settings.landing_path
        return cls(session, lambda s: require_role(s, wanted, path), navigate)

    def render(self) -> GuardDecision:
        decision = self._decide(self._session.state)
        self._apply(decision)
        self._run_effect()
        return decision

    def unmount(self) -> None:
        """页面卸载：下次 render 视为重新挂载。"""

        self._effect_dep = None
        self._last_redirect = None

    def _run_effect(self) -> None:
        dep = self._session.check_auth
        if self._effect_dep is not None and self._effect_dep == dep:
            return
        self._effect_dep = dep
        dep()

    def _apply(self, decision: GuardDecision) -> None:
        if decision.kind != "redirect":
            self._last_redirect = None
            return
        if decision.target == self._last_redirect:
            return
        self._last_redirect = decision.target
        if self._navigate is not None:
            self._navigate(decision.target)
