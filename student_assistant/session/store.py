"""会话（认证）状态存储。

SessionStore 是"当前访问者是否已登录"的唯一事实来源，只能通过
check_auth / sign_up / log_in / log_out 四个操作修改。

每个操作在入口把 status 切到自己的忙碌值，并在所有退出路径（含异常）
恢复为 idle；内部锁保证两个忙碌状态不会重叠。
除 check_auth 外，失败一律通过返回的信封报告，不抛异常、不重试。
"""

import logging
import threading
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from student_assistant.domain.exceptions import BusinessError, ValidationError
from student_assistant.domain.models import (
    Identity,
    LogoutResult,
    OperationResult,
    SessionState,
    SessionStatus,
)
from student_assistant.infrastructure.logging.logger import log_event
from student_assistant.infrastructure.storage.credentials import CredentialStore
from student_assistant.providers.base import AuthApi


Listener = Callable[[SessionState], None]
_UNSET: Any = object()
_NON_PROFILE_FIELDS = ("access_token", "token_type", "refresh_token", "message")


class SessionStore:
    def __init__(
        self,
        auth_api: AuthApi,
        credentials: CredentialStore,
        initial_state: Optional[SessionState] = None,
    ):
        self._api = auth_api
        self._credentials = credentials
        # 首次加载时尚未确认身份，初始即为 checking
        self._state = initial_state or SessionState(status="checking")
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []
        self._log_ctx: Dict[str, Any] = {"component": "session", "session_id": f"s-{uuid4().hex}"}

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def identity(self) -> Optional[Identity]:
        return self._state.identity

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """注册状态监听器，返回取消订阅函数。"""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def cached_profile(self) -> Optional[Dict[str, Any]]:
        """本地缓存的用户资料，仅供展示。"""

        return self._credentials.get_user()

    # ---- 操作 ----

    def check_auth(self) -> SessionState:
        """向服务端确认当前凭证对应的身份。

        每次受保护页面挂载都会无条件调用，因此任何失败（无凭证、网络错误、401、
        响应体异常）都只记录日志并把 identity 置空，绝不向调用方抛出。
        """

        with self._lock:
            self._set(status="checking")
            identity: Optional[Identity] = None
            try:
                profile = self._api.me()
                identity = Identity.from_profile(profile, token=self._credentials.get_token())
            except Exception as e:
                self._log(
                    logging.WARNING,
                    "Auth check failed",
                    error=getattr(e, "code", type(e).__name__),
                    detail=str(e),
                )
            else:
                self._log(logging.INFO, "Auth check succeeded", role=identity.role)
                self._cache_profile(profile)
            finally:
                # 身份与 idle 状态一次性发布
                self._set(status="idle", identity=identity)
            return self._state

    def sign_up(self, registration: Dict[str, Any]) -> OperationResult:
        """注册新用户。

        registration 至少包含 email、password、full_name，
        可选 matric_no、school、department、level。
        成功时保存凭证并设置 identity；失败时 identity 保持不变。
        """

        with self._lock:
            self._set(status="signing_up")
            try:
                if not registration.get("email") or not registration.get("password"):
                    raise ValidationError(message="Email and password are required")
                body = self._api.sign_up(registration)
                token = body.get("access_token")
                user = body.get("user")
                if not isinstance(user, dict):
                    # 没有 user 字段时，资料取自响应体但去掉凭证相关字段
                    user = {k: v for k, v in body.items() if k not in _NON_PROFILE_FIELDS}
                self._credentials.save(token, user)
                self._set(identity=Identity.from_profile(user, token=token))
                self._log(logging.INFO, "Signed up", email=registration.get("email"))
                return OperationResult(
                    success=True,
                    data=body,
                    message=body.get("message") or "Signup successful",
                )
            except BusinessError as e:
                self._log(logging.WARNING, "Signup failed", error=e.code, detail=e.detail)
                return OperationResult(success=False, message=e.detail or "Signup failed", error=e.code)
            finally:
                self._set(status="idle")

    def log_in(self, email: str, password: str) -> OperationResult:
        """登录。

        成功时只写入凭证，不修改 identity：身份由随后的 check_auth 刷新。
        """

        with self._lock:
            self._set(status="logging_in")
            try:
                if not (email or "").strip() or not password:
                    raise ValidationError(message="Email and password are required")
                body = self._api.log_in(email.strip(), password)
                user = body.get("user")
                self._credentials.save(body.get("access_token"), user if isinstance(user, dict) else None)
                self._log(logging.INFO, "Logged in", email=email.strip())
                return OperationResult(
                    success=True,
                    data=body,
                    message=body.get("message") or "Login successful",
                )
            except BusinessError as e:
                self._log(logging.WARNING, "Login failed", error=e.code, detail=e.detail)
                return OperationResult(
                    success=False,
                    message=e.detail or "An unexpected error occurred.",
                    error=e.code,
                )
            finally:
                self._set(status="idle")

    def log_out(self) -> LogoutResult:
        """通知服务端登出（尽力而为），并无条件清除本地凭证与 identity。"""

        with self._lock:
            result = LogoutResult(status=True, message="Logout successful")
            try:
                if self._credentials.is_authenticated():
                    body = self._api.log_out()
                    result = LogoutResult(status=True, message=body.get("message") or "Logout successful")
            except BusinessError as e:
                self._log(logging.WARNING, "Logout request failed", error=e.code, detail=e.detail)
                result = LogoutResult(status=False, message=e.detail or "Logout failed!")
            finally:
                self._credentials.clear()
                self._set(identity=None)
            return result

    # ---- 辅助方法 ----

    def _set(self, status: Optional[SessionStatus] = None, identity: Any = _UNSET) -> None:
        changes: Dict[str, Any] = {}
        if status is not None:
            changes["status"] = status
        if identity is not _UNSET:
            changes["identity"] = identity
        new_state = replace(self._state, **changes)
        if new_state == self._state:
            return
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception as e:
                # 监听器异常不影响状态机本身
                self._log(logging.ERROR, "Session listener failed", status=new_state.status, error=repr(e))

    def _cache_profile(self, profile: Dict[str, Any]) -> None:
        """缓存用户资料，失败只记日志，不影响已确认的身份。"""

        try:
            self._credentials.set_user(profile)
        except BusinessError as e:
            self._log(logging.WARNING, "Caching profile failed", error=e.code, detail=e.detail)

    def _log(self, level: int, message: str, **fields: Any) -> None:
        log_event(level, message, self._log_ctx, **fields)
