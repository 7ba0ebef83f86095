"""会话状态与结果信封模型。

本模块定义 SessionStore 与 ConversationManager 对外共享的数据结构：

- Identity: 服务端下发的用户资料 + 凭证 token。
- SessionState: 当前身份 + 单一忙碌状态（idle/checking/signing_up/logging_in）。
  用一个 status 字段代替多个布尔量，"同时 checking 和 logging_in" 这类非法组合无法表示。
- OperationResult / LogoutResult / SendResult: 统一的返回信封，调用方按 success 分支处理，
  而不是捕获异常。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional


SessionStatus = Literal["idle", "checking", "signing_up", "logging_in"]


@dataclass(frozen=True)
class Identity:
    """已认证用户的资料。

    - name/email/role 取自服务端 profile，role 兼容 role/userType/user_type 三种字段名。
    - token: 与该身份关联的凭证，生命周期由 CredentialStore 管理。
    - profile: 原始 profile 字典，供展示层读取其他字段（matric_no、department 等）。
    """

    name: str
    email: str
    role: Optional[str]
    token: Optional[str] = None
    profile: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_profile(cls, profile: Dict[str, Any], token: Optional[str] = None) -> "Identity":
        if not isinstance(profile, dict):
            raise TypeError(f"profile must be a mapping, got {type(profile).__name__}")
        role = profile.get("role") or profile.get("userType") or profile.get("user_type")
        return cls(
            name=profile.get("full_name") or profile.get("name") or "",
            email=profile.get("email") or "",
            role=role,
            token=token,
            profile=dict(profile),
        )


@dataclass(frozen=True)
class SessionState:
    status: SessionStatus = "checking"
    identity: Optional[Identity] = None

    @property
    def checking(self) -> bool:
        return self.status == "checking"

    @property
    def signing_up(self) -> bool:
        return self.status == "signing_up"

    @property
    def logging_in(self) -> bool:
        return self.status == "logging_in"

    @property
    def settled(self) -> bool:
        return self.status == "idle"

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None


@dataclass
class OperationResult:
    success: bool
    data: Any = None
    message: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success}
        if self.data is not None:
            payload["data"] = self.data
        if self.message is not None:
            payload["message"] = self.message
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass
class SendResult(OperationResult):
    """send_message 的返回值。

    data 为提交后的消息字典列表：成功时包含新的一问一答，
    失败时为发送前的已提交日志（调用方据此回滚界面）。
    """

    latest_response: Optional[str] = None

    @property
    def messages(self) -> List[Dict[str, str]]:
        return list(self.data or [])


@dataclass
class LogoutResult:
    status: bool
    message: Optional[str] = None
