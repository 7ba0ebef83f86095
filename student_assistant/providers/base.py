"""远端服务抽象接口。

SessionStore 与 ConversationManager 不直接依赖 httpx，而是依赖这里的协议：

- AuthApi: 注册、登录、获取当前用户、登出。
- ChatApi: 发送一条消息并拿到助手回复。

所有实现在失败时都抛出 domain.exceptions 中的 BusinessError 子类，
成功时返回解析后的 JSON 字典。测试可以用任意满足协议的假对象替换。
"""

from typing import Any, Dict, List, Protocol


class AuthApi(Protocol):
    def sign_up(self, registration: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def log_in(self, email: str, password: str) -> Dict[str, Any]:
        ...

    def me(self) -> Dict[str, Any]:
        ...

    def log_out(self) -> Dict[str, Any]:
        ...


class ChatApi(Protocol):
    def chat(self, message: str, history: List[Dict[str, str]]) -> Dict[str, Any]:
        """发送消息；history 只包含 {role, content}。"""

        ...
