"""助手服务 HTTP 客户端。

本模块负责：

1. 根据 registry 中的 Endpoint 拼出 URL，并按需附加 Bearer 凭证。
2. 调用 HTTP 接口并处理网络异常。
3. 把非 2xx 响应映射为统一的业务异常：
   401 -> Unauthenticated，5xx -> ServerError，其余 -> UnknownError，
   网络层失败 -> TransportError。
4. 返回解析后的 JSON 字典。

这里是 "HTTP 响应 ⇄ 项目内部错误分类" 的唯一转换层，上层只看异常类型。
"""

from typing import Any, Callable, Dict, List, Optional

import httpx

from student_assistant.config.settings import settings
from student_assistant.domain.exceptions import (
    ServerError,
    TransportError,
    Unauthenticated,
    UnknownError,
)
from student_assistant.providers.registry import Endpoint, get_endpoint


TokenGetter = Callable[[], Optional[str]]


class AssistantHttpClient:
    """助手服务客户端，同时实现 AuthApi 与 ChatApi。

    - token_getter: 每次请求时调用以获取最新凭证（通常来自 CredentialStore）。
    """

    def __init__(self, cfg=settings, token_getter: Optional[TokenGetter] = None):
        self._settings = cfg
        self._token_getter = token_getter

    # ---- 认证 ----

    def sign_up(self, registration: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("signup", payload=dict(registration))

    def log_in(self, email: str, password: str) -> Dict[str, Any]:
        return self._request("login", payload={"email": email, "password": password})

    def me(self) -> Dict[str, Any]:
        return self._request("me")

    def log_out(self) -> Dict[str, Any]:
        return self._request("logout")

    # ---- 对话 ----

    def chat(self, message: str, history: List[Dict[str, str]]) -> Dict[str, Any]:
        data = self._request("chat", payload={"message": message, "history": history})
        if not isinstance(data.get("response"), str):
            raise UnknownError(message="Malformed chat response", endpoint="chat")
        return data

    # ---- 辅助方法 ----

    def _request(self, endpoint_name: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        endpoint = get_endpoint(endpoint_name)
        headers = {"Accept": "application/json"}
        if payload is not None:
            headers["Content-Type"] = "application/json"
        if endpoint.auth:
            token = self._token_getter() if callable(self._token_getter) else None
            if not token:
                # 没有凭证直接判定为未认证，不发请求
                raise Unauthenticated(message="Authentication required. Please log in.", endpoint=endpoint.name)
            headers["Authorization"] = f"Bearer {token}"

        base = getattr(self._settings, "api_base_url", "").rstrip("/")
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.request(
                    endpoint.method,
                    f"{base}{endpoint.path}",
                    json=payload,
                    headers=headers,
                )
        except httpx.RequestError as e:
            raise TransportError(message=str(e) or None, endpoint=endpoint.name)

        if resp.status_code >= 400:
            self._raise_for_status(resp, endpoint)
        if resp.status_code == 204:
            return {}
        try:
            data = resp.json()
        except ValueError:
            raise UnknownError(message="Malformed response body", http_status=resp.status_code, endpoint=endpoint.name)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise UnknownError(message="Malformed response body", http_status=resp.status_code, endpoint=endpoint.name)
        return data

    def _raise_for_status(self, resp: httpx.Response, endpoint: Endpoint) -> None:
        status = resp.status_code
        detail = self._error_text(resp)
        if status == 401:
            raise Unauthenticated(message=detail, http_status=status, endpoint=endpoint.name)
        if status >= 500:
            raise ServerError(message=detail, http_status=status, endpoint=endpoint.name)
        raise UnknownError(
            message=detail or f"Request failed with HTTP {status}",
            http_status=status,
            endpoint=endpoint.name,
        )

    @staticmethod
    def _error_text(resp: httpx.Response) -> Optional[str]:
        """取响应体里最具体的错误描述：detail 优先，其次 message。"""

        try:
            body = resp.json()
        except ValueError:
            return None
        if not isinstance(body, dict):
            return None
        detail = body.get("detail") or body.get("message")
        if not detail:
            return None
        if isinstance(detail, list):
            # FastAPI 422 校验错误是列表
            parts = [str(item.get("msg", item)) if isinstance(item, dict) else str(item) for item in detail]
            return "; ".join(parts)
        return str(detail)
