"""远端接口配置。

本模块把"逻辑接口名"与"HTTP 方法 + 路径"解耦：

- 逻辑名（name）：在代码里使用的统一名称，例如 "chat"、"me"。
- method/path：服务端实际暴露的路由，挂在 settings.api_base_url 之下。
- auth：是否需要携带 Authorization: Bearer <token>。

路由调整时只需要改这里。"""

from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True)
class Endpoint:
    """单个远端接口的配置。"""

    name: str
    method: str
    path: str
    auth: bool


SIGNUP = Endpoint(name="signup", method="POST", path="/auth/signup", auth=False)
LOGIN = Endpoint(name="login", method="POST", path="/auth/login", auth=False)
ME = Endpoint(name="me", method="GET", path="/auth/me", auth=True)
LOGOUT = Endpoint(name="logout", method="POST", path="/auth/logout", auth=True)
CHAT = Endpoint(name="chat", method="POST", path="/chat", auth=True)


ENDPOINT_REGISTRY: Mapping[str, Endpoint] = {
    ep.name: ep for ep in (SIGNUP, LOGIN, ME, LOGOUT, CHAT)
}


def get_endpoint(name: str) -> Endpoint:
    """根据名称获取 Endpoint，名称不区分大小写。"""

    key = name.lower()
    try:
        return ENDPOINT_REGISTRY[key]
    except KeyError:
        raise KeyError(f"Unknown endpoint: {name!r}") from None
