"""远端服务集成层。

该包下的模块负责：
- 定义远端服务抽象接口 (base)。
- 维护接口路由配置 (registry)。
- 提供基于 httpx 的具体实现 (http_client)。
"""

from typing import Optional

from student_assistant.config.settings import settings
from student_assistant.infrastructure.storage.credentials import CredentialStore
from student_assistant.providers.base import AuthApi, ChatApi
from student_assistant.providers.http_client import AssistantHttpClient


def create_client(credentials: Optional[CredentialStore] = None, cfg=None) -> AssistantHttpClient:
    """创建 HTTP 客户端，凭证从 credentials 实时读取。"""

    token_getter = credentials.get_token if credentials is not None else None
    return AssistantHttpClient(cfg or settings, token_getter=token_getter)


__all__ = ["AuthApi", "ChatApi", "AssistantHttpClient", "create_client"]
