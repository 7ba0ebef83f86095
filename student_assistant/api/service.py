"""对外 API 服务模块。

每个应用实例通过 build_context 构造一套独立的 SessionStore 与
ConversationManager，再注入展示层；不使用模块级单例，测试可以
按用例创建互不干扰的实例。
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from student_assistant.config.settings import settings
from student_assistant.conversation.manager import ConversationManager
from student_assistant.domain.storage import KeyValueStore
from student_assistant.infrastructure.storage.credentials import CredentialStore
from student_assistant.infrastructure.storage.json_store import JsonKeyValueStore
from student_assistant.providers import create_client
from student_assistant.providers.http_client import AssistantHttpClient
from student_assistant.session.guard import GuardedRoute, Navigate
from student_assistant.session.store import SessionStore


@dataclass
class AppContext:
    """一个应用实例持有的全部协作对象。"""

    store: KeyValueStore
    credentials: CredentialStore
    client: AssistantHttpClient
    session: SessionStore
    conversations: ConversationManager

    def private_route(self, navigate: Optional[Navigate] = None) -> GuardedRoute:
        return GuardedRoute.authenticated(self.session, navigate)

    def public_route(self, navigate: Optional[Navigate] = None) -> GuardedRoute:
        return GuardedRoute.unauthenticated(self.session, navigate)

    def admin_route(self, navigate: Optional[Navigate] = None) -> GuardedRoute:
        return GuardedRoute.role(self.session, navigate=navigate)


def build_context(
    cfg=None,
    store: Optional[KeyValueStore] = None,
    storage_root: Optional[str | Path] = None,
) -> AppContext:
    """构造应用上下文。

    Args:
        cfg: 配置对象（可选，默认使用全局 settings）
        store: 本地键值存储（可选，默认在 storage_root 下创建 JSON 文件存储）
        storage_root: 存储目录（可选）

    Returns:
        AppContext
    """
    cfg = cfg or settings
    kv = store if store is not None else JsonKeyValueStore(root=storage_root or cfg.storage_root)
    credentials = CredentialStore(kv, cfg)
    client = create_client(credentials, cfg)
    return AppContext(
        store=kv,
        credentials=credentials,
        client=client,
        session=SessionStore(client, credentials),
        conversations=ConversationManager(kv, client, cfg),
    )
