"""凭证与用户资料缓存。

token 与 user 是两个独立槽位，但总是一起写入、一起清除。
缓存的 user 只用于展示（侧边栏姓名/邮箱），不作为已登录的依据；
页面重新加载后身份必须通过 check_auth 重新获取。
"""

import json
from typing import Any, Dict, Optional

from student_assistant.config.settings import settings
from student_assistant.domain.storage import KeyValueStore


class CredentialStore:
    def __init__(self, store: KeyValueStore, cfg=settings):
        self._store = store
        self._token_key = getattr(cfg, "token_key", "token")
        self._user_key = getattr(cfg, "user_key", "user")

    def get_token(self) -> Optional[str]:
        return self._store.get(self._token_key) or None

    def set_token(self, token: str) -> None:
        self._store.set(self._token_key, token)

    def get_user(self) -> Optional[Dict[str, Any]]:
        raw = self._store.get(self._user_key)
        if not raw:
            return None
        try:
            user = json.loads(raw)
        except json.JSONDecodeError:
            return None
        return user if isinstance(user, dict) else None

    def set_user(self, user: Dict[str, Any]) -> None:
        self._store.set(self._user_key, json.dumps(user, ensure_ascii=False))

    def save(self, token: Optional[str], user: Optional[Dict[str, Any]]) -> None:
        if token:
            self.set_token(token)
        if isinstance(user, dict):
            self.set_user(user)

    def clear(self) -> None:
        self._store.delete(self._token_key)
        self._store.delete(self._user_key)

    def is_authenticated(self) -> bool:
        """本地是否持有凭证（不代表服务端仍认可该凭证）。"""

        return bool(self.get_token())
