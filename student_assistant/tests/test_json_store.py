import json
import tempfile
from pathlib import Path

import pytest

from student_assistant.domain.exceptions import BusinessError
from student_assistant.infrastructure.storage.credentials import CredentialStore
from student_assistant.infrastructure.storage.json_store import JsonKeyValueStore, MemoryKeyValueStore


class SettingsStub:
    token_key = "token"
    user_key = "user"


def test_json_store_set_get_delete():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d) / ".storage"
        store = JsonKeyValueStore(root=root)
        assert store.get("missing") is None
        store.set("chat_history_default", "[]")
        store.set("token", "abc")
        assert store.get("token") == "abc"
        assert sorted(store.keys()) == ["chat_history_default", "token"]
        store.delete("token")
        store.delete("token")
        assert store.get("token") is None
        # 整个映射存在同一个文件里
        data = json.loads(store.path.read_text(encoding="utf-8"))
        assert data == {"chat_history_default": "[]"}


def test_json_store_is_shared_between_instances():
    with tempfile.TemporaryDirectory() as d:
        a = JsonKeyValueStore(root=d)
        b = JsonKeyValueStore(root=d)
        a.set("k", "v1")
        assert b.get("k") == "v1"
        b.set("k", "v2")
        assert a.get("k") == "v2"
        assert not list(Path(d).glob("*.tmp"))


def test_json_store_rejects_corrupt_file():
    with tempfile.TemporaryDirectory() as d:
        store = JsonKeyValueStore(root=d)
        store.path.write_text("{not json", encoding="utf-8")
        with pytest.raises(BusinessError) as exc:
            store.get("k")
        assert exc.value.code == "STORE_READ_ERROR"


def test_memory_store():
    store = MemoryKeyValueStore({"a": "1"})
    store.set("b", "2")
    store.delete("zzz")
    assert sorted(store.keys()) == ["a", "b"]
    store.clear()
    assert store.keys() == []


def test_credentials_saved_and_cleared_together():
    kv = MemoryKeyValueStore()
    creds = CredentialStore(kv, SettingsStub())
    assert not creds.is_authenticated()
    creds.save("tok", {"full_name": "Ada", "email": "a@x.io"})
    assert creds.get_token() == "tok"
    assert creds.get_user()["full_name"] == "Ada"
    creds.clear()
    assert creds.get_token() is None
    assert creds.get_user() is None
    assert kv.keys() == []


def test_credentials_ignore_corrupt_user_slot():
    kv = MemoryKeyValueStore({"user": "{oops"})
    assert CredentialStore(kv, SettingsStub()).get_user() is None
