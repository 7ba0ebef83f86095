import json
import os
import threading
from pathlib import Path
from typing import Dict, List, Optional
from uuid import uuid4

from student_assistant.config.settings import settings
from student_assistant.domain.exceptions import BusinessError


class JsonKeyValueStore:
    """把整张键值映射保存在一个 JSON 文件里。

    每次写入都重写整个文件（临时文件 + os.replace），
    多个进程并发写同一文件时后写者胜出，不做合并。
    """

    def __init__(self, root: str | Path | None = None, filename: str = "local_storage.json"):
        self._root = Path(root or settings.storage_root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        self._path = self._root / filename
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise BusinessError(code="STORE_WRITE_ERROR", message=f"value for {key!r} must be str")
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key not in data:
                return
            del data[key]
            self._write(data)

    def keys(self) -> List[str]:
        return list(self._read().keys())

    def clear(self) -> None:
        with self._lock:
            self._write({})

    def _read(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except Exception as e:
            raise BusinessError(code="STORE_READ_ERROR", message=str(e))
        if not isinstance(data, dict):
            raise BusinessError(code="STORE_READ_ERROR", message=f"{self._path} is not a mapping")
        return data

    def _write(self, data: Dict[str, str]) -> None:
        tmp_path = self._root / f"{self._path.stem}.{uuid4().hex}.json.tmp"
        try:
            tmp_path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except Exception as e:
            tmp_path.unlink(missing_ok=True)
            raise BusinessError(code="STORE_WRITE_ERROR", message=str(e))


class MemoryKeyValueStore:
    """进程内的键值存储，生命周期与实例相同。"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data.keys())

    def clear(self) -> None:
        self._data.clear()
