from typing import Iterable, Optional, Protocol


class KeyValueStore(Protocol):
    """本地持久化键值存储（浏览器 localStorage 的等价物）。

    值一律为字符串；结构化数据由调用方自行 JSON 序列化。
    整个存储是一张全局映射，写入总是整值替换。
    """

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def keys(self) -> Iterable[str]:
        ...
