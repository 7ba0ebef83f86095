"""会话与消息模型。

Message 一旦追加即不可变；ConversationLog 按插入顺序保存消息，
允许内容重复。持久化格式为消息字典数组：
[{"role": ..., "content": ..., "timestamp": ...}, ...]
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Tuple


Role = Literal["user", "assistant"]
ROLES: Tuple[str, ...] = ("user", "assistant")


def utc_now_iso() -> str:
    """当前时间的 ISO-8601 字符串（UTC，毫秒精度，Z 结尾）。"""

    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


@dataclass(frozen=True)
class Message:
    role: Role
    content: str
    timestamp: str

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unknown message role: {self.role!r}")
        if not self.content:
            raise ValueError("Message content must not be empty")

    @classmethod
    def create(cls, role: Role, content: str, timestamp: Optional[str] = None) -> "Message":
        return cls(role=role, content=content, timestamp=timestamp or utc_now_iso())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        return cls(
            role=data["role"],
            content=data.get("content") or "",
            timestamp=data.get("timestamp") or utc_now_iso(),
        )

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content, "timestamp": self.timestamp}

    def to_history_item(self) -> Dict[str, str]:
        """发给远端的历史条目：只保留 role 与 content。"""

        return {"role": self.role, "content": self.content}


@dataclass
class ConversationLog:
    conversation_id: str
    messages: List[Message] = field(default_factory=list)

    def appended(self, message: Message) -> "ConversationLog":
        """返回追加了 message 的新日志，原日志不变。"""

        return ConversationLog(self.conversation_id, [*self.messages, message])

    def history(self) -> List[Dict[str, str]]:
        return [m.to_history_item() for m in self.messages]

    def to_list(self) -> List[Dict[str, str]]:
        return [m.to_dict() for m in self.messages]

    def __len__(self) -> int:
        return len(self.messages)


@dataclass
class ConversationStats:
    total_messages: int
    user_message_count: int
    assistant_message_count: int
    average_content_length: float
    first_timestamp: Optional[str]
    last_timestamp: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalMessages": self.total_messages,
            "userMessageCount": self.user_message_count,
            "assistantMessageCount": self.assistant_message_count,
            "averageContentLength": self.average_content_length,
            "firstTimestamp": self.first_timestamp,
            "lastTimestamp": self.last_timestamp,
        }
