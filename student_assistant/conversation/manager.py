"""会话管理核心模块。

负责一问一答的收发流程以及与本地历史记录的交互：

1. 读取/初始化会话历史（首条为助手问候语）。
2. 发送消息：先在工作副本上乐观追加用户消息并交给调用方展示，
   再请求远端 /chat；成功后追加助手回复并整体保存，失败则什么都不保存，
   返回发送前的已提交日志供调用方回滚界面。
3. 导出、统计、列举、删除会话。

同一 conversation_id 的发送由内部锁串行化：第二次发送会等待第一次提交或失败。
"""

import json
import logging
import threading
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Union
from uuid import uuid4

from student_assistant.config.settings import settings
from student_assistant.domain.conversation import (
    ConversationLog,
    ConversationStats,
    Message,
    parse_timestamp,
    utc_now_iso,
)
from student_assistant.domain.exceptions import BusinessError, UnknownError, ValidationError
from student_assistant.domain.models import OperationResult, SendResult
from student_assistant.domain.storage import KeyValueStore
from student_assistant.infrastructure.logging.logger import log_event
from student_assistant.prompts import load_greeting, load_suggestions
from student_assistant.providers.base import ChatApi


LogLike = Union[ConversationLog, Iterable[Union[Message, Dict[str, Any]]]]
PendingCallback = Callable[[ConversationLog], None]


class ConversationManager:
    def __init__(self, store: KeyValueStore, chat_api: ChatApi, cfg=settings):
        self._store = store
        self._api = chat_api
        self._prefix = getattr(cfg, "history_prefix", "chat_history_")
        self._default_id = getattr(cfg, "default_conversation_id", "default")
        self._locale = getattr(cfg, "prompt_locale", "en")
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # ---- 持久化 ----

    def get_history(self, conversation_id: Optional[str] = None) -> ConversationLog:
        """读取已持久化的会话；不存在时返回空日志。无法解析的消息条目会被跳过。"""

        cid = conversation_id or self._default_id
        raw = self._store.get(self._key(cid))
        if not raw:
            return ConversationLog(cid)
        try:
            items = json.loads(raw)
        except json.JSONDecodeError as e:
            raise BusinessError(code="STORE_READ_ERROR", message=f"{self._key(cid)}: {e}")
        if not isinstance(items, list):
            raise BusinessError(code="STORE_READ_ERROR", message=f"{self._key(cid)} is not a list")
        messages: List[Message] = []
        for item in items:
            try:
                messages.append(Message.from_dict(item))
            except Exception:
                continue
        return ConversationLog(cid, messages)

    def save_history(self, conversation_id: str, messages: Iterable[Message]) -> None:
        payload = [m.to_dict() for m in messages]
        self._store.set(self._key(conversation_id), json.dumps(payload, ensure_ascii=False))

    # ---- 会话生命周期 ----

    def load_or_initialize(self, conversation_id: Optional[str] = None) -> ConversationLog:
        """读取会话，不存在或为空时写入只含问候语的新会话。

        幂等：没有发送的情况下多次调用得到同一份日志。
        """

        cid = conversation_id or self._default_id
        log = self.get_history(cid)
        if len(log) > 0:
            return log
        return self.reset_conversation(cid)

    def reset_conversation(self, conversation_id: Optional[str] = None) -> ConversationLog:
        """丢弃当前会话并重新写入问候语（"新建对话"）。"""

        cid = conversation_id or self._default_id
        greeting = Message.create("assistant", load_greeting(self._locale))
        log = ConversationLog(cid, [greeting])
        self.save_history(cid, log.messages)
        self._log(logging.INFO, "Initialized conversation", {"conversation_id": cid})
        return log

    def send_message(
        self,
        conversation_id: Optional[str],
        user_text: str,
        current_log: Optional[LogLike] = None,
        on_pending: Optional[PendingCallback] = None,
    ) -> SendResult:
        """发送一条用户消息并提交助手回复。

        Args:
            conversation_id: 会话ID（为空时使用默认会话）
            user_text: 用户输入，去除首尾空白后不能为空
            current_log: 调用方当前展示的已提交日志；为空时读取持久化日志
            on_pending: 乐观更新回调，收到追加了用户消息的工作副本

        Returns:
            SendResult。成功时 data 为新的完整日志；失败时 data 为发送前的日志，
            error 为失败原因（ValidationError / Unauthenticated / ServerError /
            TransportError / UnknownError）。
        """

        cid = conversation_id or self._default_id
        log_ctx: Dict[str, Any] = {"trace_id": f"tr-{uuid4().hex}", "conversation_id": cid}
        text = user_text.strip() if isinstance(user_text, str) else ""
        if not text:
            committed = self._coerce_log(cid, current_log)
            err = ValidationError()
            self._log(logging.INFO, "Rejected empty message", log_ctx)
            return SendResult(success=False, data=committed.to_list(), message=err.message, error=err.code)

        with self._lock_for(cid):
            start_time = time.time()
            committed = self._coerce_log(cid, current_log)
            working = committed.appended(Message.create("user", text))
            if on_pending is not None:
                on_pending(working)

            try:
                data = self._api.chat(text, committed.history())
                reply = self._reply_message(data)
            except BusinessError as e:
                self._log(
                    logging.WARNING,
                    "Chat request failed",
                    log_ctx,
                    error=e.code,
                    http_status=e.http_status,
                    detail=e.detail,
                )
                return SendResult(success=False, data=committed.to_list(), message=e.message, error=e.code)

            final = working.appended(reply)
            self.save_history(cid, final.messages)
            self._log(
                logging.INFO,
                "Committed exchange",
                log_ctx,
                total_messages=len(final),
                elapsed_seconds=round(time.time() - start_time, 2),
            )
            return SendResult(success=True, data=final.to_list(), latest_response=reply.content)

    # ---- 查询与维护 ----

    def export_conversation(self, conversation_id: Optional[str] = None) -> str:
        """导出会话为 JSON 文本，不修改存储。"""

        log = self.get_history(conversation_id)
        return json.dumps(
            {
                "conversationId": log.conversation_id,
                "exportedAt": utc_now_iso(),
                "messages": log.to_list(),
            },
            ensure_ascii=False,
            indent=2,
        )

    def compute_statistics(self, conversation_id: Optional[str] = None) -> ConversationStats:
        log = self.get_history(conversation_id)
        msgs = log.messages
        total = len(msgs)
        return ConversationStats(
            total_messages=total,
            user_message_count=sum(1 for m in msgs if m.role == "user"),
            assistant_message_count=sum(1 for m in msgs if m.role == "assistant"),
            average_content_length=(sum(len(m.content) for m in msgs) / total) if total else 0.0,
            first_timestamp=msgs[0].timestamp if msgs else None,
            last_timestamp=msgs[-1].timestamp if msgs else None,
        )

    def list_conversation_ids(self) -> List[str]:
        return sorted(k[len(self._prefix):] for k in self._store.keys() if k.startswith(self._prefix))

    def delete_conversation(self, conversation_id: str) -> OperationResult:
        """删除会话；不存在时同样视为成功。"""

        self._store.delete(self._key(conversation_id))
        self._release_lock(conversation_id)
        self._log(logging.INFO, "Deleted conversation", {"conversation_id": conversation_id})
        return OperationResult(success=True, message="Conversation deleted")

    def get_suggestions(self) -> List[str]:
        return list(load_suggestions(self._locale))

    # ---- 辅助方法 ----

    def _key(self, conversation_id: str) -> str:
        return f"{self._prefix}{conversation_id}"

    def _lock_for(self, conversation_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(conversation_id)
            if lock is None:
                lock = self._locks[conversation_id] = threading.Lock()
            return lock

    def _release_lock(self, conversation_id: str) -> None:
        """丢弃空闲的会话锁；正在发送中的锁保留。"""

        with self._locks_guard:
            lock = self._locks.get(conversation_id)
            if lock is None or not lock.acquire(blocking=False):
                return
            try:
                del self._locks[conversation_id]
            finally:
                lock.release()

    def _coerce_log(self, cid: str, current_log: Optional[LogLike]) -> ConversationLog:
        if current_log is None:
            return self.get_history(cid)
        if isinstance(current_log, ConversationLog):
            return ConversationLog(cid, list(current_log.messages))
        messages = [m if isinstance(m, Message) else Message.from_dict(m) for m in current_log]
        return ConversationLog(cid, messages)

    @staticmethod
    def _reply_message(data: Dict[str, Any]) -> Message:
        content = data.get("response")
        if not isinstance(content, str) or not content.strip():
            raise UnknownError(message="Empty response from assistant")
        timestamp = data.get("timestamp")
        if timestamp:
            try:
                parse_timestamp(timestamp)
            except (TypeError, ValueError):
                timestamp = None
        return Message.create("assistant", content, timestamp or None)

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        log_event(level, message, log_ctx, **fields)
