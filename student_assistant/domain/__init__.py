"""领域层模型与协议。

包含：
- models: Identity / SessionState 以及统一的结果信封。
- conversation: Message / ConversationLog / ConversationStats。
- storage: 本地键值存储协议 KeyValueStore。
- exceptions: 业务异常类型定义。
"""
