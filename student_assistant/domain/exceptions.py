"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在 SessionStore / ConversationManager 边界统一捕获并转换成结果信封。

code 即对外暴露的失败原因字符串（"Unauthenticated"、"ServerError" 等），
调用方据此决定 UI 处理方式（例如 Unauthenticated 时提示重新登录）。
"""

from typing import Optional


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码，同时也是返回给调用方的失败原因。
        message: 用户可读错误信息。
        http_status: 对应的 HTTP 状态码；网络层错误为 None。
        extra: 其他补充字段（例如 endpoint、body 等）。
    """

    default_code = "UnknownError"
    default_message = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        http_status: Optional[int] = None,
        **extra,
    ):
        self.code = code or self.default_code
        # detail 只保存来自服务端/网络层的具体描述，没有时为 None
        self.detail = message or None
        self.message = message or self.default_message
        self.http_status = http_status
        self.extra = extra
        super().__init__(self.message)


class ValidationError(BusinessError):
    """调用方输入不合法（如空消息），在发起网络请求前抛出。"""

    default_code = "ValidationError"
    default_message = "Message cannot be empty"


class Unauthenticated(BusinessError):
    """凭证缺失、无效或过期（HTTP 401）。"""

    default_code = "Unauthenticated"
    default_message = "Session expired. Please log in again."


class ServerError(BusinessError):
    """服务端错误（HTTP 5xx），可提示用户稍后重试。"""

    default_code = "ServerError"
    default_message = "Server error. Please try again later."


class TransportError(BusinessError):
    """网络层错误，例如连接失败、超时等，没有 HTTP 状态码。"""

    default_code = "TransportError"
    default_message = "Unable to reach the assistant service"


class UnknownError(BusinessError):
    """其他无法归类的非 2xx 响应或无法解析的响应体。"""

    default_code = "UnknownError"
