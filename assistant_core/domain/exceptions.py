"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在 API 层或 UI 层做统一捕获与用户提示。
"""

from typing import Optional


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "RATE_LIMIT"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 backend、provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(BusinessError):
    """第三方 API 返回非 2xx/429 错误时抛出。"""


class RateLimitError(BusinessError):
    """Provider 限流/配额耗尽错误，由 FallbackExecutor 负责退避并切换后端。"""


class ValidationError(BusinessError):
    """参数或配置校验失败。"""


class BackendsExhaustedError(BusinessError):
    """优先级列表中的所有后端均失败。

    这是 FallbackExecutor 唯一会向外抛出的异常，携带最后一个后端的错误。
    调用方必须捕获并转换为降级响应。
    """

    def __init__(self, last_backend: Optional[str], last_error: Optional[BaseException]):
        self.last_backend = last_backend
        self.last_error = last_error
        if last_error is None:
            message = "No model backends configured"
        else:
            message = f"All model backends failed; last backend {last_backend!r}: {last_error}"
        super().__init__(
            code="BACKENDS_EXHAUSTED",
            message=message,
            http_status=503,
            last_backend=last_backend,
        )

    @property
    def last_error_code(self) -> str:
        code = getattr(self.last_error, "code", None)
        if code:
            return str(code)
        if self.last_error is None:
            return "NO_BACKENDS"
        return type(self.last_error).__name__
