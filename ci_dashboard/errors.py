"""
异常定义

客户端层抛出的异常在单实例聚合层被吸收为降级数据，
ConfigurationError 除外（部署配置错误，必须直接中止）。
"""

from typing import Optional


class DashboardError(RuntimeError):
    """所有 Dashboard 异常的基类"""
    pass


class ClientError(DashboardError):
    """上游 CI 请求失败"""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.url = url


class UnauthorizedError(ClientError):
    """上游返回 401"""

    status_code = 401


class NotFoundError(ClientError):
    """上游返回 404"""

    status_code = 404


class RemoteError(ClientError):
    """其他非 2xx 状态码或网络/传输失败"""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        body: Optional[str] = None
    ):
        super().__init__(message, url)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (status {self.status_code})"


class DecodeError(DashboardError):
    """响应体不是预期的 JSON 结构"""
    pass


class ConfigurationError(DashboardError, ValueError):
    """实例配置无效（例如 broken_jobs_url 不以 url 开头）"""
    pass
