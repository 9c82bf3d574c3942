"""
HTTP 基础客户端

封装 httpx 请求：拼接 URL、Basic Auth、超时、状态码到异常的映射、JSON 解码。
不做重试，超时由每次请求的 timeout 控制，超时表现为普通的 RemoteError。
"""

import logging
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..errors import DecodeError, NotFoundError, RemoteError, UnauthorizedError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

JSON_TYPE = "application/json"
DEFAULT_TIMEOUT = 30.0
MAX_ERROR_BODY = 500


def join_url(base_url: str, path: str) -> str:
    """拼接 base_url 和相对路径，避免出现重复或缺失的 /"""
    base = base_url.rstrip("/")
    path = path.lstrip("/")
    if not path:
        return base
    return f"{base}/{path}"


class HTTPClient:
    """
    面向单个上游地址的只读 JSON 客户端

    Args:
        base_url: 上游根地址
        username: Basic Auth 用户名（与 password 同时设置才生效）
        password: Basic Auth 密码
        headers: 额外请求头
        timeout: 单次请求超时（秒）
        debug: 为 True 时在 DEBUG 级别记录请求和响应
        transport: 自定义 httpx 传输层（测试用）
    """

    def __init__(
        self,
        base_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        debug: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.debug = debug
        self._auth = (username, password) if username and password else None
        self._headers = {"Accept": JSON_TYPE, "Content-Type": JSON_TYPE}
        if headers:
            self._headers.update(headers)
        self._transport = transport

    def url_for(self, path: str) -> str:
        return join_url(self.base_url, path)

    async def get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        """
        GET 请求并返回解码后的 JSON

        Raises:
            UnauthorizedError: 401
            NotFoundError: 404
            RemoteError: 其他非 2xx 状态码、网络错误或超时
            DecodeError: 响应体不是合法 JSON
        """
        url = self.url_for(path)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                auth=self._auth,
                headers=self._headers,
                transport=self._transport,
                follow_redirects=True
            ) as client:
                response = await client.get(url, params=params)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise RemoteError(f"Request to {url} failed: {e}", url=url) from e

        if self.debug:
            logger.debug(f"[REQ] GET {response.request.url}")
            logger.debug(f"[RESP] {response.status_code}: {response.text}")

        check_status(response)

        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"Invalid JSON from {url}: {e}") from e

    async def get_model(
        self,
        path: str,
        model: Type[M],
        params: Optional[Dict[str, str]] = None
    ) -> M:
        """GET 请求并校验为指定的 Pydantic 模型"""
        data = await self.get_json(path, params=params)
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise DecodeError(f"Unexpected {model.__name__} payload from {self.url_for(path)}: {e}") from e


def check_status(response: httpx.Response):
    """把非 2xx 响应转换为对应的异常"""
    url = str(response.request.url)

    if response.status_code == 401:
        raise UnauthorizedError("Authentication required.", url=url)
    if response.status_code == 404:
        raise NotFoundError("Resource not found.", url=url)
    if not response.is_success:
        raise RemoteError(
            f"Unexpected response from {url}",
            url=url,
            status_code=response.status_code,
            body=response.text[:MAX_ERROR_BODY]
        )
