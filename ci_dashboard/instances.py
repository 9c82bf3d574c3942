"""
CI 实例描述

启动时由配置构建，之后只读，可在并发任务间共享。
客户端在构建时绑定，不会被替换。
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from .clients.base import HostedBuildClient, JobServerClient
from .clients.travis import TRAVIS_URL
from .errors import ConfigurationError

DEFAULT_BRANCH = "master"


def resolve_broken_jobs_path(url: str, broken_jobs_url: str) -> str:
    """
    计算 broken 视图相对 url 的路径

    Raises:
        ConfigurationError: broken_jobs_url 不以 url 开头
    """
    if not broken_jobs_url.startswith(url):
        raise ConfigurationError(
            f"Instance URL '{url}' must be part of broken jobs URL '{broken_jobs_url}'."
        )
    return broken_jobs_url[len(url):]


@dataclass(frozen=True)
class JobServerInstance:
    """
    一个 Jenkins 实例

    Attributes:
        name: 显示名称
        url: 拉取数据使用的地址
        client: 绑定的客户端
        broken_jobs_url: 可选，包含 Broken 视图的子视图地址，必须以 url 开头
        public_url: 可选，给用户点击的地址（url 为内网地址时使用）
    """
    name: str
    url: str
    client: JobServerClient = field(repr=False, compare=False)
    broken_jobs_url: Optional[str] = None
    public_url: Optional[str] = None

    def __post_init__(self):
        # 配置错误在构建时立即暴露，不推迟到请求时
        resolve_broken_jobs_path(self.url, self.broken_view_url)

    @property
    def broken_view_url(self) -> str:
        return self.broken_jobs_url or self.url

    @property
    def broken_jobs_path(self) -> str:
        return resolve_broken_jobs_path(self.url, self.broken_view_url)


@dataclass(frozen=True)
class HostedBuildRepository:
    """Travis 上被跟踪的一个仓库分支"""
    organization: str
    name: str
    branch: str = DEFAULT_BRANCH

    @property
    def slug(self) -> str:
        return f"{self.organization}/{self.name}"


@dataclass(frozen=True)
class HostedBuildInstance:
    """一个 Travis 组织及其仓库列表（按配置顺序）"""
    name: str
    client: HostedBuildClient = field(repr=False, compare=False)
    repos: Tuple[HostedBuildRepository, ...] = ()

    @property
    def url(self) -> str:
        return f"{TRAVIS_URL}{self.name}"
