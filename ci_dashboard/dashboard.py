"""
Dashboard

持有全部 Jenkins / Travis 实例，对外提供两个只读操作：
并发聚合所有实例，按配置顺序返回结果。每次调用都会完整重新拉取，不做缓存。
"""

import logging
from typing import List, Optional, Sequence

import httpx

from .aggregator import aggregate_hostedbuild_instance, aggregate_jobserver_instance
from .clients.jenkins import JenkinsClient
from .clients.travis import TravisClient
from .config import AppConfig, get_config
from .fanout import gather_ordered
from .instances import HostedBuildInstance, HostedBuildRepository, JobServerInstance
from .models import HostedBuildAggregation, JobServerAggregation

logger = logging.getLogger(__name__)


class Dashboard:
    """所有已配置 CI 实例的容器"""

    def __init__(
        self,
        jobserver_instances: Sequence[JobServerInstance] = (),
        hostedbuild_instances: Sequence[HostedBuildInstance] = (),
        max_concurrency: Optional[int] = None
    ):
        self.jobserver_instances = tuple(jobserver_instances)
        self.hostedbuild_instances = tuple(hostedbuild_instances)
        self.max_concurrency = max_concurrency

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "Dashboard":
        """
        根据配置构建 Dashboard

        Raises:
            ConfigurationError: 某个 Jenkins 实例的 broken_jobs_url 不以 url 开头
        """
        dashboard = cls(
            build_jobserver_instances(config, transport),
            build_hostedbuild_instances(config, transport),
            max_concurrency=config.collector.max_concurrency or None,
        )
        logger.info(
            f"Dashboard initialized with {len(dashboard.jobserver_instances)} Jenkins instance(s) "
            f"and {len(dashboard.hostedbuild_instances)} Travis organization(s)"
        )
        return dashboard

    async def get_broken_jobserver_builds(self) -> List[JobServerAggregation]:
        """获取所有 Jenkins 实例 Broken 视图的聚合结果（与配置同序、等长）"""
        return await gather_ordered(
            self.jobserver_instances,
            lambda instance: aggregate_jobserver_instance(instance, self.max_concurrency),
            self.max_concurrency,
        )

    async def get_broken_hostedbuild_builds(self) -> List[HostedBuildAggregation]:
        """获取所有 Travis 组织中失败仓库的聚合结果（与配置同序、等长）"""
        return await gather_ordered(
            self.hostedbuild_instances,
            lambda instance: aggregate_hostedbuild_instance(instance, self.max_concurrency),
            self.max_concurrency,
        )


def build_jobserver_instances(
    config: AppConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> List[JobServerInstance]:
    """每个 Jenkins 配置项构建一个实例，并绑定各自的客户端"""
    instances = []
    for entry in config.jenkins:
        client = JenkinsClient(
            entry.url,
            username=config.credentials.username,
            password=config.credentials.password,
            timeout=config.collector.timeout,
            debug=config.debug,
            transport=transport,
        )
        instances.append(JobServerInstance(
            name=entry.name,
            url=entry.url,
            client=client,
            broken_jobs_url=entry.broken_jobs_url,
            public_url=entry.public_url,
        ))
    return instances


def build_hostedbuild_instances(
    config: AppConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> List[HostedBuildInstance]:
    """每个 Travis 组织构建一个实例"""
    instances = []
    for org in config.travis.organizations:
        client = TravisClient(
            config.travis.api_url,
            access_token=config.travis.access_token,
            timeout=config.collector.timeout,
            debug=config.debug,
            transport=transport,
        )
        repos = tuple(
            HostedBuildRepository(organization=org.name, name=repo.name, branch=repo.branch)
            for repo in org.repos
        )
        instances.append(HostedBuildInstance(name=org.name, client=client, repos=repos))
    return instances


# 全局 Dashboard 实例（延迟加载）
_dashboard: Optional[Dashboard] = None


def get_dashboard() -> Dashboard:
    """获取全局 Dashboard 实例（单例模式）"""
    global _dashboard
    if _dashboard is None:
        _dashboard = Dashboard.from_config(get_config())
    return _dashboard


def reset_dashboard():
    """重置 Dashboard（主要用于测试）"""
    global _dashboard
    _dashboard = None
