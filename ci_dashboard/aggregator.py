"""
单实例聚合

对一个 CI 实例并发发起所需查询，把结果合并为一条聚合记录。
查询失败只会让对应字段降级为零值，不会让整个实例的聚合失败。
"""

import logging
from typing import Awaitable, Callable, Optional, Tuple

from .clients.http import join_url
from .clients.jenkins import BROKEN_VIEW, JOBS_TREE
from .clients.travis import repo_web_url
from .errors import ConfigurationError
from .fanout import gather_ordered
from .instances import HostedBuildInstance, HostedBuildRepository, JobServerInstance
from .models import (
    COLOR_GREY,
    HostedBuildAggregation,
    Job,
    JobServerAggregation,
)

logger = logging.getLogger(__name__)

Query = Tuple[str, Callable[[], Awaitable[None]]]


def broken_view_path(instance: JobServerInstance) -> str:
    """Broken 视图相对实例 url 的路径"""
    return join_url(instance.broken_jobs_path, BROKEN_VIEW)


async def aggregate_jobserver_instance(
    instance: JobServerInstance,
    limit: Optional[int] = None
) -> JobServerAggregation:
    """
    聚合单个 Jenkins 实例

    并发执行三个互相独立的查询：构建队列、忙碌执行器数、Broken 视图中的 Job。
    任一查询失败：对应字段保持零值（0 或空列表），status 置为 unavailable，
    其他查询的结果照常写入。

    Raises:
        ConfigurationError: 实例的 broken_jobs_url 配置无效
    """
    path = broken_view_path(instance)

    aggregation = JobServerAggregation(
        name=instance.name,
        url=instance.url,
        broken_view_url=instance.broken_view_url,
        public_url=instance.public_url,
    )

    async def fetch_queue():
        queue = await instance.client.get_queue()
        aggregation.build_queue_size = queue.size

    async def fetch_busy_executors():
        aggregation.busy_executor_count = await instance.client.get_busy_executor_count()

    async def fetch_broken_jobs():
        aggregation.jobs = list(await instance.client.get_jobs_from_path(path, JOBS_TREE))

    async def run(query: Query):
        label, fetch = query
        try:
            await fetch()
        except ConfigurationError:
            raise
        except Exception as e:
            logger.warning(f"[{instance.name}] {label} query failed: {e}")
            aggregation.mark_unavailable()

    queries = [
        ("queue", fetch_queue),
        ("busy executors", fetch_busy_executors),
        ("broken jobs", fetch_broken_jobs),
    ]
    await gather_ordered(queries, run, limit)

    return aggregation


async def aggregate_hostedbuild_instance(
    instance: HostedBuildInstance,
    limit: Optional[int] = None
) -> HostedBuildAggregation:
    """
    聚合单个 Travis 组织

    并发查询每个仓库，按配置顺序收集后只保留未成功（非 green）的 Job。
    单个仓库查询失败表现为 grey 的 Job，实例 status 始终为 ok。
    """

    async def fetch_job(repo: HostedBuildRepository) -> Job:
        try:
            return await instance.client.get_job_status(repo)
        except Exception as e:
            logger.warning(f"[{instance.name}] status query for {repo.slug} failed: {e}")
            return Job(
                name=repo.name,
                url=repo_web_url(repo.organization, repo.name),
                color=COLOR_GREY,
            )

    jobs = await gather_ordered(instance.repos, fetch_job, limit)

    return HostedBuildAggregation(
        name=instance.name,
        url=instance.url,
        jobs=[job for job in jobs if not job.is_successful()],
    )
