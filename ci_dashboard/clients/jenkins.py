"""
Jenkins 客户端

通过 Jenkins 的 .../api/json REST 约定查询队列、执行器、负载和视图中的 Job。
每个方法对应一次网络往返，失败时抛出 ci_dashboard.errors 中的异常。
"""

from typing import List, Optional

import httpx

from ..models import Executors, Job, OverallLoad, Queue, View
from .http import DEFAULT_TIMEOUT, HTTPClient, join_url

JSON_API = "api/json"
QUEUE_PATH = f"queue/{JSON_API}"
COMPUTER_PATH = f"computer/{JSON_API}"
OVERALL_LOAD_PATH = f"overallLoad/{JSON_API}"

BROKEN_VIEW = "view/Broken"

# 只请求看板需要的字段，控制响应体大小
JOBS_TREE = (
    "jobs[name,fullDisplayName,color,url,"
    "lastBuild[actions[foundFailureCauses[categories,description],failCount,skipCount,totalCount]]]"
)


class JenkinsClient:
    """单个 Jenkins 实例的只读客户端"""

    def __init__(
        self,
        base_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        debug: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.http = HTTPClient(
            base_url,
            username=username,
            password=password,
            timeout=timeout,
            debug=debug,
            transport=transport
        )

    @property
    def base_url(self) -> str:
        return self.http.base_url

    async def get_queue(self) -> Queue:
        """获取构建队列"""
        return await self.http.get_model(QUEUE_PATH, Queue)

    async def get_executors(self) -> Executors:
        """获取所有节点及执行器信息"""
        return await self.http.get_model(COMPUTER_PATH, Executors)

    async def get_busy_executor_count(self) -> int:
        """获取当前忙碌的执行器数量（只请求 busyExecutors 字段）"""
        executors = await self.http.get_model(
            COMPUTER_PATH, Executors, params={"tree": "busyExecutors"}
        )
        return executors.busy_executors

    async def get_overall_load(self) -> OverallLoad:
        """获取整体负载统计"""
        return await self.http.get_model(OVERALL_LOAD_PATH, OverallLoad)

    async def get_jobs_from_view(self, view_name: str, tree: Optional[str] = None) -> List[Job]:
        """获取指定视图中的 Job"""
        return await self.get_jobs_from_path(f"view/{view_name}", tree)

    async def get_jobs_from_path(self, path: str, tree: Optional[str] = None) -> List[Job]:
        """
        获取任意视图路径下的 Job

        Args:
            path: 相对 base_url 的视图路径，例如 "view/team/view/Broken"
            tree: Jenkins tree 参数，用于裁剪返回字段
        """
        params = {"tree": tree} if tree else None
        view = await self.http.get_model(join_url(path, JSON_API), View, params=params)
        return view.jobs
