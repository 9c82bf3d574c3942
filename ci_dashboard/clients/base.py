"""
CI 客户端能力接口

两类 CI 系统各自实现一组只读查询，实例在加载配置时绑定具体实现。
"""

from typing import TYPE_CHECKING, List, Protocol

from ..models import Job, Queue

if TYPE_CHECKING:
    from ..instances import HostedBuildRepository


class JobServerClient(Protocol):
    """Jenkins 类自建 CI（队列、执行器、视图）"""

    async def get_queue(self) -> Queue:
        ...

    async def get_busy_executor_count(self) -> int:
        ...

    async def get_jobs_from_path(self, path: str, tree: str) -> List[Job]:
        ...


class HostedBuildClient(Protocol):
    """Travis 类托管 CI（按仓库 + 分支查询最新构建）"""

    async def get_job_status(self, repo: "HostedBuildRepository") -> Job:
        ...
