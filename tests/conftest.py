"""
测试公共夹具

- 每个测试使用默认配置（不读取工作目录下的 config.yaml）
- 提供实现客户端能力接口的假客户端
"""

import asyncio
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# 添加项目路径到 sys.path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ci_dashboard.config import reset_config
from ci_dashboard.dashboard import reset_dashboard
from ci_dashboard.models import COLOR_GREY, Job, Queue, QueueItem


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """指向不存在的配置文件，并清理环境变量覆盖"""
    monkeypatch.setenv("CI_DASHBOARD_CONFIG_PATH", str(tmp_path / "missing.yaml"))
    for name in ("USERNAME", "PASSWORD", "BIND_ADDRESS", "DEBUG", "TRAVIS_TOKEN"):
        monkeypatch.delenv(f"CI_DASHBOARD_{name}", raising=False)
    reset_config()
    reset_dashboard()
    yield
    reset_config()
    reset_dashboard()


def queue_payload(size: int) -> dict:
    """构造 Jenkins queue/api/json 响应"""
    return {
        "_class": "hudson.model.Queue",
        "items": [
            {
                "_class": "hudson.model.Queue$BuildableItem",
                "id": 1000 + i,
                "blocked": False,
                "buildable": True,
                "stuck": False,
                "inQueueSince": 1500000000000 + i,
                "why": "Waiting for next available executor",
                "task": {
                    "name": f"job-{i}",
                    "url": f"https://ci.example.com/job/job-{i}/",
                    "color": "blue",
                },
            }
            for i in range(size)
        ],
    }


def view_payload(*names: str) -> dict:
    """构造 Jenkins view/<name>/api/json 响应"""
    return {
        "_class": "hudson.model.ListView",
        "jobs": [
            {
                "_class": "hudson.model.FreeStyleProject",
                "name": name,
                "fullDisplayName": f"{name} (full)",
                "color": "red",
                "url": f"https://ci.example.com/job/{name}/",
                "lastBuild": {
                    "actions": [
                        {},
                        {"failCount": 2, "skipCount": 1, "totalCount": 120},
                        {"foundFailureCauses": [{"categories": ["infra"], "description": "Agent lost"}]},
                    ]
                },
            }
            for name in names
        ],
    }


class FakeJenkinsClient:
    """假的 Jenkins 客户端，errors 中的方法会抛出对应异常"""

    def __init__(
        self,
        queue_size: int = 0,
        busy_executors: int = 0,
        jobs: Optional[List[Job]] = None,
        errors: Optional[Dict[str, Exception]] = None,
        delay: float = 0.0
    ):
        self.queue_size = queue_size
        self.busy_executors = busy_executors
        self.jobs = jobs or []
        self.errors = errors or {}
        self.delay = delay
        self.paths: List[str] = []

    async def _maybe_fail(self, method: str):
        if self.delay:
            await asyncio.sleep(self.delay)
        if method in self.errors:
            raise self.errors[method]

    async def get_queue(self) -> Queue:
        await self._maybe_fail("get_queue")
        return Queue(items=[QueueItem(id=i) for i in range(self.queue_size)])

    async def get_busy_executor_count(self) -> int:
        await self._maybe_fail("get_busy_executor_count")
        return self.busy_executors

    async def get_jobs_from_path(self, path: str, tree: str) -> List[Job]:
        self.paths.append(path)
        await self._maybe_fail("get_jobs_from_path")
        return list(self.jobs)


class FakeTravisClient:
    """假的 Travis 客户端，按仓库名返回颜色；未知仓库返回 grey"""

    def __init__(self, colors: Dict[str, str], delays: Optional[Dict[str, float]] = None):
        self.colors = colors
        self.delays = delays or {}

    async def get_job_status(self, repo) -> Job:
        await asyncio.sleep(self.delays.get(repo.name, 0))
        return Job(
            name=repo.name,
            url=f"https://travis-ci.org/{repo.organization}/{repo.name}",
            color=self.colors.get(repo.name, COLOR_GREY),
        )
