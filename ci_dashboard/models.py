"""
数据模型定义

包括：
- 上游响应模型（Jenkins / Travis 返回的 JSON，仅在单次聚合中使用）
- Pydantic 响应模型（统一输出给前端的聚合结果）
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


STATUS_OK = "ok"
STATUS_UNAVAILABLE = "unavailable"

TYPE_JOBSERVER = "jobserver"
TYPE_HOSTEDBUILD = "hostedbuild"

COLOR_GREEN = "green"
COLOR_RED = "red"
COLOR_GREY = "grey"


class CamelModel(BaseModel):
    """Jenkins 和前端都使用 camelCase 字段名"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Jenkins 上游模型
# =============================================================================

class BuildAction(CamelModel):
    """lastBuild.actions 中的一项（测试结果 / 失败原因）"""
    fail_count: Optional[int] = None
    skip_count: Optional[int] = None
    total_count: Optional[int] = None
    found_failure_causes: Optional[List[dict]] = None


class LastBuild(CamelModel):
    """Job 的最近一次构建"""
    actions: List[BuildAction] = Field(default_factory=list)


class Job(CamelModel):
    """
    构建任务

    Jenkins 视图和 Travis 仓库都归一化为 Job。
    color 为 green 或空字符串时视为成功。
    """
    name: str = ""
    url: str = ""
    color: str = ""
    full_display_name: Optional[str] = None
    last_build: Optional[LastBuild] = None

    def is_successful(self) -> bool:
        return self.color in (COLOR_GREEN, "")


class QueueTask(CamelModel):
    name: str = ""
    url: str = ""
    color: Optional[str] = None


class QueueItem(CamelModel):
    """构建队列中的一项"""
    id: int = 0
    blocked: bool = False
    buildable: bool = False
    stuck: bool = False
    pending: bool = False
    why: Optional[str] = None
    url: Optional[str] = None
    in_queue_since: Optional[int] = None
    task: Optional[QueueTask] = None


class Queue(CamelModel):
    """Jenkins 构建队列（queue/api/json）"""
    items: List[QueueItem] = Field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.items)


class View(CamelModel):
    """Jenkins 视图（view/<name>/api/json）"""
    jobs: List[Job] = Field(default_factory=list)


class Computer(CamelModel):
    """单个节点"""
    display_name: str = ""
    idle: bool = False
    offline: bool = False
    temporarily_offline: bool = False
    num_executors: int = 0
    offline_cause_reason: Optional[str] = None


class Executors(CamelModel):
    """Jenkins 执行器概览（computer/api/json）"""
    busy_executors: int = 0
    total_executors: int = 0
    display_name: str = ""
    computer: List[Computer] = Field(default_factory=list)


class LoadSeries(CamelModel):
    history: List[float] = Field(default_factory=list)
    latest: Optional[float] = None


class LoadStatistic(CamelModel):
    """按 10 秒 / 分钟 / 小时采样的负载序列"""
    sec10: LoadSeries = Field(default_factory=LoadSeries)
    min: LoadSeries = Field(default_factory=LoadSeries)
    hour: LoadSeries = Field(default_factory=LoadSeries)


class OverallLoad(CamelModel):
    """Jenkins 整体负载（overallLoad/api/json）"""
    available_executors: LoadStatistic = Field(default_factory=LoadStatistic)
    busy_executors: LoadStatistic = Field(default_factory=LoadStatistic)
    connecting_executors: LoadStatistic = Field(default_factory=LoadStatistic)
    defined_executors: LoadStatistic = Field(default_factory=LoadStatistic)
    idle_executors: LoadStatistic = Field(default_factory=LoadStatistic)
    online_executors: LoadStatistic = Field(default_factory=LoadStatistic)
    queue_length: LoadStatistic = Field(default_factory=LoadStatistic)
    total_executors: LoadStatistic = Field(default_factory=LoadStatistic)
    total_queue_length: LoadStatistic = Field(default_factory=LoadStatistic)


# =============================================================================
# Travis 上游模型（API v3，snake_case）
# =============================================================================

class TravisBuild(BaseModel):
    id: Optional[int] = None
    number: Optional[str] = None
    state: Optional[str] = None


class TravisBranch(BaseModel):
    """GET /repo/{slug}/branch/{branch}"""
    name: str = ""
    last_build: Optional[TravisBuild] = None


# =============================================================================
# Pydantic 响应模型（用于 API）
# =============================================================================

class Aggregation(CamelModel):
    """单个 CI 实例的聚合结果（公共字段）"""
    name: str
    url: str
    type: Literal["jobserver", "hostedbuild"]
    status: Literal["ok", "unavailable"] = STATUS_OK

    def mark_unavailable(self):
        """只会降级，不会恢复"""
        self.status = STATUS_UNAVAILABLE


class JobServerAggregation(Aggregation):
    """Jenkins 实例聚合结果（GET /api/dashboard/jobserver）"""
    type: Literal["jobserver"] = TYPE_JOBSERVER
    broken_view_url: str = ""
    public_url: Optional[str] = None
    busy_executor_count: int = 0
    build_queue_size: int = 0
    jobs: List[Job] = Field(default_factory=list)


class HostedBuildAggregation(Aggregation):
    """Travis 组织聚合结果（GET /api/dashboard/hostedbuild），jobs 只包含失败的仓库"""
    type: Literal["hostedbuild"] = TYPE_HOSTEDBUILD
    jobs: List[Job] = Field(default_factory=list)


class HealthResponse(CamelModel):
    """健康检查响应"""
    status: str = STATUS_OK
    jobserver_instances: int = 0
    hostedbuild_instances: int = 0
