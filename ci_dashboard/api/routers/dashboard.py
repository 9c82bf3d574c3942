"""
看板 API

每次请求都重新拉取所有实例，始终返回 200 和与配置同序的完整数组；
实例是否可用只通过 status 字段（Jenkins）或 grey 的 Job（Travis）体现。
"""

from typing import List

from fastapi import APIRouter, Depends

from ...dashboard import Dashboard
from ...models import HealthResponse, HostedBuildAggregation, JobServerAggregation
from ..dependencies import get_dashboard_instance

router = APIRouter(prefix="/api", tags=["dashboard"])


@router.get("/dashboard/jobserver", response_model=List[JobServerAggregation])
async def list_broken_jobserver_builds(dashboard: Dashboard = Depends(get_dashboard_instance)):
    """获取所有 Jenkins 实例的 Broken 视图、队列长度和忙碌执行器数"""
    return await dashboard.get_broken_jobserver_builds()


@router.get(
    "/dashboard/hostedbuild",
    response_model=List[HostedBuildAggregation],
    response_model_exclude_none=True,
)
async def list_broken_hostedbuild_builds(dashboard: Dashboard = Depends(get_dashboard_instance)):
    """获取所有 Travis 组织中失败的仓库"""
    return await dashboard.get_broken_hostedbuild_builds()


@router.get("/health", response_model=HealthResponse)
async def health(dashboard: Dashboard = Depends(get_dashboard_instance)):
    """健康检查（不访问上游）"""
    return HealthResponse(
        jobserver_instances=len(dashboard.jobserver_instances),
        hostedbuild_instances=len(dashboard.hostedbuild_instances),
    )
