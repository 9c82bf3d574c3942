"""
Travis 客户端

通过 Travis API v3 查询仓库指定分支的最新构建状态，并映射为 Job：
- passed -> green
- 其他状态 -> red
- 查询失败 -> grey（仍返回带名称和链接的 Job）
"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from ..models import COLOR_GREEN, COLOR_GREY, COLOR_RED, Job, TravisBranch
from .http import DEFAULT_TIMEOUT, HTTPClient

logger = logging.getLogger(__name__)

TRAVIS_URL = "https://travis-ci.org/"
TRAVIS_API_URL = "https://api.travis-ci.org/"
TRAVIS_API_VERSION = "3"

STATE_PASSED = "passed"


def repo_web_url(organization: str, name: str) -> str:
    return f"{TRAVIS_URL}{organization}/{name}"


class TravisClient:
    """Travis 只读客户端，同一组织下的所有仓库共用一个实例"""

    def __init__(
        self,
        api_url: str = TRAVIS_API_URL,
        access_token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        debug: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        headers = {"Travis-API-Version": TRAVIS_API_VERSION}
        if access_token:
            headers["Authorization"] = f"token {access_token}"

        self.http = HTTPClient(
            api_url,
            headers=headers,
            timeout=timeout,
            debug=debug,
            transport=transport
        )

    async def get_branch(self, repo) -> TravisBranch:
        """查询仓库分支（含最新构建）"""
        path = f"repo/{quote(repo.slug, safe='')}/branch/{quote(repo.branch, safe='')}"
        return await self.http.get_model(path, TravisBranch)

    async def get_job_status(self, repo) -> Job:
        """
        获取仓库分支的构建状态

        不抛出异常：查询失败时返回 grey 的 Job，保证看板上仍有该仓库的位置。
        """
        job = Job(name=repo.name, url=repo_web_url(repo.organization, repo.name))

        try:
            branch = await self.get_branch(repo)
        except Exception as e:
            logger.warning(f"Failed to fetch Travis status for {repo.slug}@{repo.branch}: {e}")
            job.color = COLOR_GREY
            return job

        if branch.last_build is None or branch.last_build.state is None:
            logger.warning(f"No build found for {repo.slug}@{repo.branch}")
            job.color = COLOR_GREY
        elif branch.last_build.state == STATE_PASSED:
            job.color = COLOR_GREEN
        else:
            job.color = COLOR_RED

        return job
