"""
单元测试：单实例聚合

测试覆盖：
- Jenkins：三个查询全部成功 / 部分失败 / 全部失败
- Jenkins：Broken 视图路径（含 broken_jobs_url 子视图）
- Travis：只保留失败的 Job、保持配置顺序、status 始终为 ok
"""

import asyncio

import httpx

from ci_dashboard.aggregator import (
    aggregate_hostedbuild_instance,
    aggregate_jobserver_instance,
)
from ci_dashboard.clients.jenkins import JOBS_TREE, JenkinsClient
from ci_dashboard.errors import NotFoundError, RemoteError, UnauthorizedError
from ci_dashboard.instances import (
    HostedBuildInstance,
    HostedBuildRepository,
    JobServerInstance,
)
from ci_dashboard.models import Job

from conftest import FakeJenkinsClient, FakeTravisClient, queue_payload, view_payload

URL = "http://ci.jenkins.io"

BROKEN_JOBS = [
    Job(name="core", url=f"{URL}/job/core/", color="red"),
    Job(name="docs", url=f"{URL}/job/docs/", color="yellow"),
]


def jenkins_instance(client, **kwargs) -> JobServerInstance:
    return JobServerInstance(name="Jenkins Public", url=URL, client=client, **kwargs)


class TestJobServerAggregation:
    """Jenkins 实例聚合测试"""

    def test_all_queries_succeed(self):
        client = FakeJenkinsClient(queue_size=28, busy_executors=5, jobs=BROKEN_JOBS)

        result = asyncio.run(aggregate_jobserver_instance(jenkins_instance(client)))

        assert result.name == "Jenkins Public"
        assert result.url == URL
        assert result.type == "jobserver"
        assert result.status == "ok"
        assert result.build_queue_size == 28
        assert result.busy_executor_count == 5
        assert [job.name for job in result.jobs] == ["core", "docs"]
        assert result.broken_view_url == URL

    def test_all_queries_fail(self):
        """测试：三个查询全部失败时所有字段为零值"""
        client = FakeJenkinsClient(
            queue_size=3,
            busy_executors=2,
            jobs=BROKEN_JOBS,
            errors={
                "get_queue": RemoteError("timeout"),
                "get_busy_executor_count": UnauthorizedError("Authentication required."),
                "get_jobs_from_path": NotFoundError("Resource not found."),
            },
        )

        result = asyncio.run(aggregate_jobserver_instance(jenkins_instance(client)))

        assert result.status == "unavailable"
        assert result.busy_executor_count == 0
        assert result.build_queue_size == 0
        assert result.jobs == []

    def test_queue_failure_keeps_other_fields(self):
        """测试：只有队列查询失败，其他字段照常填充"""
        client = FakeJenkinsClient(
            queue_size=7,
            busy_executors=4,
            jobs=BROKEN_JOBS,
            errors={"get_queue": RemoteError("boom", status_code=500)},
        )

        result = asyncio.run(aggregate_jobserver_instance(jenkins_instance(client)))

        assert result.status == "unavailable"
        assert result.build_queue_size == 0
        assert result.busy_executor_count == 4
        assert len(result.jobs) == 2

    def test_jobs_failure_keeps_other_fields(self):
        client = FakeJenkinsClient(
            queue_size=7,
            busy_executors=4,
            jobs=BROKEN_JOBS,
            errors={"get_jobs_from_path": RemoteError("boom", status_code=500)},
        )

        result = asyncio.run(aggregate_jobserver_instance(jenkins_instance(client)))

        assert result.status == "unavailable"
        assert result.build_queue_size == 7
        assert result.busy_executor_count == 4
        assert result.jobs == []

    def test_unexpected_exception_degrades(self):
        """测试：客户端抛出任意异常也只会降级"""
        client = FakeJenkinsClient(
            busy_executors=1,
            errors={"get_busy_executor_count": KeyError("busyExecutors")},
        )

        result = asyncio.run(aggregate_jobserver_instance(jenkins_instance(client)))

        assert result.status == "unavailable"
        assert result.busy_executor_count == 0

    def test_broken_view_path_defaults_to_root(self):
        client = FakeJenkinsClient()

        asyncio.run(aggregate_jobserver_instance(jenkins_instance(client)))

        assert client.paths == ["/view/Broken"]

    def test_broken_view_path_uses_sub_view(self):
        """测试：broken_jobs_url 指向子视图时在其下查找 Broken 视图"""
        client = FakeJenkinsClient()
        instance = jenkins_instance(client, broken_jobs_url=f"{URL}/view/team")

        result = asyncio.run(aggregate_jobserver_instance(instance))

        assert client.paths == ["/view/team/view/Broken"]
        assert result.broken_view_url == f"{URL}/view/team"

    def test_public_url_passed_through(self):
        client = FakeJenkinsClient()
        instance = jenkins_instance(client, public_url="https://ci.example.com")

        result = asyncio.run(aggregate_jobserver_instance(instance))

        assert result.public_url == "https://ci.example.com"

    def test_jobs_tree_restricts_fields(self):
        captured = {}

        class RecordingClient(FakeJenkinsClient):
            async def get_jobs_from_path(self, path, tree):
                captured["tree"] = tree
                return []

        asyncio.run(aggregate_jobserver_instance(jenkins_instance(RecordingClient())))

        assert captured["tree"] == JOBS_TREE
        assert captured["tree"].startswith("jobs[name,fullDisplayName,color,url,lastBuild[actions[")

    def test_queue_fixture_over_http(self):
        """测试：队列响应中的 28 项经过客户端和聚合后为 buildQueueSize == 28"""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/queue/api/json":
                return httpx.Response(200, json=queue_payload(28))
            if request.url.path == "/computer/api/json":
                return httpx.Response(200, json={"busyExecutors": 3})
            if request.url.path == "/view/Broken/api/json":
                return httpx.Response(200, json=view_payload("core"))
            return httpx.Response(404)

        client = JenkinsClient(URL, transport=httpx.MockTransport(handler))

        result = asyncio.run(aggregate_jobserver_instance(jenkins_instance(client)))

        assert result.status == "ok"
        assert result.build_queue_size == 28
        assert result.busy_executor_count == 3
        assert [job.name for job in result.jobs] == ["core"]
        assert result.model_dump(by_alias=True)["buildQueueSize"] == 28


class TestHostedBuildAggregation:
    """Travis 组织聚合测试"""

    def make_instance(self, colors, delays=None) -> HostedBuildInstance:
        repos = tuple(
            HostedBuildRepository(organization="org", name=name)
            for name in colors
        )
        return HostedBuildInstance(
            name="org",
            client=FakeTravisClient(colors, delays),
            repos=repos,
        )

    def test_only_broken_jobs_returned(self):
        instance = self.make_instance({"repo1": "red", "repo2": "green", "repo3": ""})

        result = asyncio.run(aggregate_hostedbuild_instance(instance))

        assert result.name == "org"
        assert result.url == "https://travis-ci.org/org"
        assert result.type == "hostedbuild"
        assert result.status == "ok"
        assert [job.name for job in result.jobs] == ["repo1"]
        assert result.jobs[0].color == "red"

    def test_grey_jobs_are_broken_and_status_stays_ok(self):
        """测试：查询失败的仓库（grey）出现在结果中，实例 status 不变"""
        instance = self.make_instance({"repo1": "grey", "repo2": "green"})

        result = asyncio.run(aggregate_hostedbuild_instance(instance))

        assert result.status == "ok"
        assert [(job.name, job.color) for job in result.jobs] == [("repo1", "grey")]

    def test_configuration_order_preserved(self):
        """测试：完成顺序不同，结果仍按配置顺序"""
        instance = self.make_instance(
            {"a": "red", "b": "red", "c": "green", "d": "red"},
            delays={"a": 0.03, "b": 0.0, "d": 0.01},
        )

        result = asyncio.run(aggregate_hostedbuild_instance(instance))

        assert [job.name for job in result.jobs] == ["a", "b", "d"]

    def test_client_exception_becomes_grey_job(self):
        class FailingClient:
            async def get_job_status(self, repo):
                raise RemoteError("timeout")

        repo = HostedBuildRepository(organization="org", name="repo")
        instance = HostedBuildInstance(name="org", client=FailingClient(), repos=(repo,))

        result = asyncio.run(aggregate_hostedbuild_instance(instance))

        assert result.status == "ok"
        assert len(result.jobs) == 1
        assert result.jobs[0].color == "grey"
        assert result.jobs[0].url == "https://travis-ci.org/org/repo"

    def test_no_repos(self):
        instance = HostedBuildInstance(name="org", client=FakeTravisClient({}), repos=())

        result = asyncio.run(aggregate_hostedbuild_instance(instance))

        assert result.jobs == []
        assert result.status == "ok"
