"""
CI 客户端模块

包含 Jenkins、Travis 客户端及共用的 HTTP 封装
"""

from .base import HostedBuildClient, JobServerClient
from .jenkins import JenkinsClient
from .travis import TravisClient

__all__ = [
    "HostedBuildClient",
    "JobServerClient",
    "JenkinsClient",
    "TravisClient",
]
