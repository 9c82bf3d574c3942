"""
CI Dashboard - CI 构建状态聚合服务

负责：
- 并发拉取所有 Jenkins 实例的队列、执行器和 Broken 视图
- 并发拉取所有 Travis 仓库的分支构建状态
- 合并为与配置同序的 JSON 数组，提供 REST API 给看板前端
"""

__version__ = "1.0.0"
