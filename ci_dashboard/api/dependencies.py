"""
依赖注入模块

提供 FastAPI 依赖项。
"""

from ..dashboard import Dashboard, get_dashboard


async def get_dashboard_instance() -> Dashboard:
    """获取 Dashboard 实例"""
    return get_dashboard()
