"""
并发扇出工具

Dashboard 层（每个实例一个任务）和单实例层（每个查询 / 仓库一个任务）
共用同一个 “并发执行 + 等待全部完成” 原语。
"""

import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def gather_ordered(
    items: Sequence[T],
    func: Callable[[T], Awaitable[R]],
    limit: Optional[int] = None
) -> List[R]:
    """
    对每个 item 并发调用 func，按输入顺序返回结果

    每个任务只写入自己下标对应的槽位，完成顺序不影响结果顺序。
    func 抛出的异常会原样向上传播（其余未完成的任务被取消），
    调用方负责在 func 内部处理可降级的错误。

    Args:
        items: 输入序列
        func: 异步函数
        limit: 最大并发数，None 或 0 表示不限制

    Returns:
        与 items 等长、同序的结果列表
    """
    results: List[Optional[R]] = [None] * len(items)
    semaphore = asyncio.Semaphore(limit) if limit else None

    async def run(index: int, item: T):
        if semaphore is None:
            results[index] = await func(item)
            return
        async with semaphore:
            results[index] = await func(item)

    tasks = [asyncio.ensure_future(run(i, item)) for i, item in enumerate(items)]
    try:
        await asyncio.gather(*tasks)
    except Exception:
        # 一个任务失败时取消其余任务，并等待它们结束后再抛出
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    return results  # type: ignore[return-value]
