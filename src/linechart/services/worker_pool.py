"""有界线程池：每个请求的阻塞流程（校验、渲染、文件读写）作为独立任务执行。

HTTP 层在 ``submit`` 处挂起一次，任务完成后恢复并发送响应。
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import functools
import logging
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WorkerPool:
    """ThreadPoolExecutor 的异步封装。"""

    def __init__(self, max_workers: int = 4, *, thread_name_prefix: str = "linechart"):
        if max_workers < 1:
            raise ValueError("max_workers 必须为正整数")
        self.max_workers = max_workers
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=thread_name_prefix,
        )

    async def submit(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """在线程池中执行 fn，并等待其结果（异常原样抛出）。"""
        loop = asyncio.get_running_loop()
        call = functools.partial(fn, *args, **kwargs)
        return await loop.run_in_executor(self._executor, call)

    def shutdown(self, wait: bool = True) -> None:
        logger.debug("关闭线程池（%d 个工作线程）", self.max_workers)
        self._executor.shutdown(wait=wait)
