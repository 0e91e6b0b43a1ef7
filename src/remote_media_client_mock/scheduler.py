"""
延迟任务调度器

将零参数回调推迟到事件循环的后续轮次执行，保证 FIFO 顺序：

- 同一次同步调用中调度的任务按调度顺序执行，且在该调用返回之后执行
- 先调度的任务总是先于后续调用调度的任务执行

基于 loop.call_soon（asyncio 文档保证回调按注册顺序调用）。
"""

import asyncio
from collections.abc import Callable
from typing import Any

from loguru import logger


class DeferredScheduler:
    """
    延迟任务调度器

    不提供单个任务的取消；过期任务由调用方在回调中自行判断状态。
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop
        self._pending = 0
        self._scheduled_total = 0
        self._idle: asyncio.Event | None = None

    @property
    def pending(self) -> int:
        """尚未执行的任务数"""
        return self._pending

    @property
    def scheduled_total(self) -> int:
        """累计调度的任务数"""
        return self._scheduled_total

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError as e:
            raise RuntimeError("延迟任务调度需要运行中的事件循环") from e

    def schedule(self, callback: Callable[[], Any]) -> asyncio.Handle:
        """
        调度任务

        Args:
            callback: 零参数回调

        Returns:
            事件循环句柄
        """
        loop = self._get_loop()
        handle = loop.call_soon(self._run, callback)
        self._pending += 1
        self._scheduled_total += 1
        if self._idle is not None:
            self._idle.clear()
        return handle

    def _run(self, callback: Callable[[], Any]) -> None:
        try:
            callback()
        except Exception as e:
            logger.error(f"延迟任务执行异常 {getattr(callback, '__name__', callback)}: {e}")
        finally:
            self._pending -= 1
            if self._pending == 0 and self._idle is not None:
                self._idle.set()

    async def drain(self) -> None:
        """等待所有已调度任务（包括任务内部新调度的任务）执行完毕"""
        if self._pending == 0:
            return
        if self._idle is None:
            self._idle = asyncio.Event()
        self._idle.clear()
        await self._idle.wait()
