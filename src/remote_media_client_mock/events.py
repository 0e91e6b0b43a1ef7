"""
事件通知通道

提供 on/once/off/emit 的发布订阅接口，由客户端、引擎和引擎 Worker
以组合方式持有（而不是继承）。

- 监听器按注册顺序同步调用
- 错误隔离：单个监听器异常只记录日志，不影响其他监听器
- 协程监听器在当前事件循环中以任务方式调度
"""

import asyncio
import inspect
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from loguru import logger

EventName = str | Enum
Listener = Callable[..., Any]


def event_key(event: EventName) -> str:
    """事件名标准化（接受字符串或字符串枚举）"""
    if isinstance(event, Enum):
        return str(event.value)
    return event


@dataclass
class _Registration:
    """监听器注册项"""

    listener: Listener
    once: bool = False


class EventEmitter:
    """
    事件发射器

    与 EventBus 的区别在于事件以名称（而非类型）区分，
    并且支持一次性监听器。
    """

    def __init__(self, name: str = "emitter"):
        self._name = name
        self._registrations: dict[str, list[_Registration]] = {}
        self._stats = {
            "events_emitted": 0,
            "listeners_invoked": 0,
            "errors": 0,
        }
        # 协程监听器任务（持有引用，防止被回收）
        self._tasks: set[asyncio.Task] = set()

    def on(self, event: EventName, listener: Listener) -> Listener:
        """
        注册监听器

        Args:
            event: 事件名
            listener: 监听函数（同步或异步）

        Returns:
            传入的监听函数（便于作为装饰器使用）
        """
        key = event_key(event)
        self._registrations.setdefault(key, []).append(_Registration(listener))
        return listener

    def once(self, event: EventName, listener: Listener) -> Listener:
        """注册一次性监听器，首次调用前即被移除"""
        key = event_key(event)
        self._registrations.setdefault(key, []).append(
            _Registration(listener, once=True)
        )
        return listener

    def off(self, event: EventName, listener: Listener) -> bool:
        """
        移除监听器

        Returns:
            是否移除成功
        """
        key = event_key(event)
        registrations = self._registrations.get(key)
        if not registrations:
            return False

        for index, registration in enumerate(registrations):
            if registration.listener == listener:
                del registrations[index]
                if not registrations:
                    del self._registrations[key]
                return True
        return False

    def remove_all_listeners(self, event: EventName | None = None) -> int:
        """移除所有监听器，返回移除数量"""
        if event is not None:
            return len(self._registrations.pop(event_key(event), []))

        count = sum(len(r) for r in self._registrations.values())
        self._registrations.clear()
        return count

    def listeners(self, event: EventName) -> list[Listener]:
        """获取事件的所有监听器"""
        return [r.listener for r in self._registrations.get(event_key(event), [])]

    def listener_count(self, event: EventName) -> int:
        return len(self._registrations.get(event_key(event), []))

    def event_names(self) -> list[str]:
        return list(self._registrations)

    def emit(self, event: EventName, *args: Any) -> bool:
        """
        同步发布事件

        Args:
            event: 事件名
            *args: 传递给监听器的参数

        Returns:
            是否有监听器被调用
        """
        key = event_key(event)
        self._stats["events_emitted"] += 1

        registrations = self._registrations.get(key)
        if not registrations:
            return False

        # 使用快照，监听器内部增删不影响本次发布
        snapshot = list(registrations)
        for registration in snapshot:
            if registration.once:
                self._discard(key, registration)

        for registration in snapshot:
            self._stats["listeners_invoked"] += 1
            try:
                result = registration.listener(*args)
                if inspect.isawaitable(result):
                    self._spawn(key, result)
            except Exception as e:
                self._stats["errors"] += 1
                logger.error(f"[{self._name}] 事件 {key} 监听器异常: {e}")

        return True

    def get_stats(self) -> dict[str, int]:
        """获取统计信息"""
        return {
            **self._stats,
            "registered_events": len(self._registrations),
            "total_listeners": sum(len(r) for r in self._registrations.values()),
        }

    @property
    def pending_tasks(self) -> int:
        """尚未完成的协程监听器任务数"""
        return len(self._tasks)

    def _spawn(self, key: str, awaitable: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._stats["errors"] += 1
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            logger.error(f"[{self._name}] 事件 {key} 的协程监听器需要运行中的事件循环，已丢弃")
            return

        task = asyncio.ensure_future(awaitable, loop=loop)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._on_task_done(key, t))

    def _on_task_done(self, key: str, task: asyncio.Future) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._stats["errors"] += 1
            logger.error(f"[{self._name}] 事件 {key} 协程监听器异常: {exc}")

    def _discard(self, key: str, registration: _Registration) -> None:
        registrations = self._registrations.get(key)
        if not registrations:
            return
        for index, existing in enumerate(registrations):
            if existing is registration:
                del registrations[index]
                break
        if not registrations:
            del self._registrations[key]
