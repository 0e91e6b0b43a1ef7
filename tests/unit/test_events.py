"""
事件通道测试

测试监听器注册、一次性监听器、移除和错误隔离。
"""

import asyncio

import pytest

from remote_media_client_mock.domain.enums import ClientEvent
from remote_media_client_mock.events import EventEmitter


class TestEventEmitter:
    """事件发射器测试"""

    def test_emit_in_registration_order(self):
        """监听器按注册顺序调用"""
        emitter = EventEmitter()
        calls = []

        emitter.on("ping", lambda: calls.append("a"))
        emitter.on("ping", lambda: calls.append("b"))

        assert emitter.emit("ping") is True
        assert calls == ["a", "b"]

    def test_emit_without_listeners(self):
        """无监听器时返回 False"""
        emitter = EventEmitter()
        assert emitter.emit("ping") is False

    def test_emit_passes_arguments(self):
        emitter = EventEmitter()
        received = []

        emitter.on("data", lambda *args: received.append(args))
        emitter.emit("data", 1, "two")

        assert received == [(1, "two")]

    def test_once_listener_runs_once(self):
        """一次性监听器只调用一次"""
        emitter = EventEmitter()
        calls = []

        emitter.once("ping", lambda: calls.append(1))
        emitter.emit("ping")
        emitter.emit("ping")

        assert calls == [1]
        assert emitter.listener_count("ping") == 0

    def test_off_removes_listener(self):
        emitter = EventEmitter()
        calls = []

        def listener():
            calls.append(1)

        emitter.on("ping", listener)
        assert emitter.off("ping", listener) is True
        assert emitter.off("ping", listener) is False

        emitter.emit("ping")
        assert calls == []

    def test_off_removes_once_listener(self):
        emitter = EventEmitter()

        def listener():
            pass

        emitter.once("ping", listener)
        assert emitter.off("ping", listener) is True
        assert emitter.listener_count("ping") == 0

    def test_enum_and_string_names_are_equivalent(self):
        """字符串枚举与其值等价"""
        emitter = EventEmitter()
        calls = []

        emitter.on(ClientEvent.TRANSPORT_OPEN, lambda: calls.append(1))
        emitter.emit("transport_open")

        assert calls == [1]
        assert emitter.event_names() == ["transport_open"]

    def test_listener_error_is_isolated(self):
        """单个监听器异常不影响其他监听器"""
        emitter = EventEmitter()
        calls = []

        def broken():
            raise RuntimeError("boom")

        emitter.on("ping", broken)
        emitter.on("ping", lambda: calls.append("ok"))

        assert emitter.emit("ping") is True
        assert calls == ["ok"]
        assert emitter.get_stats()["errors"] == 1

    def test_listener_added_during_emit_not_called(self):
        """发布期间新增的监听器不参与本次发布"""
        emitter = EventEmitter()
        calls = []

        def add_more():
            calls.append("first")
            emitter.on("ping", lambda: calls.append("late"))

        emitter.on("ping", add_more)
        emitter.emit("ping")
        assert calls == ["first"]

        emitter.emit("ping")
        assert calls == ["first", "first", "late"]

    def test_remove_all_listeners(self):
        emitter = EventEmitter()
        emitter.on("a", lambda: None)
        emitter.on("a", lambda: None)
        emitter.on("b", lambda: None)

        assert emitter.remove_all_listeners("a") == 2
        assert emitter.listener_count("b") == 1
        assert emitter.remove_all_listeners() == 1
        assert emitter.event_names() == []

    @pytest.mark.asyncio
    async def test_coroutine_listener_is_scheduled(self):
        """协程监听器以任务方式调度"""
        emitter = EventEmitter()
        done = asyncio.Event()

        async def listener(value):
            assert value == 42
            done.set()

        emitter.on("ping", listener)
        emitter.emit("ping", 42)

        await asyncio.wait_for(done.wait(), timeout=1)

    @pytest.mark.asyncio
    async def test_coroutine_listener_error_is_counted(self):
        """协程监听器异常计入统计，任务完成后释放引用"""
        emitter = EventEmitter()

        async def broken():
            raise RuntimeError("boom")

        emitter.on("ping", broken)
        emitter.emit("ping")
        assert emitter.pending_tasks == 1

        await asyncio.sleep(0.01)

        assert emitter.pending_tasks == 0
        assert emitter.get_stats()["errors"] == 1

    def test_coroutine_listener_without_loop_is_dropped(self):
        """没有运行中的事件循环时协程监听器被丢弃并计为错误"""
        emitter = EventEmitter()
        calls = []

        async def listener():
            calls.append("called")

        emitter.on("ping", listener)
        emitter.on("ping", lambda: calls.append("sync"))

        assert emitter.emit("ping") is True
        assert calls == ["sync"]
        assert emitter.pending_tasks == 0
        assert emitter.get_stats()["errors"] == 1
