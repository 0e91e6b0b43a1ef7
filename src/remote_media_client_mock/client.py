"""
远端媒体引擎客户端 Mock

模拟真实异步网络客户端可观察到的行为：延迟的状态转换、有序的事件、
幂等的关闭、可重新打开，以及仅在已连接时可用的诊断信息。
不进行任何网络 I/O。

事件顺序（每次成功 open）：
    open -> transport_open -> engine -> connected
关闭时同步发出 close（持有引擎能力时先发出 engine(None)）。
客户端主动关闭，因此不发出 disconnected / transport_close。
"""

import asyncio
from functools import partial
from typing import Any

from loguru import logger

from remote_media_client_mock.config import ClientOptions, MockClientConfig, load_config
from remote_media_client_mock.diagnostics import DiagnosticsAggregator, DiagnosticsSnapshot
from remote_media_client_mock.domain.enums import ClientEvent, ReadyState
from remote_media_client_mock.domain.errors import InvalidArgumentError, InvalidStateError
from remote_media_client_mock.domain.state import (
    CLOSED,
    DESTROYED,
    Closed,
    Connected,
    Connecting,
    ConnectionState,
    Destroyed,
    next_session_id,
    ready_state_of,
)
from remote_media_client_mock.engine import MediaEngine, get_media_engine
from remote_media_client_mock.events import EventName, EventEmitter, Listener
from remote_media_client_mock.logging import setup_logging
from remote_media_client_mock.scheduler import DeferredScheduler
from remote_media_client_mock.workers import WorkerRegistry


class RemoteMediaClientMock:
    """
    远端媒体引擎客户端 Mock

    状态：CLOSED（初始）-> CONNECTING -> CONNECTED，close() 回到 CLOSED，
    destroy() 进入终态 DESTROYED。

    每次 open() 分配一个会话 ID，调度出去的任务只在其会话仍处于
    CONNECTING 时生效，因此 open() 后立即 close() 不会再触发任何事件。
    """

    def __init__(
        self,
        url: str | MockClientConfig | dict[str, Any] | None = None,
        transport_class: Any = None,
        *,
        engine: MediaEngine | None = None,
        scheduler: DeferredScheduler | None = None,
        aggregator: DiagnosticsAggregator | None = None,
        sample_workers: bool = True,
    ):
        """
        初始化客户端

        Args:
            url: 远端服务地址，或包含 url/transport_class 的配置；
                为空时客户端保持关闭状态
            transport_class: 传输类（Mock 中不使用）
            engine: 连接后提供的引擎能力（默认全局引擎）
            scheduler: 延迟任务调度器
            aggregator: 诊断聚合器
            sample_workers: get_stats 时是否采样 Worker 进程
        """
        options = ClientOptions.from_value(url, transport_class)
        if options.transport_class is not None:
            logger.debug(f"传输类在 Mock 中不使用: {options.transport_class!r}")

        self._transport_class = options.transport_class
        self._engine = engine or get_media_engine()
        self._scheduler = scheduler or DeferredScheduler()
        self._aggregator = aggregator or DiagnosticsAggregator()
        self._sample_workers = sample_workers

        self._events = EventEmitter(name=type(self).__name__)
        self._state: ConnectionState = CLOSED
        self._url: str | None = None

        self._workers = WorkerRegistry()
        self._workers.attach(self._engine.observer)

        if options.url:
            try:
                self.open(options.url)
            except Exception:
                # 构造失败时不能继续挂在全局 Worker 通知源上
                self._workers.detach()
                raise

    # ==================== 属性 ====================

    @property
    def engine(self) -> MediaEngine | None:
        """引擎能力（仅在已连接时可用）"""
        if isinstance(self._state, Connected):
            return self._state.engine
        return None

    @property
    def ready_state(self) -> ReadyState:
        """
        当前就绪状态

        Raises:
            InvalidStateError: 客户端已销毁
        """
        self._ensure_not_destroyed("ready_state")
        return ready_state_of(self._state)

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def url(self) -> str | None:
        """最近一次 open 使用的地址"""
        return self._url

    @property
    def transport_class(self) -> Any:
        return self._transport_class

    @property
    def closed(self) -> bool:
        return isinstance(self._state, Closed)

    @property
    def connected(self) -> bool:
        return isinstance(self._state, Connected)

    @property
    def destroyed(self) -> bool:
        return isinstance(self._state, Destroyed)

    @property
    def workers(self) -> WorkerRegistry:
        return self._workers

    # ==================== 生命周期 ====================

    def open(self, url: str | None = None) -> "RemoteMediaClientMock":
        """
        打开客户端

        Args:
            url: 远端服务地址；为空时复用上一次的地址

        Returns:
            客户端自身（便于链式调用）

        Raises:
            InvalidStateError: 已销毁或已打开（连接中）
            InvalidArgumentError: 从未提供过地址
        """
        self._ensure_not_destroyed("open")
        if not isinstance(self._state, Closed):
            raise InvalidStateError(
                f"{type(self).__name__} 已打开（或正在打开）",
                state=self._state.name,
            )

        if url is None:
            url = self._url
        if not url:
            raise InvalidArgumentError("url 未定义", argument="url")

        session = next_session_id()

        # 先调度再修改状态：没有事件循环时调度失败，状态保持不变
        self._scheduler.schedule(partial(self._on_open, session))
        self._scheduler.schedule(partial(self._on_transport_open, session))
        self._scheduler.schedule(partial(self._on_connected, session))

        self._state = Connecting(session)
        self._url = url

        logger.debug(f"客户端打开中: url={url} session={session}")
        return self

    def close(self) -> None:
        """
        关闭客户端（已关闭时不做任何事）

        Raises:
            InvalidStateError: 客户端已销毁
        """
        self._ensure_not_destroyed("close")
        if isinstance(self._state, Closed):
            return

        had_engine = isinstance(self._state, Connected)
        self._state = CLOSED
        self._aggregator.release()

        logger.debug(f"客户端已关闭: url={self._url}")

        if had_engine:
            self._events.emit(ClientEvent.ENGINE, None)
        self._events.emit(ClientEvent.CLOSE)

    def destroy(self) -> None:
        """
        销毁客户端（终态，不可逆）

        Raises:
            InvalidStateError: 重复销毁
        """
        self._ensure_not_destroyed("destroy")

        self.close()
        self._workers.detach()
        self._state = DESTROYED

        logger.debug("客户端已销毁")

    async def wait_connected(self, timeout: float | None = None) -> MediaEngine | None:
        """
        等待连接完全建立

        Args:
            timeout: 超时时间（秒），None 表示无限等待

        Returns:
            引擎能力

        Raises:
            InvalidStateError: 客户端已关闭/销毁，或连接建立前被关闭
            asyncio.TimeoutError: 等待超时
        """
        self._ensure_not_destroyed("wait_connected")
        if isinstance(self._state, Connected):
            return self._state.engine
        if isinstance(self._state, Closed):
            raise InvalidStateError("客户端未打开", state=self._state.name)

        loop = asyncio.get_running_loop()
        future: asyncio.Future[None] = loop.create_future()

        def on_connected() -> None:
            if not future.done():
                future.set_result(None)

        def on_close() -> None:
            if not future.done():
                future.set_exception(InvalidStateError("连接建立前客户端已关闭", state="closed"))

        self._events.once(ClientEvent.CONNECTED, on_connected)
        self._events.once(ClientEvent.CLOSE, on_close)
        try:
            await asyncio.wait_for(future, timeout)
        finally:
            self._events.off(ClientEvent.CONNECTED, on_connected)
            self._events.off(ClientEvent.CLOSE, on_close)

        return self.engine

    async def get_stats(self) -> DiagnosticsSnapshot:
        """
        获取诊断快照

        Returns:
            主机、进程以及各 Worker 的诊断信息

        Raises:
            InvalidStateError: 已销毁或未连接
        """
        self._ensure_not_destroyed("get_stats")
        if not isinstance(self._state, Connected):
            raise InvalidStateError("未连接", state=self._state.name)

        worker_ids = self._workers.ids if self._sample_workers else ()
        return await self._aggregator.collect(worker_ids)

    async def __aenter__(self) -> "RemoteMediaClientMock":
        await self.wait_connected()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if not self.destroyed:
            self.destroy()

    # ==================== 事件 ====================

    def on(self, event: EventName, listener: Listener) -> Listener:
        return self._events.on(event, listener)

    def once(self, event: EventName, listener: Listener) -> Listener:
        return self._events.once(event, listener)

    def off(self, event: EventName, listener: Listener) -> bool:
        return self._events.off(event, listener)

    def emit(self, event: EventName, *args: Any) -> bool:
        return self._events.emit(event, *args)

    def listener_count(self, event: EventName) -> int:
        return self._events.listener_count(event)

    # ==================== 内部方法 ====================

    def _ensure_not_destroyed(self, operation: str) -> None:
        if isinstance(self._state, Destroyed):
            raise InvalidStateError(
                f"{type(self).__name__} 已销毁，无法执行 {operation}",
                state=self._state.name,
            )

    def _is_current(self, session: int) -> bool:
        return isinstance(self._state, Connecting) and self._state.session == session

    def _on_open(self, session: int) -> None:
        if self._is_current(session):
            self._events.emit(ClientEvent.OPEN)

    def _on_transport_open(self, session: int) -> None:
        if self._is_current(session):
            self._events.emit(ClientEvent.TRANSPORT_OPEN)

    def _on_connected(self, session: int) -> None:
        if not self._is_current(session):
            logger.debug(f"忽略过期的连接任务: session={session}")
            return

        self._state = Connected(session=session, engine=self._engine)
        logger.debug(f"客户端已连接: url={self._url} session={session}")

        self._events.emit(ClientEvent.ENGINE, self._engine)
        self._events.emit(ClientEvent.CONNECTED)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(url={self._url!r}, state={self._state.name})"


def create_client(
    config: MockClientConfig | None = None,
    *,
    configure_logging: bool = True,
    **kwargs: Any,
) -> RemoteMediaClientMock:
    """
    按配置创建客户端

    Args:
        config: 客户端配置（默认从环境变量加载）
        configure_logging: 是否按 config.log_level 重新配置日志
        **kwargs: 透传给客户端构造函数
    """
    config = config or load_config()
    if configure_logging:
        setup_logging(config.log_level)
    kwargs.setdefault("sample_workers", config.sample_workers)
    return RemoteMediaClientMock(config, **kwargs)
