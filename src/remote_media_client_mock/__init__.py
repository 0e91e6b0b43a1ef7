"""
远端媒体引擎客户端 Mock

供下游测试使用的远端连接测试替身：
- 连接生命周期状态机（open / close / destroy）
- 有序的异步生命周期事件
- 后台 Worker 生命周期跟踪
- 仅在已连接时可用的诊断快照

不进行任何网络 I/O。
"""

__version__ = "0.1.0"

from remote_media_client_mock.client import RemoteMediaClientMock, create_client
from remote_media_client_mock.config import (
    ClientOptions,
    MockClientConfig,
    load_config,
    load_config_async,
)
from remote_media_client_mock.diagnostics import (
    DiagnosticsAggregator,
    DiagnosticsSnapshot,
    HostMetrics,
    ProcessMetrics,
    ProcessUsageSampler,
    WorkerUsage,
)
from remote_media_client_mock.domain import (
    ClientEvent,
    ClientMockError,
    ConfigError,
    InvalidArgumentError,
    InvalidStateError,
    ReadyState,
)
from remote_media_client_mock.engine import EngineWorker, MediaEngine, get_media_engine
from remote_media_client_mock.events import EventEmitter
from remote_media_client_mock.logging import setup_logging
from remote_media_client_mock.scheduler import DeferredScheduler
from remote_media_client_mock.workers import WorkerRegistry

OPEN = ReadyState.OPEN
CLOSED = ReadyState.CLOSED
CONNECTED = ReadyState.CONNECTED

__all__ = [
    "__version__",
    # 客户端
    "RemoteMediaClientMock",
    "create_client",
    "ReadyState",
    "ClientEvent",
    "OPEN",
    "CLOSED",
    "CONNECTED",
    # 错误
    "ClientMockError",
    "InvalidArgumentError",
    "InvalidStateError",
    "ConfigError",
    # 配置
    "MockClientConfig",
    "ClientOptions",
    "load_config",
    "load_config_async",
    "setup_logging",
    # 基础设施
    "EventEmitter",
    "DeferredScheduler",
    "WorkerRegistry",
    # 引擎
    "MediaEngine",
    "EngineWorker",
    "get_media_engine",
    # 诊断
    "DiagnosticsAggregator",
    "DiagnosticsSnapshot",
    "HostMetrics",
    "ProcessMetrics",
    "ProcessUsageSampler",
    "WorkerUsage",
]
