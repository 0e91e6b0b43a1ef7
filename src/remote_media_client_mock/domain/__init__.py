"""
客户端 Mock 域模型

定义连接状态、就绪状态枚举、事件名和错误类型。
"""

from remote_media_client_mock.domain.enums import (
    ClientEvent,
    EngineEvent,
    ReadyState,
    WorkerEvent,
)
from remote_media_client_mock.domain.errors import (
    ClientMockError,
    ConfigError,
    InvalidArgumentError,
    InvalidStateError,
)
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

__all__ = [
    # 枚举
    "ReadyState",
    "ClientEvent",
    "EngineEvent",
    "WorkerEvent",
    # 错误
    "ClientMockError",
    "InvalidArgumentError",
    "InvalidStateError",
    "ConfigError",
    # 连接状态
    "ConnectionState",
    "Closed",
    "Connecting",
    "Connected",
    "Destroyed",
    "CLOSED",
    "DESTROYED",
    "next_session_id",
    "ready_state_of",
]
