"""
客户端 Mock 枚举定义
"""

from enum import Enum, IntEnum


class ReadyState(IntEnum):
    """
    连接就绪状态

    取值与 WebSocket readyState 对齐，额外增加 CONNECTED 表示
    远端引擎状态已同步、连接完全建立。
    """

    OPEN = 1          # 已打开（连接中，尚未完全建立）
    CLOSED = 3        # 已关闭
    CONNECTED = 4     # 已连接（引擎能力可用）


class ClientEvent(str, Enum):
    """客户端事件"""

    OPEN = "open"
    TRANSPORT_OPEN = "transport_open"
    ENGINE = "engine"
    CONNECTED = "connected"
    CLOSE = "close"


class EngineEvent(str, Enum):
    """引擎全局事件"""

    NEW_WORKER = "new_worker"


class WorkerEvent(str, Enum):
    """引擎 Worker 事件"""

    CLOSE = "close"
