"""
连接状态

用单一的带标签状态值代替 closed/connected/destroyed 多个布尔标志，
避免出现互相矛盾的标志组合。
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from remote_media_client_mock.domain.enums import ReadyState

if TYPE_CHECKING:
    from remote_media_client_mock.engine import MediaEngine


_session_ids = itertools.count(1)


def next_session_id() -> int:
    """分配新的会话 ID（每次 open 一个）"""
    return next(_session_ids)


@dataclass(frozen=True)
class Closed:
    """已关闭（初始状态）"""

    name = "closed"


@dataclass(frozen=True)
class Connecting:
    """连接中：open() 已调用，connected 任务尚未执行"""

    session: int
    name = "connecting"


@dataclass(frozen=True)
class Connected:
    """已连接：持有引擎能力"""

    session: int
    engine: MediaEngine
    name = "connected"


@dataclass(frozen=True)
class Destroyed:
    """已销毁（终态）"""

    name = "destroyed"


ConnectionState = Union[Closed, Connecting, Connected, Destroyed]

CLOSED = Closed()
DESTROYED = Destroyed()


def ready_state_of(state: ConnectionState) -> ReadyState:
    """由连接状态推导 readyState（销毁状态由调用方处理）"""
    if isinstance(state, Connected):
        return ReadyState.CONNECTED
    if isinstance(state, Connecting):
        return ReadyState.OPEN
    return ReadyState.CLOSED
