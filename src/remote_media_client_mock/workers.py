"""
Worker 注册表

在客户端内部镜像全局通知源上公布的存活 Worker 标识（pid）集合，
供诊断采集使用。随客户端构造挂载、随客户端销毁卸载。
"""

from collections.abc import Callable, Iterator

from loguru import logger

from remote_media_client_mock.domain.enums import EngineEvent, WorkerEvent
from remote_media_client_mock.engine import EngineWorker
from remote_media_client_mock.events import EventEmitter


class WorkerRegistry:
    """
    Worker 注册表

    有序集合：插入顺序即发现顺序，重复标识被忽略。
    """

    def __init__(self):
        self._feed: EventEmitter | None = None
        # pid -> (worker, close 监听器)
        self._entries: dict[int, tuple[EngineWorker, Callable[[], None]]] = {}

    @property
    def attached(self) -> bool:
        return self._feed is not None

    @property
    def ids(self) -> tuple[int, ...]:
        """当前跟踪的 Worker 标识（按发现顺序）"""
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, pid: object) -> bool:
        return pid in self._entries

    def __iter__(self) -> Iterator[int]:
        return iter(tuple(self._entries))

    def attach(self, feed: EventEmitter) -> None:
        """订阅全局 new_worker 通知（幂等）"""
        if self._feed is feed:
            return
        if self._feed is not None:
            self.detach()

        feed.on(EngineEvent.NEW_WORKER, self._on_new_worker)
        self._feed = feed

    def detach(self) -> None:
        """取消全局订阅以及所有 Worker 的 close 订阅"""
        if self._feed is not None:
            self._feed.off(EngineEvent.NEW_WORKER, self._on_new_worker)
            self._feed = None

        for worker, listener in self._entries.values():
            worker.observer.off(WorkerEvent.CLOSE, listener)
        self._entries.clear()

    def _on_new_worker(self, worker: EngineWorker) -> None:
        pid = worker.pid
        if pid in self._entries:
            return

        def on_close() -> None:
            self._remove(pid)

        self._entries[pid] = (worker, on_close)
        worker.observer.once(WorkerEvent.CLOSE, on_close)
        logger.debug(f"跟踪 Worker: pid={pid} (共 {len(self._entries)} 个)")

    def _remove(self, pid: int) -> None:
        if self._entries.pop(pid, None) is not None:
            logger.debug(f"Worker 已移除: pid={pid}")
