"""
模拟媒体引擎

连接建立后客户端交给使用方的引擎能力对象。这里只保留 Worker 生命周期：
创建 Worker 时在全局 observer 上发布 new_worker，Worker 关闭时在自身
observer 上发布 close。不启动任何真实进程。
"""

import os
from typing import Any

from loguru import logger

from remote_media_client_mock.domain.enums import EngineEvent, WorkerEvent
from remote_media_client_mock.events import EventEmitter


class EngineWorker:
    """引擎 Worker"""

    def __init__(self, pid: int, settings: dict[str, Any] | None = None):
        self.pid = pid
        self.settings = settings or {}
        self.observer = EventEmitter(name=f"worker:{pid}")
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """关闭 Worker（幂等）"""
        if self._closed:
            return

        self._closed = True
        logger.debug(f"引擎 Worker 已关闭: pid={self.pid}")
        self.observer.emit(WorkerEvent.CLOSE)

    def __repr__(self) -> str:
        return f"EngineWorker(pid={self.pid}, closed={self._closed})"


class MediaEngine:
    """
    媒体引擎

    observer 是进程级的通知源，所有客户端共享。
    """

    def __init__(self):
        self.observer = EventEmitter(name="engine")
        self._workers: list[EngineWorker] = []

    @property
    def workers(self) -> list[EngineWorker]:
        """存活的 Worker 列表"""
        return [w for w in self._workers if not w.closed]

    def create_worker(self, pid: int | None = None, **settings: Any) -> EngineWorker:
        """
        创建 Worker

        Args:
            pid: Worker 进程 ID（默认当前进程）
            **settings: Worker 配置

        Returns:
            引擎 Worker
        """
        worker = EngineWorker(pid if pid is not None else os.getpid(), settings)
        self._workers.append(worker)
        worker.observer.once(WorkerEvent.CLOSE, lambda: self._forget(worker))

        logger.debug(f"引擎 Worker 已创建: pid={worker.pid}")
        self.observer.emit(EngineEvent.NEW_WORKER, worker)
        return worker

    def close_all_workers(self) -> int:
        """关闭所有 Worker，返回关闭数量"""
        workers = self.workers
        for worker in workers:
            worker.close()
        return len(workers)

    def _forget(self, worker: EngineWorker) -> None:
        if worker in self._workers:
            self._workers.remove(worker)


# 全局引擎实例
media_engine = MediaEngine()


def get_media_engine() -> MediaEngine:
    """获取全局引擎实例"""
    return media_engine
