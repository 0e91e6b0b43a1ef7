"""
诊断信息采集

按需生成诊断快照：主机指标 + 当前进程指标 + 各 Worker 进程资源使用。
快照不做缓存，每次调用重新采集。

Worker 采集策略：进程已退出或无权限访问的标识会被记录并跳过，
其余标识照常上报。
"""

import asyncio
import os
import platform
import time
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from typing import Any

import psutil
from loguru import logger


@dataclass
class CPUInfo:
    """单核信息"""

    model: str = ""
    speed_mhz: float = 0.0
    user: float = 0.0
    nice: float = 0.0
    system: float = 0.0
    idle: float = 0.0


@dataclass
class HostMetrics:
    """主机指标"""

    available_parallelism: int = 1
    cpus: list[CPUInfo] = field(default_factory=list)
    free_memory: int = 0             # 字节
    total_memory: int = 0            # 字节
    load_average: tuple[float, float, float] = (0.0, 0.0, 0.0)
    uptime: float = 0.0              # 秒


@dataclass
class ProcessMetrics:
    """当前进程指标"""

    constrained_memory: int | None = None   # 地址空间限制（字节），None 表示不限制
    cpu_user: float = 0.0                   # 秒
    cpu_system: float = 0.0                 # 秒
    hrtime_ns: int = 0
    memory_rss: int = 0
    memory_vms: int = 0
    resource_usage: dict[str, int] = field(default_factory=dict)
    uptime: float = 0.0                     # 秒


@dataclass
class WorkerUsage:
    """Worker 进程资源使用"""

    pid: int
    ppid: int = 0
    cpu_percent: float = 0.0
    cpu_time: float = 0.0            # 秒
    memory: int = 0                  # RSS 字节
    elapsed_ms: float = 0.0
    timestamp_ms: int = 0


@dataclass
class DiagnosticsSnapshot:
    """诊断快照"""

    host: HostMetrics
    process: ProcessMetrics
    workers: dict[int, WorkerUsage] | None = None
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        """转换为字典"""
        return {
            "host": asdict(self.host),
            "process": asdict(self.process),
            "workers": (
                {pid: asdict(usage) for pid, usage in self.workers.items()}
                if self.workers is not None
                else None
            ),
            "timestamp": self.timestamp,
        }


def collect_host_metrics() -> HostMetrics:
    """采集主机指标"""
    metrics = HostMetrics()

    metrics.available_parallelism = psutil.cpu_count() or os.cpu_count() or 1

    model = platform.processor() or platform.machine()
    times = psutil.cpu_times(percpu=True)
    try:
        freqs = psutil.cpu_freq(percpu=True) or []
    except (AttributeError, NotImplementedError, OSError):
        freqs = []

    for index, cpu_times in enumerate(times):
        speed = freqs[index].current if index < len(freqs) else 0.0
        metrics.cpus.append(
            CPUInfo(
                model=model,
                speed_mhz=round(speed, 1),
                user=cpu_times.user,
                nice=getattr(cpu_times, "nice", 0.0),
                system=cpu_times.system,
                idle=cpu_times.idle,
            )
        )

    mem = psutil.virtual_memory()
    metrics.free_memory = mem.available
    metrics.total_memory = mem.total

    # 负载（Windows 上由 psutil 模拟）
    if hasattr(psutil, "getloadavg"):
        load = psutil.getloadavg()
        metrics.load_average = (round(load[0], 2), round(load[1], 2), round(load[2], 2))

    metrics.uptime = round(time.time() - psutil.boot_time(), 1)
    return metrics


def collect_process_metrics(process: psutil.Process | None = None) -> ProcessMetrics:
    """采集当前进程指标"""
    process = process or psutil.Process()
    metrics = ProcessMetrics()

    if hasattr(psutil, "RLIMIT_AS"):
        try:
            soft, _ = process.rlimit(psutil.RLIMIT_AS)
            if soft >= 0 and soft != psutil.RLIM_INFINITY:
                metrics.constrained_memory = soft
        except (psutil.AccessDenied, OSError) as e:
            logger.debug(f"读取内存限制失败: {e}")

    with process.oneshot():
        cpu_times = process.cpu_times()
        metrics.cpu_user = cpu_times.user
        metrics.cpu_system = cpu_times.system

        memory_info = process.memory_info()
        metrics.memory_rss = memory_info.rss
        metrics.memory_vms = memory_info.vms

        ctx = process.num_ctx_switches()
        metrics.resource_usage = {
            "voluntary_context_switches": ctx.voluntary,
            "involuntary_context_switches": ctx.involuntary,
            "threads": process.num_threads(),
        }
        if hasattr(process, "num_fds"):
            metrics.resource_usage["fds"] = process.num_fds()
        if hasattr(process, "io_counters"):
            try:
                io = process.io_counters()
                metrics.resource_usage["read_bytes"] = io.read_bytes
                metrics.resource_usage["write_bytes"] = io.write_bytes
            except (psutil.AccessDenied, NotImplementedError):
                pass

        metrics.uptime = round(time.time() - process.create_time(), 3)

    metrics.hrtime_ns = time.perf_counter_ns()
    return metrics


class ProcessUsageSampler:
    """
    进程资源使用采样器

    缓存 psutil.Process 对象，使 cpu_percent 在两次采样之间有基准。
    """

    def __init__(self):
        self._processes: dict[int, psutil.Process] = {}
        # clear() 时递增；采样线程只在代次未变时写回缓存
        self._generation = 0

    @property
    def cached_pids(self) -> tuple[int, ...]:
        return tuple(self._processes)

    async def sample(self, pids: Iterable[int]) -> dict[int, WorkerUsage]:
        """
        采样多个进程

        Args:
            pids: 进程 ID 列表

        Returns:
            pid -> 资源使用（采样失败的 pid 不包含在内）
        """
        pids = list(pids)
        if not pids:
            return {}
        return await asyncio.to_thread(self._sample_all, pids, self._generation)

    def clear(self) -> None:
        """清空进程缓存（进行中的采样不会再写回）"""
        self._generation += 1
        self._processes.clear()

    def _sample_all(self, pids: list[int], generation: int) -> dict[int, WorkerUsage]:
        usages: dict[int, WorkerUsage] = {}
        for pid in pids:
            try:
                usages[pid] = self._sample_one(pid, generation)
            except psutil.NoSuchProcess:
                self._processes.pop(pid, None)
                logger.debug(f"Worker 进程已退出，跳过采样: pid={pid}")
            except psutil.AccessDenied:
                logger.debug(f"无权限采样 Worker 进程: pid={pid}")
        return usages

    def _sample_one(self, pid: int, generation: int) -> WorkerUsage:
        process = self._processes.get(pid)
        if process is None:
            process = psutil.Process(pid)
            if generation == self._generation:
                self._processes[pid] = process

        now = time.time()
        with process.oneshot():
            cpu_times = process.cpu_times()
            return WorkerUsage(
                pid=pid,
                ppid=process.ppid(),
                cpu_percent=process.cpu_percent(interval=None),
                cpu_time=cpu_times.user + cpu_times.system,
                memory=process.memory_info().rss,
                elapsed_ms=round((now - process.create_time()) * 1000, 1),
                timestamp_ms=int(now * 1000),
            )


class DiagnosticsAggregator:
    """
    诊断聚合器

    由客户端持有；客户端关闭时调用 release() 释放采样缓存。
    """

    def __init__(self, sampler: ProcessUsageSampler | None = None):
        self._sampler = sampler or ProcessUsageSampler()

    @property
    def sampler(self) -> ProcessUsageSampler:
        return self._sampler

    async def collect(self, worker_ids: Iterable[int] = ()) -> DiagnosticsSnapshot:
        """
        采集诊断快照

        Args:
            worker_ids: 需要采样的 Worker 标识

        Returns:
            诊断快照；没有 Worker 时 workers 为 None
        """
        snapshot = DiagnosticsSnapshot(
            host=collect_host_metrics(),
            process=collect_process_metrics(),
        )

        worker_ids = list(worker_ids)
        if worker_ids:
            snapshot.workers = await self._sampler.sample(worker_ids)

        return snapshot

    def release(self) -> None:
        """释放采样资源"""
        self._sampler.clear()
