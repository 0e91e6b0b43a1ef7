"""测试公共夹具"""

import subprocess
import sys

import pytest

from remote_media_client_mock.engine import MediaEngine
from remote_media_client_mock.scheduler import DeferredScheduler


@pytest.fixture
def engine():
    """独立的引擎实例，避免测试之间共享全局 Worker 通知"""
    return MediaEngine()


@pytest.fixture
def scheduler():
    """可等待排空的调度器"""
    return DeferredScheduler()


@pytest.fixture
def exited_pid():
    """已退出并被回收的子进程 pid"""
    child = subprocess.Popen([sys.executable, "-c", "pass"])
    child.wait()
    return child.pid


@pytest.fixture
def running_child():
    """运行中的子进程（测试结束时终止）"""
    child = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(30)"])
    yield child
    if child.poll() is None:
        child.kill()
        child.wait()
