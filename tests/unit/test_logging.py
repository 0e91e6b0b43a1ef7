"""日志配置测试"""

import sys

import pytest
from loguru import logger

from remote_media_client_mock.engine import MediaEngine
from remote_media_client_mock.logging import setup_logging


@pytest.fixture
def captured():
    messages = []
    setup_logging("DEBUG", sink=messages.append)
    yield messages
    logger.remove()
    logger.add(sys.stderr)


def test_setup_logging_captures_library_messages(captured):
    MediaEngine().create_worker(pid=4321)

    assert any("pid=4321" in str(message) for message in captured)


def test_level_filters_debug(captured):
    setup_logging("warning", sink=captured.append)

    MediaEngine().create_worker(pid=4321)

    assert captured == []
