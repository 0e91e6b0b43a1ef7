"""
客户端 Mock 配置模块

配置来源（优先级从低到高）：默认值 -> YAML 文件 -> 环境变量（含 .env）-> 显式参数。
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import aiofiles
import yaml
from dotenv import load_dotenv
from loguru import logger

from remote_media_client_mock.domain.errors import ConfigError, InvalidArgumentError

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")

_ENV_LOADED = False


def _load_env_file() -> None:
    """加载 .env 环境变量（仅一次）"""
    global _ENV_LOADED
    if _ENV_LOADED:
        return
    _ENV_LOADED = True

    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)


def _get_env_value(*keys: str) -> str | None:
    """按优先顺序读取环境变量"""
    for key in keys:
        value = os.getenv(key)
        if value is not None and value != "":
            return value
    return None


def _get_env_bool(*keys: str) -> bool | None:
    value = _get_env_value(*keys)
    if value is None:
        return None
    return value.lower() in ("1", "true", "yes", "on")


def _load_env_config() -> dict[str, Any]:
    """读取环境变量配置"""
    _load_env_file()
    env_config: dict[str, Any] = {}

    url = _get_env_value("REMOTE_MEDIA_URL", "REMOTE_MEDIA_CLIENT_URL")
    if url:
        env_config["url"] = url

    transport_class = _get_env_value("REMOTE_MEDIA_TRANSPORT_CLASS")
    if transport_class:
        env_config["transport_class"] = transport_class

    log_level = _get_env_value("REMOTE_MEDIA_LOG_LEVEL", "LOG_LEVEL")
    if log_level:
        env_config["log_level"] = log_level

    sample_workers = _get_env_bool("REMOTE_MEDIA_SAMPLE_WORKERS")
    if sample_workers is not None:
        env_config["sample_workers"] = sample_workers

    return env_config


@dataclass
class MockClientConfig:
    """客户端 Mock 配置"""

    # 远端服务地址，为空时客户端保持关闭状态
    url: str | None = None
    # 传输类（仅记录，Mock 不使用）
    transport_class: str | None = None
    # 日志级别
    log_level: str = "INFO"
    # get_stats 时是否采样 Worker 进程
    sample_workers: bool = True

    def __post_init__(self):
        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"无效的日志级别: {self.log_level}", config_key="log_level")
        if self.url is not None and not isinstance(self.url, str):
            raise ConfigError(f"url 必须是字符串: {self.url!r}", config_key="url")

    def to_dict(self) -> dict[str, Any]:
        """转换为字典"""
        return {
            "url": self.url,
            "transport_class": self.transport_class,
            "log_level": self.log_level,
            "sample_workers": self.sample_workers,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MockClientConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"未知的配置项: {', '.join(unknown)}", config_key=unknown[0])
        return cls(**{k: v for k, v in data.items() if v is not None})

    def save_to_file(self, path: Path) -> None:
        """保存配置到文件"""
        os.makedirs(path.parent, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, allow_unicode=True, default_flow_style=False)

    async def save_to_file_async(self, path: Path) -> None:
        """保存配置到文件（异步版本）"""
        yaml_content = yaml.dump(self.to_dict(), allow_unicode=True, default_flow_style=False)
        os.makedirs(path.parent, exist_ok=True)
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(yaml_content)


def _read_yaml(content: str, path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"配置文件解析失败 {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"配置文件格式错误 {path}: 顶层必须是映射")
    return data


def _merge(file_data: dict[str, Any], overrides: dict[str, Any]) -> MockClientConfig:
    data = dict(file_data)
    data.update(_load_env_config())
    data.update({k: v for k, v in overrides.items() if v is not None})
    return MockClientConfig.from_dict(data)


def load_config(path: Path | str | None = None, **overrides: Any) -> MockClientConfig:
    """
    加载配置

    Args:
        path: YAML 配置文件路径（不存在时忽略）
        **overrides: 显式覆盖项

    Returns:
        客户端配置
    """
    file_data: dict[str, Any] = {}
    if path is not None:
        path = Path(path)
        if path.exists():
            file_data = _read_yaml(path.read_text(encoding="utf-8"), path)
        else:
            logger.debug(f"配置文件不存在，使用默认配置: {path}")

    return _merge(file_data, overrides)


async def load_config_async(path: Path | str, **overrides: Any) -> MockClientConfig:
    """加载配置（异步版本）"""
    path = Path(path)
    file_data: dict[str, Any] = {}
    if path.exists():
        async with aiofiles.open(path, encoding="utf-8") as f:
            content = await f.read()
        file_data = _read_yaml(content, path)
    else:
        logger.debug(f"配置文件不存在，使用默认配置: {path}")

    return _merge(file_data, overrides)


@dataclass(frozen=True)
class ClientOptions:
    """客户端构造参数（规范化后）"""

    url: str | None = None
    transport_class: Any = None

    @classmethod
    def from_value(cls, value: Any = None, transport_class: Any = None) -> "ClientOptions":
        """
        规范化构造参数

        Args:
            value: url 字符串、包含 url 的映射或 MockClientConfig
            transport_class: 传输类（仅记录）
        """
        if value is None or isinstance(value, str):
            return cls(url=value or None, transport_class=transport_class)

        if isinstance(value, MockClientConfig):
            return cls(
                url=value.url,
                transport_class=transport_class or value.transport_class,
            )

        if isinstance(value, Mapping):
            url = value.get("url")
            if url is not None and not isinstance(url, str):
                raise InvalidArgumentError(f"url 必须是字符串: {url!r}", argument="url")
            return cls(
                url=url or None,
                transport_class=transport_class or value.get("transport_class"),
            )

        raise InvalidArgumentError(
            f"不支持的构造参数类型: {type(value).__name__}", argument="url"
        )
