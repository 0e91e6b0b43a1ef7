"""
配置测试

测试默认值、YAML 文件、环境变量覆盖和构造参数规范化。
"""

import pytest

from remote_media_client_mock.config import (
    ClientOptions,
    MockClientConfig,
    load_config,
    load_config_async,
)
from remote_media_client_mock.domain.errors import ConfigError, InvalidArgumentError

ENV_KEYS = (
    "REMOTE_MEDIA_URL",
    "REMOTE_MEDIA_CLIENT_URL",
    "REMOTE_MEDIA_TRANSPORT_CLASS",
    "REMOTE_MEDIA_LOG_LEVEL",
    "LOG_LEVEL",
    "REMOTE_MEDIA_SAMPLE_WORKERS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestMockClientConfig:
    """配置类测试"""

    def test_defaults(self):
        config = load_config()

        assert config.url is None
        assert config.transport_class is None
        assert config.log_level == "INFO"
        assert config.sample_workers is True

    def test_invalid_log_level(self):
        with pytest.raises(ConfigError) as exc_info:
            MockClientConfig(log_level="loud")

        assert exc_info.value.config_key == "log_level"

    def test_log_level_is_normalized(self):
        assert MockClientConfig(log_level="debug").log_level == "DEBUG"

    def test_unknown_key(self):
        with pytest.raises(ConfigError) as exc_info:
            MockClientConfig.from_dict({"url": "ws://a", "port": 80})

        assert exc_info.value.config_key == "port"


class TestLoadConfig:
    """配置加载测试"""

    def test_load_from_yaml(self, tmp_path):
        path = tmp_path / "client.yaml"
        path.write_text("url: ws://file.example.com\nlog_level: debug\n", encoding="utf-8")

        config = load_config(path)

        assert config.url == "ws://file.example.com"
        assert config.log_level == "DEBUG"

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(tmp_path / "missing.yaml")
        assert config.url is None

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "client.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_config(path)

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        """环境变量优先于配置文件"""
        path = tmp_path / "client.yaml"
        path.write_text("url: ws://file.example.com\n", encoding="utf-8")
        monkeypatch.setenv("REMOTE_MEDIA_URL", "ws://env.example.com")
        monkeypatch.setenv("REMOTE_MEDIA_SAMPLE_WORKERS", "no")

        config = load_config(path)

        assert config.url == "ws://env.example.com"
        assert config.sample_workers is False

    def test_explicit_overrides_env(self, monkeypatch):
        """显式参数优先于环境变量"""
        monkeypatch.setenv("REMOTE_MEDIA_URL", "ws://env.example.com")

        config = load_config(url="ws://explicit.example.com")

        assert config.url == "ws://explicit.example.com"

    @pytest.mark.asyncio
    async def test_async_save_and_load(self, tmp_path):
        path = tmp_path / "nested" / "client.yaml"
        config = MockClientConfig(url="ws://saved.example.com", sample_workers=False)

        await config.save_to_file_async(path)
        loaded = await load_config_async(path)

        assert loaded == config

    def test_sync_save(self, tmp_path):
        path = tmp_path / "client.yaml"
        MockClientConfig(url="ws://saved.example.com").save_to_file(path)

        assert load_config(path).url == "ws://saved.example.com"


class TestClientOptions:
    """构造参数规范化测试"""

    def test_from_string(self):
        options = ClientOptions.from_value("ws://a.example.com")
        assert options == ClientOptions(url="ws://a.example.com")

    def test_from_none_and_empty(self):
        assert ClientOptions.from_value(None).url is None
        assert ClientOptions.from_value("").url is None

    def test_from_mapping(self):
        options = ClientOptions.from_value({"url": "ws://a", "transport_class": dict})

        assert options.url == "ws://a"
        assert options.transport_class is dict

    def test_explicit_transport_class_wins(self):
        options = ClientOptions.from_value({"url": "ws://a", "transport_class": dict}, list)
        assert options.transport_class is list

    def test_from_config(self):
        config = MockClientConfig(url="ws://a", transport_class="pkg.Transport")

        options = ClientOptions.from_value(config)

        assert options.url == "ws://a"
        assert options.transport_class == "pkg.Transport"

    def test_invalid_type(self):
        with pytest.raises(InvalidArgumentError):
            ClientOptions.from_value(3.14)

    def test_invalid_url_in_mapping(self):
        with pytest.raises(InvalidArgumentError):
            ClientOptions.from_value({"url": 42})
