"""
客户端 Mock 错误定义

所有错误均为前置条件检查失败，在调用处同步抛出，且抛出前不修改任何状态。
"""

from typing import Any


class ClientMockError(Exception):
    """客户端 Mock 基础错误"""

    def __init__(
        self,
        message: str,
        code: str = "CLIENT_MOCK_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class InvalidArgumentError(ClientMockError, ValueError):
    """参数错误（如从未提供过 url）"""

    def __init__(
        self,
        message: str,
        argument: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code="INVALID_ARGUMENT", details=details)
        self.argument = argument


class InvalidStateError(ClientMockError):
    """当前状态下不允许的操作"""

    def __init__(
        self,
        message: str,
        state: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code="INVALID_STATE", details=details)
        self.state = state


class ConfigError(ClientMockError):
    """配置错误"""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code="CONFIG_ERROR", details=details)
        self.config_key = config_key
