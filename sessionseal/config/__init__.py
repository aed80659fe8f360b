"""Configuration for sessionseal."""

from .provider import (
    ApiConfig,
    ConfigProvider,
    CookieConfig,
    EnvConfigProvider,
    SessionConfig,
    StoreConfig,
)

__all__ = [
    "ApiConfig",
    "ConfigProvider",
    "CookieConfig",
    "EnvConfigProvider",
    "SessionConfig",
    "StoreConfig",
]
