"""
配置模块。
"""

from .settings import (
    API_BASE_URL,
    API_TIMEOUT_MS,
    ClientConfig,
    ConfigSource,
    DotEnvSource,
    EnvironSource,
    LoggingConfig,
    MappingSource,
    Settings,
    StorageConfig,
    YamlConfigSource,
    default_sources,
    resolve_client_config,
)
from .validated_settings import load_settings

__all__ = [
    "API_BASE_URL",
    "API_TIMEOUT_MS",
    "ClientConfig",
    "ConfigSource",
    "DotEnvSource",
    "EnvironSource",
    "LoggingConfig",
    "MappingSource",
    "Settings",
    "StorageConfig",
    "YamlConfigSource",
    "default_sources",
    "resolve_client_config",
    "load_settings",
]
