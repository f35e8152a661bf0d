"""
基于 pydantic 的配置校验与对象化加载。

提供 SettingsModel（忽略多余字段），并转换为 dataclass Settings。
客户端字段在 YAML 中只作为最低优先级的配置来源，环境变量仍然优先。
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional, Sequence

import yaml
from pydantic import BaseModel, ConfigDict, Field

from .settings import (
    ENV_API_KEY,
    ENV_BASE_URL,
    ENV_CONFIG_PATH,
    ENV_LOG_LEVEL,
    ENV_TIMEOUT_MS,
    ConfigSource,
    LoggingConfig,
    MappingSource,
    Settings,
    StorageConfig,
    default_sources,
    lookup,
    resolve_client_config,
)


class ClientConfigModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    api_key: Optional[str] = None
    base_url: Optional[str] = None
    timeout_ms: Optional[int] = Field(default=None, gt=0)


class StorageConfigModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    backend: Literal["none", "local", "sqlalchemy"] = "none"
    db_url: Optional[str] = None
    local_path: Optional[str] = None
    local_key: str = "coderabbit:reports"


class LoggingConfigModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    level: str = "INFO"
    file: Optional[str] = None
    max_size: int = 10485760
    backup_count: int = 5
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class SettingsModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    client: ClientConfigModel = Field(default_factory=ClientConfigModel)
    storage: StorageConfigModel = Field(default_factory=StorageConfigModel)
    logging: LoggingConfigModel = Field(default_factory=LoggingConfigModel)


def _client_file_source(model: ClientConfigModel) -> MappingSource:
    values = {}
    if model.api_key:
        values[ENV_API_KEY] = model.api_key
    if model.base_url:
        values[ENV_BASE_URL] = model.base_url
    if model.timeout_ms is not None:
        values[ENV_TIMEOUT_MS] = str(model.timeout_ms)
    return MappingSource(values)


def to_settings(model: SettingsModel, sources: Optional[Sequence[ConfigSource]] = None) -> Settings:
    srcs = list(sources) if sources is not None else default_sources()
    client = resolve_client_config(sources=[*srcs, _client_file_source(model.client)])

    logging_cfg = LoggingConfig(**model.logging.model_dump())
    level = lookup(ENV_LOG_LEVEL, srcs)
    if level:
        logging_cfg.level = level.upper()

    return Settings(
        client=client,
        storage=StorageConfig(**model.storage.model_dump()),
        logging=logging_cfg,
    )


def load_settings(
    path: Optional[str | Path] = None,
    sources: Optional[Sequence[ConfigSource]] = None,
) -> Settings:
    """
    读取 YAML 配置文件并校验；未提供路径时使用 CODERABBIT_CONFIG 环境变量。
    文件不存在时使用全部默认值。
    """
    cfg_path = path or os.getenv(ENV_CONFIG_PATH)
    data = {}
    if cfg_path and Path(cfg_path).is_file():
        with open(cfg_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    model = SettingsModel.model_validate(data)
    return to_settings(model, sources=sources)
