"""配置模块

提供配置管理功能：
- AppSettings: 应用配置，聚合各子配置，支持 YAML + 环境变量
- 子配置类: OAuth2Settings, DatabaseSettings, LoggingSettings, AccessLogSettings
- load_yaml_config: 从 YAML 文件构建配置

快速开始:
    from yoauth.config import AppSettings, load_yaml_config

    settings = load_yaml_config("config/settings.yaml", AppSettings)
"""

from .settings import (
    AppSettings,
    OAuth2Settings,
    DatabaseSettings,
    LoggingSettings,
    AccessLogSettings,
)

from .loader import (
    CONFIG_FILE_ENV,
    deep_merge,
    load_yaml_config,
    read_yaml,
)

__all__ = [
    "AppSettings",
    "OAuth2Settings",
    "DatabaseSettings",
    "LoggingSettings",
    "AccessLogSettings",
    "CONFIG_FILE_ENV",
    "deep_merge",
    "load_yaml_config",
    "read_yaml",
]
