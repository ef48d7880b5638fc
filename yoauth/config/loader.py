"""配置加载器模块

从 YAML 文件读取配置并构建 Settings 实例。配置文件路径可以直接传入，
也可以通过环境变量 YOAUTH_CONFIG_FILE 指定。

使用示例:
    from yoauth.config import load_yaml_config

    settings = load_yaml_config("config/settings.yaml")
    settings = load_yaml_config(oauth2={"strict_redirect_uri": True})
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

import yaml

from .settings import AppSettings

T = TypeVar("T")

CONFIG_FILE_ENV = "YOAUTH_CONFIG_FILE"


def read_yaml(config_path: str) -> Dict[str, Any]:
    """读取 YAML 文件为字典

    空文件返回空字典。

    Raises:
        FileNotFoundError: 配置文件不存在
        ValueError: 顶层不是映射
        yaml.YAMLError: YAML 解析错误
    """
    path = Path(config_path).expanduser()
    if not path.is_file():
        raise FileNotFoundError(f"配置文件不存在: {path.resolve()}")

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"配置文件顶层必须是映射: {path}")
    return data


def deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """递归合并两个字典，overrides 优先，返回新字典

    使用示例:
        deep_merge({"oauth2": {"a": 1, "b": 2}}, {"oauth2": {"b": 3}})
        # {"oauth2": {"a": 1, "b": 3}}
    """
    merged = dict(base)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_yaml_config(
    config_path: Optional[str] = None,
    settings_class: Type[T] = AppSettings,
    **overrides
) -> T:
    """加载 YAML 配置并创建 Pydantic Settings 实例

    未传入路径时读取环境变量 YOAUTH_CONFIG_FILE；两者都没有则只使用
    环境变量和默认值。

    Args:
        config_path: 配置文件路径
        settings_class: Pydantic Settings 类，默认为 AppSettings
        **overrides: 覆盖配置，嵌套字典按子配置合并

    Returns:
        Settings 实例

    使用示例:
        settings = load_yaml_config(
            "config/settings.yaml",
            debug=True,
            database={"url": "sqlite:///./oauth2.db"},
        )
    """
    config_path = config_path or os.environ.get(CONFIG_FILE_ENV)
    config = read_yaml(config_path) if config_path else {}
    return settings_class(**deep_merge(config, overrides))
