"""日志模块

提供日志配置与敏感数据过滤。

使用示例:
    from yoauth.log import get_logger, setup_root_logger, log_filter_hook_manager

    setup_root_logger(config=settings.logging)
    logger = get_logger()

    safe_params = log_filter_hook_manager.apply_filters(params)
"""

from .logger import (
    setup_logger,
    setup_root_logger,
    create_formatter,
    MicrosecondFormatter,
    AccessLogFormatter,
    DEFAULT_LOG_FORMAT,
    logger,
    get_logger,
)

from .filter_hooks import (
    LogFilterHook,
    SensitiveDataFilterHook,
    LogFilterHookManager,
    log_filter_hook_manager,
    DEFAULT_SENSITIVE_PATTERNS,
    FILTERED_VALUE,
)

__all__ = [
    "setup_logger",
    "setup_root_logger",
    "create_formatter",
    "MicrosecondFormatter",
    "AccessLogFormatter",
    "DEFAULT_LOG_FORMAT",
    "logger",
    "get_logger",
    "LogFilterHook",
    "SensitiveDataFilterHook",
    "LogFilterHookManager",
    "log_filter_hook_manager",
    "DEFAULT_SENSITIVE_PATTERNS",
    "FILTERED_VALUE",
]
