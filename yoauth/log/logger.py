"""
日志工具模块

在标准库 logging 之上提供:
- get_logger: 按模块名获取日志器，简写自动添加 yoauth. 前缀
- setup_logger / setup_root_logger: 按参数或 LoggingSettings 配置处理器
- AccessLogFormatter: 把端点访问日志的结构化字段追加到消息末尾
"""

import inspect
import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, List, Optional

ROOT_NAME = "yoauth"

DEFAULT_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(filename)s:%(lineno)d - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# 访问日志中追加到消息末尾的字段，按顺序输出
ACCESS_LOG_FIELDS = ("endpoint", "status", "client_id", "user_id", "ip_address", "response_time", "error_code")


class MicrosecondFormatter(logging.Formatter):
    """时间戳精确到微秒的格式化器"""

    def formatTime(self, record, datefmt=None):
        created = datetime.fromtimestamp(record.created)
        return f"{created.strftime(datefmt or DEFAULT_DATE_FORMAT)}.{created.microsecond:06d}"


class AccessLogFormatter(MicrosecondFormatter):
    """访问日志格式化器

    记录带有 extra={"access_log": {...}} 时，把其中的关键字段以
    key=value 形式追加到消息后面；其他记录按普通格式输出。

    使用示例:
        handler.setFormatter(AccessLogFormatter(DEFAULT_LOG_FORMAT))
        logger.info("POST /oauth2/token success", extra={"access_log": record.to_dict()})
        # ... - POST /oauth2/token success | endpoint=/oauth2/token status=success client_id=c1 ...
    """

    def format(self, record):
        message = super().format(record)
        data = getattr(record, "access_log", None)
        if not isinstance(data, dict):
            return message
        pairs = [f"{key}={data[key]}" for key in ACCESS_LOG_FIELDS if data.get(key) not in (None, "")]
        return f"{message} | {' '.join(pairs)}" if pairs else message


def create_formatter(log_format: str = None, use_microseconds: bool = True) -> logging.Formatter:
    """创建格式化器，默认使用 AccessLogFormatter"""
    fmt = log_format or DEFAULT_LOG_FORMAT
    if use_microseconds:
        return AccessLogFormatter(fmt)
    return logging.Formatter(fmt, datefmt=DEFAULT_DATE_FORMAT)


def _build_handlers(
    formatter: logging.Formatter,
    console: bool,
    log_file: Optional[str],
    max_bytes: int,
    backup_count: int,
    encoding: str,
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if console:
        handlers.append(logging.StreamHandler())
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            log_file, maxBytes=max_bytes, backupCount=backup_count, encoding=encoding,
        ))
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_logger(
    name: str = None,
    level: str = "INFO",
    log_file: str = None,
    log_format: str = None,
    console: bool = True,
    propagate: bool = True,
    config: Any = None,
) -> logging.Logger:
    """配置并返回日志器

    已有的处理器会先被关闭并移除，重复调用不会重复输出。

    Args:
        name: 日志器名称，None 表示根日志器
        level: 日志级别（DEBUG/INFO/WARNING/ERROR/CRITICAL，大小写不敏感）
        log_file: 日志文件路径，为空则不写文件
        log_format: 日志格式
        console: 是否输出到控制台
        propagate: 是否传播到父日志器
        config: LoggingSettings，提供后 level/log_file/console 及文件轮转参数取自配置

    Returns:
        配置好的日志器

    使用示例:
        logger = setup_logger("yoauth.access", log_file="logs/access.log", propagate=False)
        logger = setup_logger(config=settings.logging)
    """
    max_bytes, backup_count, encoding = 10 * 1024 * 1024, 5, "utf-8"
    if config is not None:
        level = config.level
        log_file = config.file_path or None
        console = config.enable_console
        max_bytes = config.file_max_bytes
        backup_count = config.file_backup_count
        encoding = config.file_encoding

    target = logging.getLogger(name)
    target.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    target.propagate = propagate

    for handler in list(target.handlers):
        target.removeHandler(handler)
        handler.close()

    formatter = create_formatter(log_format)
    for handler in _build_handlers(formatter, console, log_file, max_bytes, backup_count, encoding):
        target.addHandler(handler)
    return target


def setup_root_logger(config: Any = None, **kwargs) -> logging.Logger:
    """配置根日志器，yoauth.* 日志器通过传播共享其处理器

    使用示例:
        setup_root_logger(config=settings.logging)
        setup_root_logger(level="DEBUG", log_file="logs/app.log")
    """
    return setup_logger(None, config=config, **kwargs)


def get_logger(name: str = None) -> logging.Logger:
    """获取日志器

    Args:
        name: None 时使用调用方模块的 __name__；不含点号的简写
              自动添加前缀，如 "access" -> "yoauth.access"

    使用示例:
        logger = get_logger()                    # yoauth/oauth2/grants.py 中 -> "yoauth.oauth2.grants"
        logger = get_logger("access")            # -> "yoauth.access"
        logger = get_logger("sqlalchemy.engine") # 保持不变
    """
    if name is None:
        caller = inspect.currentframe().f_back
        name = caller.f_globals.get("__name__", ROOT_NAME) if caller else ROOT_NAME
    elif "." not in name and name != ROOT_NAME:
        name = f"{ROOT_NAME}.{name}"
    return logging.getLogger(name)


logger = logging.getLogger(ROOT_NAME)
