"""端点访问日志

授权端点和 Token 端点在返回响应前，把每次请求的结果交给 AccessLogSink。
日志写入失败只记录警告，不影响主流程。

使用示例:
    sink = SafeAccessLogSink(CompositeAccessLogSink([
        LoggingAccessLogSink(),
        SqlAccessLogSink(db_manager),
    ]))

    sink.record(AccessLogRecord(
        endpoint="token",
        status=AccessLogStatus.ERROR,
        response_time=12,
        client_id="c1",
        error_code="invalid_client",
    ))
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from yoauth.log import get_logger, log_filter_hook_manager
from .code import utcnow

logger = get_logger()


class AccessLogStatus(str, Enum):
    """请求结果"""
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class AccessLogRecord:
    """一次端点访问的记录

    request_params 写入前必须已经过敏感字段过滤，见 ``sanitize_params``。
    """
    endpoint: str
    status: AccessLogStatus
    response_time: Optional[int] = None  # 毫秒
    client_id: Optional[str] = None
    user_id: Optional[str] = None
    ip_address: str = "unknown"
    user_agent: Optional[str] = None
    method: str = "POST"
    request_params: Dict[str, Any] = field(default_factory=dict)
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "endpoint": self.endpoint,
            "status": self.status.value if isinstance(self.status, AccessLogStatus) else self.status,
            "response_time": self.response_time,
            "client_id": self.client_id,
            "user_id": self.user_id,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "method": self.method,
            "request_params": self.request_params,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "created_at": self.created_at.isoformat(),
        }


def sanitize_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """过滤请求参数中的敏感字段（client_secret、code、code_verifier 等）"""
    return log_filter_hook_manager.apply_filters(dict(params))


class AccessLogSink(ABC):
    """访问日志接收器抽象基类"""

    @abstractmethod
    def record(self, entry: AccessLogRecord) -> None:
        """记录一次访问"""
        pass


class LoggingAccessLogSink(AccessLogSink):
    """写入日志记录器的访问日志

    Args:
        logger_name: 日志器名称，默认 "yoauth.access"
    """

    def __init__(self, logger_name: str = "yoauth.access"):
        self.logger = get_logger(logger_name)

    def record(self, entry: AccessLogRecord) -> None:
        data = entry.to_dict()
        if entry.status == AccessLogStatus.SUCCESS:
            self.logger.info(
                f"[{entry.endpoint}] success client={entry.client_id} "
                f"user={entry.user_id} ip={entry.ip_address} {entry.response_time}ms",
                extra={"access_log": data},
            )
        else:
            self.logger.warning(
                f"[{entry.endpoint}] {entry.error_code}: {entry.error_message} "
                f"client={entry.client_id} ip={entry.ip_address} {entry.response_time}ms",
                extra={"access_log": data},
            )


class CompositeAccessLogSink(AccessLogSink):
    """依次写入多个接收器"""

    def __init__(self, sinks: Iterable[AccessLogSink]):
        self.sinks: List[AccessLogSink] = list(sinks)

    def record(self, entry: AccessLogRecord) -> None:
        for sink in self.sinks:
            sink.record(entry)


class SafeAccessLogSink(AccessLogSink):
    """保护主流程的包装器

    被包装的接收器抛出的任何异常都会被记录为警告，不会传播给调用方。
    """

    def __init__(self, sink: AccessLogSink):
        self.sink = sink

    def record(self, entry: AccessLogRecord) -> None:
        try:
            self.sink.record(entry)
        except Exception as e:
            logger.warning(f"访问日志写入失败: {type(e).__name__}: {e}", exc_info=True)


class NullAccessLogSink(AccessLogSink):
    """不记录任何内容（关闭访问日志时使用）"""

    def record(self, entry: AccessLogRecord) -> None:
        return None
