"""
yoauth - OAuth 2.0 授权服务器核心

提供授权码（含 PKCE）和客户端凭证两种授权流程，以及客户端管理、
授权码台账、RFC 6749 错误体系、访问日志和 FastAPI 端点。
"""

from .version import __version__, __author__, __description__

# 导出异常
from .exceptions import (
    Err,
    ErrorCode,
    OAuth2Error,
    register_exception_handlers,
)

# 导出核心
from .oauth2 import (
    Client,
    AuthorizationCode,
    AccessToken,
    OAuth2Server,
    ClientDirectory,
    ClientService,
    AuthorizationCodeLedger,
    AuthorizationRequestValidator,
    GrantDispatcher,
    ScopeValidator,
    PkceVerifier,
    TokenIssuer,
    AccessLogSink,
)

# 导出配置
from .config import AppSettings, OAuth2Settings, load_yaml_config

# 导出日志
from .log import get_logger, setup_root_logger

__all__ = [
    "__version__",
    "__author__",
    "__description__",
    "Err",
    "ErrorCode",
    "OAuth2Error",
    "register_exception_handlers",
    "Client",
    "AuthorizationCode",
    "AccessToken",
    "OAuth2Server",
    "ClientDirectory",
    "ClientService",
    "AuthorizationCodeLedger",
    "AuthorizationRequestValidator",
    "GrantDispatcher",
    "ScopeValidator",
    "PkceVerifier",
    "TokenIssuer",
    "AccessLogSink",
    "AppSettings",
    "OAuth2Settings",
    "load_yaml_config",
    "get_logger",
    "setup_root_logger",
]
