"""异常处理模块

提供 OAuth 2.0 标准错误体系和全局异常处理器。

使用示例:
    from yoauth.exceptions import Err, register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)

    # 在校验函数中返回错误
    return False, Err.invalid_scope("Invalid scope: admin")
"""

from .exceptions import (
    # ===== 推荐使用 =====
    Err,
    ErrorCode,
    ErrorCodeType,

    # ===== 错误类型 =====
    OAuth2Error,
    InvalidRequestError,
    InvalidClientError,
    InvalidGrantError,
    UnauthorizedClientError,
    UnsupportedGrantTypeError,
    UnsupportedResponseTypeError,
    InvalidScopeError,
    AccessDeniedError,
    ServerError,
)

from .handlers import (
    register_exception_handlers,
    oauth2_exception_handler,
    general_exception_handler,
    error_response,
    NO_STORE_HEADERS,
)

__all__ = [
    "Err",
    "ErrorCode",
    "ErrorCodeType",
    "OAuth2Error",
    "InvalidRequestError",
    "InvalidClientError",
    "InvalidGrantError",
    "UnauthorizedClientError",
    "UnsupportedGrantTypeError",
    "UnsupportedResponseTypeError",
    "InvalidScopeError",
    "AccessDeniedError",
    "ServerError",
    "register_exception_handlers",
    "oauth2_exception_handler",
    "general_exception_handler",
    "error_response",
    "NO_STORE_HEADERS",
]
