"""全局异常处理器

将 OAuth2Error 和未处理的异常转换为 RFC 6749 错误响应格式。
"""

import sys
import traceback

from fastapi import Request
from fastapi.responses import JSONResponse

from yoauth.log import get_logger
from .exceptions import OAuth2Error, ServerError

logger = get_logger()

# RFC 6749 要求 Token 相关响应不可缓存
NO_STORE_HEADERS = {"Cache-Control": "no-store", "Pragma": "no-cache"}


def error_response(exc: OAuth2Error) -> JSONResponse:
    """构造 OAuth 2.0 错误 JSON 响应

    Args:
        exc: OAuth 2.0 错误实例

    Returns:
        JSON 响应，状态码取自错误类型
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=NO_STORE_HEADERS,
    )


async def oauth2_exception_handler(request: Request, exc: OAuth2Error) -> JSONResponse:
    """OAuth 2.0 错误处理器

    Args:
        request: FastAPI 请求对象
        exc: OAuth 2.0 错误实例

    Returns:
        JSON 响应
    """
    logger.warning(
        f"OAuth2 error: {exc.error_code} - {exc.description}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_code": exc.error_code,
            "status_code": exc.status_code,
        }
    )
    return error_response(exc)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """通用异常处理器

    最后一道防线：记录完整堆栈，对外只返回通用的 server_error。

    Args:
        request: FastAPI 请求对象
        exc: 异常实例

    Returns:
        JSON 响应 (500)
    """
    exc_type, exc_value, exc_traceback = sys.exc_info()
    full_traceback = "".join(traceback.format_exception(exc_type, exc_value, exc_traceback))

    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
            "traceback": full_traceback,
        }
    )
    return error_response(ServerError())


def register_exception_handlers(app) -> None:
    """注册异常处理器到 FastAPI 应用

    使用示例:
        from fastapi import FastAPI
        from yoauth.exceptions import register_exception_handlers

        app = FastAPI()
        register_exception_handlers(app)

    Args:
        app: FastAPI 应用实例
    """
    app.add_exception_handler(OAuth2Error, oauth2_exception_handler)
    # 兜底处理器必须放在最后
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered successfully")
