"""API 模块

提供 OAuth 2.0 端点路由。

使用示例:
    from yoauth.api import create_oauth2_router

    app.include_router(create_oauth2_router(server, get_current_user))
"""

from .oauth2_api import (
    create_oauth2_router,
    default_consent_renderer,
    default_error_renderer,
    resolve_principal,
    is_absolute_url,
    append_query,
    TokenResponse,
    ErrorResponse,
)

__all__ = [
    "create_oauth2_router",
    "default_consent_renderer",
    "default_error_renderer",
    "resolve_principal",
    "is_absolute_url",
    "append_query",
    "TokenResponse",
    "ErrorResponse",
]
