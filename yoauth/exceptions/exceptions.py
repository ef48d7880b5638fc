"""OAuth 2.0 错误类定义

定义 RFC 6749 规定的标准错误体系。每个错误携带：
- error: 机器可读的错误标识（RFC 6749 的 error 值）
- description: 人类可读的错误描述
- status_code: 固定的 HTTP 状态码

校验函数以 ``(False, error)`` 元组返回错误实例，
HTTP 端点在边界处将其转换为 ``{"error": ..., "error_description": ...}``。
"""

from typing import Any, Dict, Union
from enum import Enum

from fastapi import status


class ErrorCode(str, Enum):
    """OAuth 2.0 错误标识枚举

    继承自 str，可以直接作为字符串使用和比较。

    使用示例:
        from yoauth.exceptions import ErrorCode

        if err.error == ErrorCode.INVALID_GRANT:
            ...
    """

    INVALID_REQUEST = "invalid_request"
    INVALID_CLIENT = "invalid_client"
    INVALID_GRANT = "invalid_grant"
    UNAUTHORIZED_CLIENT = "unauthorized_client"
    UNSUPPORTED_GRANT_TYPE = "unsupported_grant_type"
    UNSUPPORTED_RESPONSE_TYPE = "unsupported_response_type"
    INVALID_SCOPE = "invalid_scope"
    ACCESS_DENIED = "access_denied"
    SERVER_ERROR = "server_error"


ErrorCodeType = Union[str, ErrorCode]


class OAuth2Error(Exception):
    """OAuth 2.0 错误基类

    属性:
        error: 错误标识
        description: 错误描述
        status_code: HTTP 状态码

    使用示例:
        err = InvalidGrantError("Invalid authorization code")
        err.to_dict()
        # {"error": "invalid_grant", "error_description": "Invalid authorization code"}
    """

    error: ErrorCodeType = ErrorCode.INVALID_REQUEST
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_description: str = "Invalid request"

    def __init__(self, description: str = None):
        self.description = description or self.default_description
        super().__init__(self.description)

    @property
    def error_code(self) -> str:
        """错误标识的字符串值"""
        return self.error.value if isinstance(self.error, ErrorCode) else str(self.error)

    def to_dict(self) -> Dict[str, Any]:
        """转换为 RFC 6749 错误响应格式"""
        return {
            "error": self.error_code,
            "error_description": self.description,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"error={self.error_code!r}, "
            f"description={self.description!r}, "
            f"status_code={self.status_code})"
        )


class InvalidRequestError(OAuth2Error):
    """请求缺少必需参数或参数格式错误 (400)"""

    error = ErrorCode.INVALID_REQUEST
    default_description = "Invalid request"


class InvalidClientError(OAuth2Error):
    """客户端认证失败 (401)

    未知客户端、客户端已禁用、密钥错误等情况。
    """

    error = ErrorCode.INVALID_CLIENT
    status_code = status.HTTP_401_UNAUTHORIZED
    default_description = "Client authentication failed"


class InvalidGrantError(OAuth2Error):
    """授权码无效、过期、已使用或与请求不匹配 (400)"""

    error = ErrorCode.INVALID_GRANT
    default_description = "Invalid grant"


class UnauthorizedClientError(OAuth2Error):
    """客户端无权使用该授权类型 (400)"""

    error = ErrorCode.UNAUTHORIZED_CLIENT
    default_description = "Client is not authorized to use this grant type"


class UnsupportedGrantTypeError(OAuth2Error):
    """不支持的授权类型 (400)"""

    error = ErrorCode.UNSUPPORTED_GRANT_TYPE
    default_description = "Unsupported grant type"


class UnsupportedResponseTypeError(OAuth2Error):
    """不支持的响应类型 (400)"""

    error = ErrorCode.UNSUPPORTED_RESPONSE_TYPE
    default_description = "Unsupported response type"


class InvalidScopeError(OAuth2Error):
    """请求的权限范围超出客户端允许范围 (400)"""

    error = ErrorCode.INVALID_SCOPE
    default_description = "Invalid scope"


class AccessDeniedError(OAuth2Error):
    """资源拥有者拒绝授权 (403)"""

    error = ErrorCode.ACCESS_DENIED
    status_code = status.HTTP_403_FORBIDDEN
    default_description = "Access denied"


class ServerError(OAuth2Error):
    """服务器内部错误 (500)

    描述固定为通用文本，不向调用方暴露内部细节。
    """

    error = ErrorCode.SERVER_ERROR
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_description = "Internal server error"


class Err:
    """OAuth 2.0 错误快捷创建类

    提供统一入口，通过 IDE 自动补全发现所有标准错误类型。

    使用示例:
        from yoauth.exceptions import Err

        return False, Err.invalid_grant("Authorization code expired")
        raise Err.invalid_client()
    """

    @staticmethod
    def invalid_request(description: str = None) -> InvalidRequestError:
        """请求参数错误 (400)"""
        return InvalidRequestError(description)

    @staticmethod
    def invalid_client(description: str = None) -> InvalidClientError:
        """客户端认证失败 (401)"""
        return InvalidClientError(description)

    @staticmethod
    def invalid_grant(description: str = None) -> InvalidGrantError:
        """授权无效 (400)"""
        return InvalidGrantError(description)

    @staticmethod
    def unauthorized_client(description: str = None) -> UnauthorizedClientError:
        """客户端无权使用该授权类型 (400)"""
        return UnauthorizedClientError(description)

    @staticmethod
    def unsupported_grant_type(description: str = None) -> UnsupportedGrantTypeError:
        """不支持的授权类型 (400)"""
        return UnsupportedGrantTypeError(description)

    @staticmethod
    def unsupported_response_type(description: str = None) -> UnsupportedResponseTypeError:
        """不支持的响应类型 (400)"""
        return UnsupportedResponseTypeError(description)

    @staticmethod
    def invalid_scope(description: str = None) -> InvalidScopeError:
        """权限范围无效 (400)"""
        return InvalidScopeError(description)

    @staticmethod
    def access_denied(description: str = None) -> AccessDeniedError:
        """拒绝授权 (403)"""
        return AccessDeniedError(description)

    @staticmethod
    def server_error(description: str = None) -> ServerError:
        """服务器内部错误 (500)"""
        return ServerError(description)
