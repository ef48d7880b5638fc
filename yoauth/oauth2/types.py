"""OAuth 2.0 协议常量"""

from enum import Enum


class GrantType(str, Enum):
    """授权类型

    Token 端点只接受 AUTHORIZATION_CODE 和 CLIENT_CREDENTIALS。
    """
    AUTHORIZATION_CODE = "authorization_code"
    CLIENT_CREDENTIALS = "client_credentials"


class ResponseType(str, Enum):
    """授权端点响应类型"""
    CODE = "code"


class CodeChallengeMethod(str, Enum):
    """PKCE 挑战方法"""
    PLAIN = "plain"
    S256 = "S256"


# 支持的授权类型集合
SUPPORTED_GRANT_TYPES = frozenset(g.value for g in GrantType)

# 未指定 code_challenge_method 时的默认方法（RFC 7636 4.3）
DEFAULT_CODE_CHALLENGE_METHOD = CodeChallengeMethod.PLAIN.value
