"""OAuth 2.0 授权服务器核心

支持的授权类型：
    - authorization_code（可选 PKCE，plain / S256）
    - client_credentials

使用示例:
    from yoauth.oauth2 import OAuth2Server, InMemoryClientStore, InMemoryCodeStore

    server = OAuth2Server(InMemoryClientStore(), InMemoryCodeStore())
    ok, result = server.handle_token_request("client_credentials", form, authorization)
"""

from .types import (
    GrantType,
    ResponseType,
    CodeChallengeMethod,
    SUPPORTED_GRANT_TYPES,
)
from .client import Client, generate_client_id, generate_client_secret
from .code import AuthorizationCode, AccessToken, utcnow
from .secret import SecretHasher
from .scope import ScopeValidator, parse_scope
from .pkce import PkceVerifier, create_code_challenge
from .stores import ClientStore, CodeStore, InMemoryClientStore, InMemoryCodeStore
from .directory import ClientDirectory, ClientService
from .ledger import AuthorizationCodeLedger
from .authorization import AuthorizationOutcome, AuthorizationRequestValidator
from .issuer import TokenIssuer, OpaqueTokenIssuer
from .grants import (
    BaseGrant,
    TokenRequest,
    ClientCredentialsGrant,
    AuthorizationCodeGrant,
    GrantDispatcher,
    extract_client_credentials,
    parse_basic_authorization,
)
from .access_log import (
    AccessLogStatus,
    AccessLogRecord,
    AccessLogSink,
    LoggingAccessLogSink,
    CompositeAccessLogSink,
    SafeAccessLogSink,
    NullAccessLogSink,
    sanitize_params,
)
from .server import OAuth2Server

__all__ = [
    "GrantType",
    "ResponseType",
    "CodeChallengeMethod",
    "SUPPORTED_GRANT_TYPES",
    "Client",
    "generate_client_id",
    "generate_client_secret",
    "AuthorizationCode",
    "AccessToken",
    "utcnow",
    "SecretHasher",
    "ScopeValidator",
    "parse_scope",
    "PkceVerifier",
    "create_code_challenge",
    "ClientStore",
    "CodeStore",
    "InMemoryClientStore",
    "InMemoryCodeStore",
    "ClientDirectory",
    "ClientService",
    "AuthorizationCodeLedger",
    "AuthorizationOutcome",
    "AuthorizationRequestValidator",
    "TokenIssuer",
    "OpaqueTokenIssuer",
    "BaseGrant",
    "TokenRequest",
    "ClientCredentialsGrant",
    "AuthorizationCodeGrant",
    "GrantDispatcher",
    "extract_client_credentials",
    "parse_basic_authorization",
    "AccessLogStatus",
    "AccessLogRecord",
    "AccessLogSink",
    "LoggingAccessLogSink",
    "CompositeAccessLogSink",
    "SafeAccessLogSink",
    "NullAccessLogSink",
    "sanitize_params",
    "OAuth2Server",
]
