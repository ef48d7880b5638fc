"""OAuth 2.0 授权服务器

把客户端目录、授权码台账、授权请求校验、授权类型分派和令牌签发组装在一起，
HTTP 层只需要持有一个 OAuth2Server 实例。

使用示例:
    from yoauth.config import OAuth2Settings
    from yoauth.oauth2 import OAuth2Server, InMemoryClientStore, InMemoryCodeStore

    server = OAuth2Server(
        client_store=InMemoryClientStore(),
        code_store=InMemoryCodeStore(),
        settings=OAuth2Settings(),
    )

    client, secret = server.clients.create_client(
        name="demo",
        redirect_uris=["https://a/cb"],
        grant_types=["authorization_code"],
        principal="user-1",
    )

    ok, outcome = server.validate_authorization_request(
        client_id=client.client_id,
        response_type="code",
        redirect_uri="https://a/cb",
    )
    auth_code = server.issue_code(outcome, principal="user-1")

    ok, token = server.handle_token_request(
        "authorization_code",
        {"code": auth_code.code, "client_id": client.client_id,
         "client_secret": secret, "redirect_uri": "https://a/cb"},
    )
"""

from datetime import datetime
from typing import Callable, List, Mapping, Optional, Tuple, Union

from yoauth.config import OAuth2Settings
from yoauth.exceptions import OAuth2Error
from yoauth.log import get_logger
from .access_log import AccessLogSink, LoggingAccessLogSink, SafeAccessLogSink
from .authorization import AuthorizationOutcome, AuthorizationRequestValidator
from .code import AuthorizationCode, utcnow
from .directory import ClientDirectory, ClientService
from .grants import AuthorizationCodeGrant, ClientCredentialsGrant, GrantDispatcher, GrantResult
from .issuer import OpaqueTokenIssuer, TokenIssuer
from .ledger import AuthorizationCodeLedger
from .pkce import PkceVerifier
from .scope import ScopeValidator
from .secret import SecretHasher
from .stores import ClientStore, CodeStore

logger = get_logger()


class OAuth2Server:
    """授权服务器核心

    Args:
        client_store: 客户端存储
        code_store: 授权码存储
        settings: OAuth2 配置，默认读取环境变量
        token_issuer: 令牌签发器，默认 OpaqueTokenIssuer
        access_log_sink: 访问日志接收器，默认写日志；总会被 SafeAccessLogSink 包装
        clock: 返回当前 UTC 时间的函数
    """

    def __init__(
        self,
        client_store: ClientStore,
        code_store: CodeStore,
        settings: OAuth2Settings = None,
        token_issuer: TokenIssuer = None,
        access_log_sink: AccessLogSink = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.settings = settings or OAuth2Settings()
        self.clock = clock

        secret_hasher = SecretHasher(self.settings.secret_schemes)
        self.directory = ClientDirectory(
            client_store,
            secret_hasher=secret_hasher,
            strict_redirect_uri=self.settings.strict_redirect_uri,
        )
        self.clients = ClientService(
            client_store,
            secret_hasher=secret_hasher,
            id_prefix=self.settings.client_id_prefix,
            access_token_lifetime=self.settings.access_token_lifetime,
            refresh_token_lifetime=self.settings.refresh_token_lifetime,
        )
        self.ledger = AuthorizationCodeLedger(
            code_store,
            default_ttl_minutes=self.settings.authorization_code_ttl_minutes,
            clock=clock,
        )
        self.token_issuer = token_issuer or OpaqueTokenIssuer(clock=clock)

        scope_validator = ScopeValidator()
        self.authorization_validator = AuthorizationRequestValidator(self.directory, scope_validator)
        self.dispatcher = GrantDispatcher([
            ClientCredentialsGrant(self.directory, self.token_issuer, scope_validator),
            AuthorizationCodeGrant(self.directory, self.ledger, self.token_issuer, PkceVerifier()),
        ])
        self.access_log = SafeAccessLogSink(access_log_sink or LoggingAccessLogSink())

    def validate_authorization_request(
        self,
        client_id: Optional[str],
        response_type: Optional[str],
        redirect_uri: Optional[str],
        scopes: Optional[List[str]] = None,
        state: Optional[str] = None,
        code_challenge: Optional[str] = None,
        code_challenge_method: Optional[str] = None,
    ) -> Tuple[bool, Union[AuthorizationOutcome, OAuth2Error]]:
        """校验授权请求，见 AuthorizationRequestValidator.validate"""
        return self.authorization_validator.validate(
            client_id=client_id,
            response_type=response_type,
            redirect_uri=redirect_uri,
            scopes=scopes,
            state=state,
            code_challenge=code_challenge,
            code_challenge_method=code_challenge_method,
        )

    def issue_code(self, outcome: AuthorizationOutcome, principal: str) -> AuthorizationCode:
        """用户同意后为已校验的请求签发授权码"""
        return self.ledger.issue(
            client=outcome.client,
            principal=principal,
            redirect_uri=outcome.redirect_uri,
            scopes=outcome.scopes,
            code_challenge=outcome.code_challenge,
            code_challenge_method=outcome.code_challenge_method,
            state=outcome.state,
        )

    def handle_token_request(
        self,
        grant_type: Optional[str],
        params: Mapping[str, Optional[str]],
        authorization: Optional[str] = None,
    ) -> GrantResult:
        """处理 Token 请求，见 GrantDispatcher.handle"""
        return self.dispatcher.handle(grant_type, params, authorization)

    def remove_expired_codes(self) -> int:
        """清理过期授权码"""
        return self.ledger.remove_expired()
