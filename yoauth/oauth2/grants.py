"""OAuth 2.0 授权类型实现

Token 端点的授权处理：
    - ClientCredentialsGrant: 客户端凭证模式（服务间通信）
    - AuthorizationCodeGrant: 授权码模式（支持 PKCE）
    - GrantDispatcher: 按 grant_type 路由到对应的处理器

每个处理器返回 ``(True, AccessToken)`` 或 ``(False, OAuth2Error)``。
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union
import base64
import binascii

from yoauth.exceptions import Err, OAuth2Error
from yoauth.log import get_logger
from .code import AccessToken
from .directory import ClientDirectory
from .issuer import TokenIssuer
from .ledger import AuthorizationCodeLedger
from .pkce import PkceVerifier
from .scope import ScopeValidator, parse_scope
from .types import GrantType

logger = get_logger()

GrantResult = Tuple[bool, Union[AccessToken, OAuth2Error]]


def parse_basic_authorization(authorization: Optional[str]) -> Optional[Tuple[str, str]]:
    """解析 HTTP Basic 认证头

    Args:
        authorization: Authorization 头的值，如 "Basic YzE6czE="

    Returns:
        (username, password)，在第一个冒号处分割；格式不合法时返回 None
    """
    if not authorization:
        return None

    scheme, _, param = authorization.partition(" ")
    if scheme.lower() != "basic" or not param:
        return None

    try:
        decoded = base64.b64decode(param.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None

    username, separator, password = decoded.partition(":")
    if not separator:
        return None
    return username, password


def extract_client_credentials(
    client_id: Optional[str],
    client_secret: Optional[str],
    authorization: Optional[str] = None,
) -> Tuple[Optional[str], Optional[str]]:
    """提取客户端凭证

    请求体中同时带有 client_id 和 client_secret 时直接使用，
    否则尝试从 HTTP Basic 认证头中读取。

    Returns:
        (client_id, client_secret)，缺失的值为 None
    """
    if client_id and client_secret:
        return client_id, client_secret

    basic = parse_basic_authorization(authorization)
    if basic is not None:
        return basic[0] or None, basic[1] or None

    return client_id or None, client_secret or None


@dataclass
class TokenRequest:
    """Token 请求参数"""
    grant_type: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    scope: Optional[str] = None

    # Authorization Code 相关
    code: Optional[str] = None
    redirect_uri: Optional[str] = None
    code_verifier: Optional[str] = None  # PKCE

    @classmethod
    def from_params(cls, params: Mapping[str, Optional[str]], authorization: Optional[str] = None) -> "TokenRequest":
        """从表单参数和 Authorization 头构造请求"""
        client_id, client_secret = extract_client_credentials(
            params.get("client_id"), params.get("client_secret"), authorization
        )
        return cls(
            grant_type=params.get("grant_type") or None,
            client_id=client_id,
            client_secret=client_secret,
            scope=params.get("scope") or None,
            code=params.get("code") or None,
            redirect_uri=params.get("redirect_uri") or None,
            code_verifier=params.get("code_verifier") or None,
        )


class BaseGrant(ABC):
    """授权处理器基类"""

    @property
    @abstractmethod
    def grant_type(self) -> GrantType:
        """返回授权类型"""
        pass

    @abstractmethod
    def handle(self, request: TokenRequest) -> GrantResult:
        """处理 Token 请求

        Returns:
            (True, AccessToken) 或 (False, OAuth2Error)
        """
        pass


class ClientCredentialsGrant(BaseGrant):
    """客户端凭证授权

    以客户端所属用户的身份签发令牌。请求必须同时携带 client_id 和
    client_secret；公开客户端的密钥不做校验。

    使用示例:
        grant = ClientCredentialsGrant(directory, issuer)
        ok, result = grant.handle(TokenRequest(
            grant_type="client_credentials",
            client_id="c1",
            client_secret="s1",
            scope="read",
        ))
    """

    def __init__(
        self,
        directory: ClientDirectory,
        token_issuer: TokenIssuer,
        scope_validator: ScopeValidator = None,
    ):
        self.directory = directory
        self.token_issuer = token_issuer
        self.scope_validator = scope_validator or ScopeValidator()

    @property
    def grant_type(self) -> GrantType:
        return GrantType.CLIENT_CREDENTIALS

    def handle(self, request: TokenRequest) -> GrantResult:
        if not request.client_id or not request.client_secret:
            return False, Err.invalid_request("client_id and client_secret are required")

        ok, result = self.directory.authenticate(request.client_id, request.client_secret)
        if not ok:
            return False, result
        client = result

        if not self.directory.supports_grant_type(client, self.grant_type.value):
            return False, Err.unauthorized_client("Client does not support client credentials grant")

        ok, result = self.scope_validator.validate(client, parse_scope(request.scope))
        if not ok:
            return False, result

        if not client.principal:
            return False, Err.invalid_client("Client has no associated user")

        token = self.token_issuer.issue(client.principal, client.access_token_lifetime)
        logger.info(f"客户端凭证模式签发令牌: client={client.client_id}")
        return True, token


class AuthorizationCodeGrant(BaseGrant):
    """授权码授权

    校验顺序：授权码有效 -> 客户端一致 -> 客户端认证 -> 回调地址精确一致
    -> PKCE -> 原子标记已使用 -> 签发令牌。

    使用示例:
        grant = AuthorizationCodeGrant(directory, ledger, issuer)
        ok, result = grant.handle(TokenRequest(
            grant_type="authorization_code",
            code=code,
            client_id="c1",
            client_secret="s1",
            redirect_uri="https://a/cb",
        ))
    """

    def __init__(
        self,
        directory: ClientDirectory,
        ledger: AuthorizationCodeLedger,
        token_issuer: TokenIssuer,
        pkce_verifier: PkceVerifier = None,
    ):
        self.directory = directory
        self.ledger = ledger
        self.token_issuer = token_issuer
        self.pkce_verifier = pkce_verifier or PkceVerifier()

    @property
    def grant_type(self) -> GrantType:
        return GrantType.AUTHORIZATION_CODE

    def handle(self, request: TokenRequest) -> GrantResult:
        if not request.code:
            return False, Err.invalid_request("Missing code")
        if not request.redirect_uri:
            return False, Err.invalid_request("Missing redirect_uri")
        if not request.client_id:
            return False, Err.invalid_request("client_id is required")

        auth_code = self.ledger.find_valid(request.code)
        if auth_code is None:
            return False, Err.invalid_grant("Invalid authorization code")

        if auth_code.client_id != request.client_id:
            return False, Err.invalid_client("Client mismatch")

        # 公开客户端不校验密钥，机密客户端必须通过密钥验证
        ok, result = self.directory.authenticate(request.client_id, request.client_secret)
        if not ok:
            return False, result
        client = result

        # Token 端点只接受与授权码记录完全一致的回调地址
        if auth_code.redirect_uri != request.redirect_uri:
            return False, Err.invalid_grant("Redirect URI mismatch")

        if not self.pkce_verifier.verify(
            auth_code.code_challenge,
            auth_code.code_challenge_method,
            request.code_verifier or "",
        ):
            return False, Err.invalid_grant("Invalid code verifier")

        # 先持久化已使用状态再签发令牌
        if not self.ledger.mark_used(auth_code.code):
            return False, Err.invalid_grant("Authorization code already used")

        token = self.token_issuer.issue(auth_code.principal, client.access_token_lifetime)
        logger.info(f"授权码模式签发令牌: client={client.client_id}, principal={auth_code.principal}")
        return True, token


class GrantDispatcher:
    """授权类型路由

    只支持 authorization_code 和 client_credentials；
    其他 grant_type 在读取任何凭证之前就返回 unsupported_grant_type。

    使用示例:
        dispatcher = GrantDispatcher([cc_grant, code_grant])
        ok, result = dispatcher.handle("client_credentials", form_params, authorization_header)
    """

    def __init__(self, grants: Iterable[BaseGrant]):
        self._grants: Dict[str, BaseGrant] = {}
        for grant in grants:
            self._grants[grant.grant_type.value] = grant

    @property
    def supported_grant_types(self) -> list:
        return sorted(self._grants)

    def handle(
        self,
        grant_type: Optional[str],
        params: Mapping[str, Optional[str]],
        authorization: Optional[str] = None,
    ) -> GrantResult:
        """分派 Token 请求

        Args:
            grant_type: 授权类型
            params: 请求体参数
            authorization: Authorization 请求头

        Returns:
            (True, AccessToken) 或 (False, OAuth2Error)
        """
        if not grant_type:
            return False, Err.invalid_request("Missing grant_type")

        grant = self._grants.get(grant_type)
        if grant is None:
            return False, Err.unsupported_grant_type(f"Unsupported grant type: {grant_type}")

        return grant.handle(TokenRequest.from_params(params, authorization))
