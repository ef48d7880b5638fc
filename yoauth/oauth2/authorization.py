"""授权请求校验

校验 /authorize 请求参数，产出可直接用于同意页面渲染或签发授权码的结果。
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from yoauth.exceptions import Err, OAuth2Error
from .client import Client
from .directory import ClientDirectory
from .scope import ScopeValidator
from .types import GrantType, ResponseType


@dataclass
class AuthorizationOutcome:
    """校验通过的授权请求（不持久化）"""
    client: Client
    response_type: str
    redirect_uri: str
    scopes: Optional[List[str]] = None
    state: Optional[str] = None
    code_challenge: Optional[str] = None
    code_challenge_method: Optional[str] = None


class AuthorizationRequestValidator:
    """授权请求校验器

    按固定顺序校验，遇到第一个错误立即返回：

    1. 客户端存在且已启用          -> invalid_client
    2. response_type 为 "code"     -> unsupported_response_type
    3. 回调地址已注册               -> invalid_request
    4. 客户端允许授权码模式         -> unauthorized_client
    5. 提供了 PKCE 挑战时方法受支持 -> invalid_request
    6. 权限范围合法                 -> invalid_scope
    """

    def __init__(self, directory: ClientDirectory, scope_validator: ScopeValidator = None):
        self.directory = directory
        self.scope_validator = scope_validator or ScopeValidator()

    def validate(
        self,
        client_id: Optional[str],
        response_type: Optional[str],
        redirect_uri: Optional[str],
        scopes: Optional[List[str]] = None,
        state: Optional[str] = None,
        code_challenge: Optional[str] = None,
        code_challenge_method: Optional[str] = None,
    ) -> Tuple[bool, Union[AuthorizationOutcome, OAuth2Error]]:
        """校验授权请求

        Returns:
            (True, AuthorizationOutcome) 或 (False, OAuth2Error)
        """
        client = self.directory.lookup(client_id)
        if client is None or not client.enabled:
            return False, Err.invalid_client("Invalid client")

        if response_type != ResponseType.CODE.value:
            return False, Err.unsupported_response_type("Only 'code' response type is supported")

        if not self.directory.validate_redirect_uri(client, redirect_uri):
            return False, Err.invalid_request("Invalid redirect URI")

        if not self.directory.supports_grant_type(client, GrantType.AUTHORIZATION_CODE.value):
            return False, Err.unauthorized_client("Client does not support authorization code grant")

        if code_challenge and not self.directory.supports_pkce_method(client, code_challenge_method):
            return False, Err.invalid_request("Unsupported code challenge method")

        ok, result = self.scope_validator.validate(client, scopes)
        if not ok:
            return False, result

        return True, AuthorizationOutcome(
            client=client,
            response_type=response_type,
            redirect_uri=redirect_uri,
            scopes=result,
            state=state,
            code_challenge=code_challenge,
            code_challenge_method=code_challenge_method,
        )
