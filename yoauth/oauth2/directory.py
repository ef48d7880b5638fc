"""客户端目录

- ClientDirectory: 查找、认证客户端，校验回调地址、授权类型和 PKCE 方法（只读）
- ClientService: 客户端管理命令（创建、轮换密钥、启用、禁用）

客户端状态不做缓存，每次都从存储读取，禁用和轮换密钥立即生效。
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple, Union

from yoauth.exceptions import Err, InvalidClientError
from yoauth.log import get_logger
from .client import Client, generate_client_id, generate_client_secret
from .secret import SecretHasher, default_secret_hasher
from .stores import ClientStore
from .types import DEFAULT_CODE_CHALLENGE_METHOD, GrantType

logger = get_logger()


class ClientDirectory:
    """客户端目录

    Args:
        client_store: 客户端存储
        secret_hasher: 密钥哈希工具
        strict_redirect_uri: 默认的回调地址校验策略，
            False 时额外接受以已注册地址为前缀的回调地址

    使用示例:
        directory = ClientDirectory(client_store)

        ok, result = directory.authenticate("c1", "s1")
        if ok:
            client = result
    """

    def __init__(
        self,
        client_store: ClientStore,
        secret_hasher: SecretHasher = None,
        strict_redirect_uri: bool = False,
    ):
        self.client_store = client_store
        self.secret_hasher = secret_hasher or default_secret_hasher
        self.strict_redirect_uri = strict_redirect_uri

    def lookup(self, client_id: Optional[str]) -> Optional[Client]:
        """根据客户端 ID 查找客户端，不存在返回 None"""
        if not client_id:
            return None
        return self.client_store.get(client_id)

    def verify_secret(self, client: Client, secret: Optional[str]) -> bool:
        """常量时间验证客户端密钥"""
        return self.secret_hasher.verify(secret, client.client_secret_hash)

    def authenticate(
        self,
        client_id: Optional[str],
        secret: Optional[str] = None,
    ) -> Tuple[bool, Union[Client, InvalidClientError]]:
        """认证客户端

        - 客户端不存在或已禁用：无论密钥是否正确都失败
        - 机密客户端：必须提供能通过哈希验证的密钥
        - 公开客户端：不要求也不检查密钥

        Returns:
            (True, Client) 或 (False, InvalidClientError)
        """
        client = self.lookup(client_id)
        if client is None:
            return False, Err.invalid_client("Client not found")

        if not client.enabled:
            logger.info(f"已禁用的客户端尝试认证: {client_id}")
            return False, Err.invalid_client("Client is disabled")

        if client.confidential:
            if not self.verify_secret(client, secret):
                return False, Err.invalid_client("Invalid client credentials")
            if self.secret_hasher.needs_rehash(client.client_secret_hash):
                client = replace(client, client_secret_hash=self.secret_hasher.hash(secret))
                self.client_store.save(client)
                logger.info(f"客户端密钥哈希已升级到首选方案: {client_id}")

        return True, client

    def validate_redirect_uri(
        self,
        client: Client,
        redirect_uri: Optional[str],
        strict: Optional[bool] = None,
    ) -> bool:
        """校验回调地址

        Args:
            client: 客户端
            redirect_uri: 请求的回调地址
            strict: True 只接受精确匹配；False 额外接受以已注册地址为前缀的地址；
                None 使用目录的默认策略

        Returns:
            是否已注册
        """
        if not redirect_uri:
            return False

        if redirect_uri in client.redirect_uris:
            return True

        if strict is None:
            strict = self.strict_redirect_uri
        if strict:
            return False

        return any(
            registered and redirect_uri.startswith(registered)
            for registered in client.redirect_uris
        )

    def supports_grant_type(self, client: Client, grant_type: str) -> bool:
        """客户端是否允许使用该授权类型"""
        return grant_type in client.grant_types

    def supports_pkce_method(self, client: Client, method: Optional[str] = None) -> bool:
        """客户端是否支持该 PKCE 方法，未指定时按 "plain" 处理"""
        return (method or DEFAULT_CODE_CHALLENGE_METHOD) in client.pkce_methods


class ClientService:
    """客户端管理服务

    每个生命周期变化对应一个显式命令，变更直接写回存储。

    使用示例:
        service = ClientService(client_store, id_prefix="client")

        client, secret = service.create_client(
            name="Web App",
            redirect_uris=["https://a/cb"],
            grant_types=["authorization_code"],
            principal="user-1",
        )
        # secret 只在此处以明文返回一次

        new_secret = service.rotate_secret(client.client_id)
        service.disable(client.client_id)
    """

    def __init__(
        self,
        client_store: ClientStore,
        secret_hasher: SecretHasher = None,
        id_prefix: str = "client",
        access_token_lifetime: int = 3600,
        refresh_token_lifetime: int = 1209600,
    ):
        self.client_store = client_store
        self.secret_hasher = secret_hasher or default_secret_hasher
        self.id_prefix = id_prefix
        self.access_token_lifetime = access_token_lifetime
        self.refresh_token_lifetime = refresh_token_lifetime

    def create_client(
        self,
        name: str,
        redirect_uris: Iterable[str] = (),
        grant_types: Iterable[str] = (GrantType.CLIENT_CREDENTIALS.value,),
        scopes: Optional[Iterable[str]] = None,
        confidential: bool = True,
        principal: Optional[str] = None,
        description: Optional[str] = None,
        pkce_methods: Optional[Iterable[str]] = None,
        client_id: Optional[str] = None,
    ) -> Tuple[Client, Optional[str]]:
        """创建客户端

        Returns:
            (client, plain_secret)：公开客户端的 plain_secret 为 None
        """
        client_id = client_id or generate_client_id(self.id_prefix)
        if self.client_store.get(client_id) is not None:
            raise ValueError(f"客户端已存在: {client_id}")

        plain_secret = generate_client_secret() if confidential else None
        extra = {}
        if pkce_methods is not None:
            extra["pkce_methods"] = set(pkce_methods)

        client = Client(
            client_id=client_id,
            client_secret_hash=self.secret_hasher.hash(plain_secret) if plain_secret else None,
            confidential=confidential,
            redirect_uris=list(redirect_uris),
            grant_types=set(grant_types),
            scopes=set(scopes) if scopes is not None else None,
            access_token_lifetime=self.access_token_lifetime,
            refresh_token_lifetime=self.refresh_token_lifetime,
            principal=principal,
            name=name,
            description=description,
            **extra,
        )
        self.client_store.save(client)
        logger.info(f"创建OAuth2客户端: {client_id} ({name})")
        return client, plain_secret

    def rotate_secret(self, client_id: str) -> str:
        """为机密客户端生成新密钥，旧密钥立即失效

        Returns:
            新的明文密钥
        """
        client = self._require(client_id)
        if not client.confidential:
            raise ValueError(f"公开客户端没有密钥: {client_id}")

        plain_secret = generate_client_secret()
        self._save(replace(client, client_secret_hash=self.secret_hasher.hash(plain_secret)))
        logger.info(f"已轮换客户端密钥: {client_id}")
        return plain_secret

    def disable(self, client_id: str) -> Client:
        """禁用客户端"""
        client = self._save(replace(self._require(client_id), enabled=False))
        logger.info(f"已禁用客户端: {client_id}")
        return client

    def enable(self, client_id: str) -> Client:
        """启用客户端"""
        client = self._save(replace(self._require(client_id), enabled=True))
        logger.info(f"已启用客户端: {client_id}")
        return client

    def update(
        self,
        client_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        redirect_uris: Optional[Iterable[str]] = None,
        grant_types: Optional[Iterable[str]] = None,
        scopes: Optional[Iterable[str]] = None,
    ) -> Client:
        """更新客户端的展示信息和授权配置（None 表示不修改）"""
        client = self._require(client_id)
        changes = {}
        if name is not None:
            changes["name"] = name
        if description is not None:
            changes["description"] = description
        if redirect_uris is not None:
            changes["redirect_uris"] = list(redirect_uris)
        if grant_types is not None:
            changes["grant_types"] = set(grant_types)
        if scopes is not None:
            changes["scopes"] = set(scopes)
        return self._save(replace(client, **changes))

    def list_by_principal(self, principal: str) -> List[Client]:
        """获取用户拥有的客户端"""
        return self.client_store.list_by_principal(principal)

    def _require(self, client_id: str) -> Client:
        client = self.client_store.get(client_id)
        if client is None:
            raise KeyError(f"客户端不存在: {client_id}")
        return client

    def _save(self, client: Client) -> Client:
        client.updated_at = datetime.now(timezone.utc)
        self.client_store.save(client)
        return client
