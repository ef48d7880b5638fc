"""OAuth 2.0 客户端

定义客户端值对象，以及客户端 ID 和密钥的生成函数。
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Set, Dict, Any
import secrets

from .types import GrantType, CodeChallengeMethod


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Client:
    """OAuth 2.0 客户端

    机密客户端（confidential=True）必须有非空的密钥哈希；
    公开客户端从不要求出示密钥。

    Attributes:
        client_id: 客户端唯一标识
        client_secret_hash: 密钥哈希（仅机密客户端）
        confidential: 是否为机密客户端
        enabled: 是否启用
        redirect_uris: 已注册的回调地址（有序）
        grant_types: 允许的授权类型
        scopes: 允许的权限范围，None 表示不限制
        access_token_lifetime: 访问令牌有效期（秒）
        refresh_token_lifetime: 刷新令牌有效期（秒）
        pkce_methods: 支持的 PKCE 方法
        principal: 客户端所属用户标识（客户端凭证模式以此身份签发令牌）

    使用示例:
        client = Client(
            client_id="c1",
            client_secret_hash=hasher.hash("s1"),
            redirect_uris=["https://a/cb"],
            grant_types={"authorization_code"},
            scopes={"read", "write"},
        )
    """
    client_id: str
    client_secret_hash: Optional[str] = None
    confidential: bool = True
    enabled: bool = True
    redirect_uris: List[str] = field(default_factory=list)
    grant_types: Set[str] = field(
        default_factory=lambda: {GrantType.CLIENT_CREDENTIALS.value}
    )
    scopes: Optional[Set[str]] = None
    access_token_lifetime: int = 3600
    refresh_token_lifetime: int = 1209600
    pkce_methods: Set[str] = field(
        default_factory=lambda: {m.value for m in CodeChallengeMethod}
    )
    principal: Optional[str] = None

    # 展示信息
    name: str = ""
    description: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.client_id:
            raise ValueError("client_id 不能为空")
        if self.confidential and not self.client_secret_hash:
            raise ValueError(f"机密客户端必须设置密钥哈希: {self.client_id}")

        self.redirect_uris = list(self.redirect_uris or [])
        self.grant_types = {str(g.value if isinstance(g, GrantType) else g) for g in self.grant_types or ()}
        self.pkce_methods = {
            str(m.value if isinstance(m, CodeChallengeMethod) else m) for m in self.pkce_methods or ()
        }
        if self.scopes is not None:
            self.scopes = set(self.scopes)

    def is_public(self) -> bool:
        """是否为公开客户端"""
        return not self.confidential

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典（不包含密钥哈希）"""
        return {
            "client_id": self.client_id,
            "name": self.name,
            "description": self.description,
            "confidential": self.confidential,
            "enabled": self.enabled,
            "redirect_uris": list(self.redirect_uris),
            "grant_types": sorted(self.grant_types),
            "scopes": sorted(self.scopes) if self.scopes is not None else None,
            "access_token_lifetime": self.access_token_lifetime,
            "refresh_token_lifetime": self.refresh_token_lifetime,
            "pkce_methods": sorted(self.pkce_methods),
            "principal": self.principal,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


def generate_client_id(prefix: str = "client") -> str:
    """生成客户端 ID

    Args:
        prefix: ID 前缀

    Returns:
        形如 ``client_<32位十六进制>`` 的客户端 ID
    """
    return f"{prefix}_{secrets.token_hex(16)}"


def generate_client_secret(length: int = 32) -> str:
    """生成客户端密钥（URL 安全）"""
    return secrets.token_urlsafe(length)
