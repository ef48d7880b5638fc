"""授权码与访问令牌

授权码是一次性、短时有效的凭据，把用户的授权决定绑定到客户端和回调地址。
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
import secrets


def utcnow() -> datetime:
    """当前 UTC 时间（带时区）"""
    return datetime.now(timezone.utc)


@dataclass
class AuthorizationCode:
    """授权码

    授权码有效当且仅当 ``not used and now < expires_at``。
    ``used`` 只能从 False 变为 True 一次，且不可逆。
    """
    code: str
    client_id: str
    principal: str
    redirect_uri: str
    expires_at: datetime
    scopes: Optional[List[str]] = None
    state: Optional[str] = None
    used: bool = False

    # PKCE
    code_challenge: Optional[str] = None
    code_challenge_method: Optional[str] = None  # plain, S256

    created_at: datetime = field(default_factory=utcnow)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """检查是否过期"""
        return (now or utcnow()) >= self.expires_at

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """未使用且未过期"""
        return not self.used and not self.is_expired(now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "client_id": self.client_id,
            "principal": self.principal,
            "redirect_uri": self.redirect_uri,
            "scopes": list(self.scopes) if self.scopes is not None else None,
            "state": self.state,
            "used": self.used,
            "code_challenge": self.code_challenge,
            "code_challenge_method": self.code_challenge_method,
            "expires_at": self.expires_at.isoformat(),
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class AccessToken:
    """令牌签发结果

    令牌本身的格式和存储由 TokenIssuer 决定，核心只关心值和过期时间。
    """
    token: str
    expires_at: datetime
    token_type: str = "Bearer"

    def expires_in(self, now: Optional[datetime] = None) -> int:
        """剩余有效秒数（不小于 0）"""
        remaining = (self.expires_at - (now or utcnow())).total_seconds()
        return max(0, int(remaining))

    def to_response(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """转换为 Token 端点成功响应"""
        return {
            "access_token": self.token,
            "token_type": self.token_type,
            "expires_in": self.expires_in(now),
        }


def generate_authorization_code(length: int = 32) -> str:
    """生成授权码

    Args:
        length: 随机字节数，32 字节即 256 位熵

    Returns:
        URL 安全的授权码字符串
    """
    return secrets.token_urlsafe(length)


def generate_token(length: int = 32) -> str:
    """生成随机 Token"""
    return secrets.token_urlsafe(length)
