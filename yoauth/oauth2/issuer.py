"""访问令牌签发

核心把令牌签发视为黑盒：给定用户标识和有效期，返回不透明令牌及过期时间。
令牌格式、签名和存储由 TokenIssuer 的实现决定。
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from threading import Lock
from typing import Callable, Dict, Optional

from .code import AccessToken, generate_token, utcnow


class TokenIssuer(ABC):
    """令牌签发器抽象基类"""

    @abstractmethod
    def issue(self, principal: str, lifetime_seconds: int) -> AccessToken:
        """为用户签发访问令牌

        Args:
            principal: 用户标识
            lifetime_seconds: 有效期（秒）

        Returns:
            AccessToken
        """
        pass


@dataclass
class IssuedToken:
    """已签发令牌的记录"""
    principal: str
    expires_at: datetime


class OpaqueTokenIssuer(TokenIssuer):
    """内存不透明令牌签发器

    令牌是随机字符串，资源服务器通过 ``lookup`` 反查所属用户。
    适用于单实例部署和测试；多实例部署应提供基于共享存储的实现。

    使用示例:
        issuer = OpaqueTokenIssuer()
        token = issuer.issue("user-1", 3600)
        issuer.lookup(token.token).principal   # "user-1"
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock
        self._tokens: Dict[str, IssuedToken] = {}
        self._lock = Lock()

    def issue(self, principal: str, lifetime_seconds: int) -> AccessToken:
        expires_at = self.clock() + timedelta(seconds=lifetime_seconds)
        token = generate_token()
        with self._lock:
            self._tokens[token] = IssuedToken(principal=principal, expires_at=expires_at)
        return AccessToken(token=token, expires_at=expires_at)

    def lookup(self, token: str) -> Optional[IssuedToken]:
        """查找未过期的令牌记录"""
        with self._lock:
            issued = self._tokens.get(token)
        if issued is None or self.clock() >= issued.expires_at:
            return None
        return issued

    def remove_expired(self) -> int:
        """清理过期令牌，返回删除数量"""
        now = self.clock()
        with self._lock:
            expired = [t for t, issued in self._tokens.items() if now >= issued.expires_at]
            for token in expired:
                del self._tokens[token]
        return len(expired)
