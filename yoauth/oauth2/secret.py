"""客户端密钥哈希

使用 passlib 对客户端密钥做加盐哈希，验证过程为常量时间比较。

使用示例:
    from yoauth.oauth2.secret import SecretHasher

    hasher = SecretHasher()
    secret_hash = hasher.hash("s1")
    hasher.verify("s1", secret_hash)   # True
    hasher.verify("s2", secret_hash)   # False
"""

from typing import List, Optional

from passlib.context import CryptContext

from yoauth.log import get_logger

logger = get_logger()


class SecretHasher:
    """客户端密钥哈希工具

    第一个方案用于生成新哈希，其余方案只用于验证旧数据。

    Args:
        schemes: passlib 方案名列表，默认 ["pbkdf2_sha256"]
    """

    def __init__(self, schemes: Optional[List[str]] = None):
        self.schemes = list(schemes or ["pbkdf2_sha256"])
        self._context = CryptContext(schemes=self.schemes, deprecated="auto")

    def hash(self, secret: str) -> str:
        """哈希客户端密钥（自带随机盐值）"""
        if not secret:
            raise ValueError("客户端密钥不能为空")
        return self._context.hash(secret)

    def verify(self, secret: Optional[str], secret_hash: Optional[str]) -> bool:
        """验证客户端密钥

        Args:
            secret: 明文密钥
            secret_hash: 存储的哈希值

        Returns:
            是否匹配；任一为空或哈希格式无法识别时返回 False
        """
        if not secret or not secret_hash:
            return False
        try:
            return self._context.verify(secret, secret_hash)
        except ValueError:
            logger.warning("无法识别的客户端密钥哈希格式")
            return False

    def needs_rehash(self, secret_hash: str) -> bool:
        """哈希是否需要升级到首选方案"""
        return self._context.needs_update(secret_hash)


default_secret_hasher = SecretHasher()
