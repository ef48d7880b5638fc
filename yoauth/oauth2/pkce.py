"""PKCE (RFC 7636) 校验

使用示例:
    from yoauth.oauth2.pkce import PkceVerifier, create_code_challenge

    challenge = create_code_challenge(verifier, "S256")
    PkceVerifier().verify(challenge, "S256", verifier)   # True
"""

import base64
import hashlib
import hmac
from typing import Optional

from .types import CodeChallengeMethod, DEFAULT_CODE_CHALLENGE_METHOD


def create_code_challenge(code_verifier: str, method: str = CodeChallengeMethod.S256.value) -> str:
    """根据 code_verifier 计算 code_challenge

    Args:
        code_verifier: 客户端生成的随机串
        method: "plain" 或 "S256"

    Returns:
        code_challenge

    Raises:
        ValueError: 不支持的方法
    """
    if method == CodeChallengeMethod.PLAIN.value:
        return code_verifier
    if method == CodeChallengeMethod.S256.value:
        digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
        return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")
    raise ValueError(f"不支持的 code_challenge_method: {method}")


class PkceVerifier:
    """校验授权码上记录的 code_challenge 与 Token 请求中的 code_verifier"""

    def verify(
        self,
        code_challenge: Optional[str],
        code_challenge_method: Optional[str],
        code_verifier: str,
    ) -> bool:
        """校验 PKCE

        Args:
            code_challenge: 授权码上记录的挑战值，None 表示未使用 PKCE
            code_challenge_method: 挑战方法，None 按 "plain" 处理
            code_verifier: Token 请求携带的校验码

        Returns:
            未记录挑战值时直接通过；未知方法一律失败
        """
        if not code_challenge:
            return True

        method = code_challenge_method or DEFAULT_CODE_CHALLENGE_METHOD
        if method not in (CodeChallengeMethod.PLAIN.value, CodeChallengeMethod.S256.value):
            return False

        verifier = code_verifier or ""
        if method == CodeChallengeMethod.PLAIN.value:
            expected = verifier.encode("utf-8")
        else:
            try:
                expected = create_code_challenge(verifier, method).encode("ascii")
            except UnicodeEncodeError:
                # S256 只对 ASCII verifier 求摘要
                return False

        return hmac.compare_digest(expected, code_challenge.encode("utf-8"))
