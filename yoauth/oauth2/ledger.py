"""授权码台账

管理授权码的完整生命周期：签发、查询、一次性消费、过期清理。

状态机:
    Issued -> Used     （终态，由 mark_used 触发）
    Issued -> Expired  （终态，按时间计算，不单独记录）

使用示例:
    ledger = AuthorizationCodeLedger(InMemoryCodeStore())

    auth_code = ledger.issue(client, "user-1", "https://a/cb", scopes=["read"])

    found = ledger.find_valid(auth_code.code)
    if found and ledger.mark_used(found.code):
        ...  # 只有一个请求能走到这里
"""

from datetime import datetime, timedelta
from typing import Callable, List, Optional

from yoauth.log import get_logger
from .client import Client
from .code import AuthorizationCode, generate_authorization_code, utcnow
from .stores import CodeStore

logger = get_logger()

DEFAULT_CODE_TTL_MINUTES = 10


class AuthorizationCodeLedger:
    """授权码台账

    Args:
        code_store: 授权码存储，负责原子的条件更新
        default_ttl_minutes: 默认有效期（分钟）
        clock: 返回当前 UTC 时间的函数，便于测试注入
    """

    def __init__(
        self,
        code_store: CodeStore,
        default_ttl_minutes: int = DEFAULT_CODE_TTL_MINUTES,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.code_store = code_store
        self.default_ttl_minutes = default_ttl_minutes
        self.clock = clock

    def issue(
        self,
        client: Client,
        principal: str,
        redirect_uri: str,
        scopes: Optional[List[str]] = None,
        ttl_minutes: Optional[int] = None,
        code_challenge: Optional[str] = None,
        code_challenge_method: Optional[str] = None,
        state: Optional[str] = None,
    ) -> AuthorizationCode:
        """签发授权码

        Args:
            client: 客户端
            principal: 授权用户标识
            redirect_uri: 回调地址（Token 端点将要求精确一致）
            scopes: 授权的权限范围
            ttl_minutes: 有效期（分钟），默认 10 分钟
            code_challenge: PKCE 挑战值
            code_challenge_method: PKCE 方法
            state: 原样透传的 state

        Returns:
            新授权码（used=False）
        """
        ttl = self.default_ttl_minutes if ttl_minutes is None else ttl_minutes
        now = self.clock()

        auth_code = AuthorizationCode(
            code=generate_authorization_code(),
            client_id=client.client_id,
            principal=principal,
            redirect_uri=redirect_uri,
            scopes=list(scopes) if scopes is not None else None,
            state=state,
            code_challenge=code_challenge,
            code_challenge_method=code_challenge_method,
            expires_at=now + timedelta(minutes=ttl),
            created_at=now,
        )
        self.code_store.add(auth_code)
        logger.debug(f"签发授权码: client={client.client_id}, principal={principal}")
        return auth_code

    def find_valid(self, code: Optional[str]) -> Optional[AuthorizationCode]:
        """查找有效授权码（未使用且未过期），否则返回 None

        调用方必须随后调用 ``mark_used`` 并检查其返回值，
        查询与标记合起来才构成一次消费。
        """
        if not code:
            return None
        auth_code = self.code_store.get(code)
        if auth_code is None or not auth_code.is_valid(self.clock()):
            return None
        return auth_code

    def mark_used(self, code: str) -> bool:
        """标记授权码已使用

        通过存储的条件更新完成，并发请求中只有一个返回 True；
        已使用或已过期的授权码返回 False。
        """
        consumed = self.code_store.consume(code, self.clock())
        if not consumed:
            logger.warning("授权码重复使用或已失效，拒绝标记")
        return consumed

    def remove_expired(self) -> int:
        """清理过期授权码

        Returns:
            删除数量
        """
        count = self.code_store.delete_expired(self.clock())
        if count:
            logger.info(f"已清理过期授权码: {count} 条")
        return count
