"""权限范围校验"""

from typing import Iterable, List, Optional, Tuple, Union

from yoauth.exceptions import Err, InvalidScopeError
from .client import Client


def parse_scope(scope: Optional[str]) -> Optional[List[str]]:
    """解析空格分隔的 scope 参数

    Args:
        scope: 例如 "read write"

    Returns:
        权限列表；参数为空或只有空白时返回 None
    """
    if not scope:
        return None
    scopes = [s for s in scope.split(" ") if s]
    return scopes or None


class ScopeValidator:
    """检查请求的权限范围是否包含在客户端允许的范围内

    使用示例:
        validator = ScopeValidator()

        ok, result = validator.validate(client, ["read"])
        if not ok:
            return False, result   # InvalidScopeError
    """

    def validate(
        self,
        client: Client,
        requested_scopes: Optional[Iterable[str]] = None,
    ) -> Tuple[bool, Union[Optional[List[str]], InvalidScopeError]]:
        """校验权限范围

        Args:
            client: 客户端
            requested_scopes: 请求的权限列表，None 表示未请求

        Returns:
            (True, scopes)：未请求时 scopes 为 None，否则原样返回请求的列表
            (False, InvalidScopeError)：错误描述列出全部越权的权限
        """
        if requested_scopes is None:
            return True, None

        requested = list(requested_scopes)

        # 未限制权限的客户端原样放行
        if client.scopes is None:
            return True, requested

        invalid = [scope for scope in requested if scope not in client.scopes]
        if invalid:
            return False, Err.invalid_scope(f"Invalid scope: {', '.join(invalid)}")

        return True, requested
