"""客户端与授权码存储

定义核心依赖的窄存储接口，并提供线程安全的内存实现（适用于单实例和测试）。
数据库实现见 ``yoauth.orm.stores``。

使用示例:
    from yoauth.oauth2.stores import InMemoryClientStore, InMemoryCodeStore

    client_store = InMemoryClientStore()
    client_store.save(client)

    code_store = InMemoryCodeStore()
    code_store.add(auth_code)
    code_store.consume(auth_code.code, now)   # True，仅一次
"""

from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
from threading import Lock
from typing import Dict, List, Optional

from .client import Client
from .code import AuthorizationCode


class ClientStore(ABC):
    """客户端存储抽象基类"""

    @abstractmethod
    def get(self, client_id: str) -> Optional[Client]:
        """根据客户端 ID 获取客户端，不存在返回 None"""
        pass

    @abstractmethod
    def save(self, client: Client) -> None:
        """新增或更新客户端"""
        pass

    @abstractmethod
    def list_by_principal(self, principal: str) -> List[Client]:
        """获取某个用户拥有的客户端"""
        pass


class CodeStore(ABC):
    """授权码存储抽象基类

    ``consume`` 必须是原子的条件更新：并发调用同一授权码时只有一个返回 True。
    """

    @abstractmethod
    def add(self, auth_code: AuthorizationCode) -> None:
        """保存新授权码"""
        pass

    @abstractmethod
    def get(self, code: str) -> Optional[AuthorizationCode]:
        """获取授权码记录（不论是否有效）"""
        pass

    @abstractmethod
    def consume(self, code: str, now: datetime) -> bool:
        """把未使用且未过期的授权码标记为已使用

        等价于 ``UPDATE ... SET used=true WHERE code=? AND used=false AND expires_at>now``。

        Returns:
            本次调用是否完成了标记
        """
        pass

    @abstractmethod
    def delete_expired(self, now: datetime) -> int:
        """删除已过期的授权码，返回删除数量"""
        pass


class InMemoryClientStore(ClientStore):
    """内存客户端存储"""

    def __init__(self):
        self._clients: Dict[str, Client] = {}
        self._lock = Lock()

    def get(self, client_id: str) -> Optional[Client]:
        with self._lock:
            client = self._clients.get(client_id)
            return replace(client) if client else None

    def save(self, client: Client) -> None:
        with self._lock:
            self._clients[client.client_id] = replace(client)

    def list_by_principal(self, principal: str) -> List[Client]:
        with self._lock:
            return [replace(c) for c in self._clients.values() if c.principal == principal]

    def __len__(self) -> int:
        return len(self._clients)


class InMemoryCodeStore(CodeStore):
    """内存授权码存储

    所有读写都在同一把锁内完成，``consume`` 的检查与标记不可分割。
    """

    def __init__(self):
        self._codes: Dict[str, AuthorizationCode] = {}
        self._lock = Lock()

    def add(self, auth_code: AuthorizationCode) -> None:
        with self._lock:
            if auth_code.code in self._codes:
                raise ValueError("授权码已存在")
            self._codes[auth_code.code] = replace(auth_code)

    def get(self, code: str) -> Optional[AuthorizationCode]:
        with self._lock:
            auth_code = self._codes.get(code)
            return replace(auth_code) if auth_code else None

    def consume(self, code: str, now: datetime) -> bool:
        with self._lock:
            auth_code = self._codes.get(code)
            if auth_code is None or not auth_code.is_valid(now):
                return False
            auth_code.used = True
            return True

    def delete_expired(self, now: datetime) -> int:
        with self._lock:
            expired = [c for c, auth_code in self._codes.items() if auth_code.is_expired(now)]
            for code in expired:
                del self._codes[code]
            return len(expired)

    def __len__(self) -> int:
        return len(self._codes)
