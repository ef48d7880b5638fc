"""
Pytest 公共配置和 Fixtures

提供测试所需的公共资源：
- 可控时钟
- 内存存储和客户端目录
- 授权服务器核心
- 测试客户端（FastAPI TestClient）
"""

from datetime import datetime, timedelta, timezone
from typing import List

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from yoauth.api import create_oauth2_router
from yoauth.config import OAuth2Settings
from yoauth.exceptions import register_exception_handlers
from yoauth.oauth2 import (
    AccessLogRecord,
    AccessLogSink,
    AuthorizationCodeLedger,
    Client,
    ClientDirectory,
    InMemoryClientStore,
    InMemoryCodeStore,
    OAuth2Server,
    SecretHasher,
)


# ==================== 测试辅助类 ====================

class FakeClock:
    """可手动推进的时钟"""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingAccessLogSink(AccessLogSink):
    """记录所有访问日志，供断言使用"""

    def __init__(self):
        self.records: List[AccessLogRecord] = []

    def record(self, entry: AccessLogRecord) -> None:
        self.records.append(entry)


class FakeUser:
    def __init__(self, user_id: int, username: str):
        self.id = user_id
        self.username = username


# ==================== 基础 Fixtures ====================

@pytest.fixture(scope="session")
def hasher():
    """密钥哈希工具（会话级，避免重复初始化）"""
    return SecretHasher()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client_store():
    return InMemoryClientStore()


@pytest.fixture
def code_store():
    return InMemoryCodeStore()


@pytest.fixture
def make_client(client_store, hasher):
    """创建并保存客户端的工厂函数"""

    def _make(client_id: str = "c1", secret: str = "s1", **kwargs) -> Client:
        confidential = kwargs.pop("confidential", True)
        kwargs.setdefault("redirect_uris", ["https://a/cb"])
        kwargs.setdefault("grant_types", {"authorization_code"})
        client = Client(
            client_id=client_id,
            client_secret_hash=hasher.hash(secret) if confidential else None,
            confidential=confidential,
            **kwargs,
        )
        client_store.save(client)
        return client

    return _make


@pytest.fixture
def directory(client_store, hasher):
    return ClientDirectory(client_store, secret_hasher=hasher)


@pytest.fixture
def ledger(code_store, clock):
    return AuthorizationCodeLedger(code_store, clock=clock)


@pytest.fixture
def access_log():
    return RecordingAccessLogSink()


@pytest.fixture
def server(client_store, code_store, clock, access_log):
    """授权服务器核心（内存存储 + 可控时钟）"""
    return OAuth2Server(
        client_store=client_store,
        code_store=code_store,
        settings=OAuth2Settings(),
        access_log_sink=access_log,
        clock=clock,
    )


# ==================== HTTP Fixtures ====================

@pytest.fixture
def current_user():
    """当前登录用户，测试中可修改 holder["user"] 模拟未登录"""
    return {"user": FakeUser(42, "alice")}


@pytest.fixture
def app(server, current_user):
    """挂载 OAuth2 路由的测试应用"""
    application = FastAPI()
    register_exception_handlers(application)

    def get_current_user(request: Request):
        return current_user["user"]

    application.include_router(create_oauth2_router(
        server,
        get_current_user=get_current_user,
        login_url="/login",
    ))
    return application


@pytest.fixture
def http(app):
    """TestClient，不自动跟随重定向"""
    with TestClient(app, follow_redirects=False) as client:
        yield client
