"""应用工厂测试"""

from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from yoauth.app import create_app
from yoauth.config import AppSettings, AccessLogSettings, LoggingSettings
from yoauth.orm import SqlAccessLogSink


class User:
    id = 7


@pytest.fixture
def settings():
    return AppSettings(
        logging=LoggingSettings(enable_console=False),
        access_log=AccessLogSettings(persist=True),
    )


class TestCreateApp:
    """应用工厂测试"""

    def test_database_backed_flow(self, settings):
        """测试数据库存储上的完整授权码流程"""
        app = create_app(settings, get_current_user=lambda request: User())
        server = app.state.oauth2_server
        client, secret = server.clients.create_client(
            name="Web App", redirect_uris=["https://a/cb"], grant_types=["authorization_code"],
        )

        with TestClient(app, follow_redirects=False) as http:
            response = http.post("/oauth2/authorize", data={
                "client_id": client.client_id,
                "response_type": "code",
                "redirect_uri": "https://a/cb",
                "authorize": "yes",
            })
            assert response.status_code == 302
            code = parse_qs(urlparse(response.headers["location"]).query)["code"][0]

            data = {
                "grant_type": "authorization_code",
                "code": code,
                "client_id": client.client_id,
                "client_secret": secret,
                "redirect_uri": "https://a/cb",
            }
            assert http.post("/oauth2/token", data=data).status_code == 200
            assert http.post("/oauth2/token", data=data).json()["error"] == "invalid_grant"

        assert SqlAccessLogSink(app.state.db).count() == 3

    def test_default_user_is_anonymous(self, settings):
        """测试默认未登录时跳转登录页"""
        app = create_app(settings)
        server = app.state.oauth2_server
        client, _ = server.clients.create_client(
            name="Web App", redirect_uris=["https://a/cb"], grant_types=["authorization_code"],
        )

        with TestClient(app, follow_redirects=False) as http:
            response = http.get("/oauth2/authorize", params={
                "client_id": client.client_id,
                "response_type": "code",
                "redirect_uri": "https://a/cb",
            })
        assert response.status_code == 302
        assert response.headers["location"].startswith(settings.oauth2.login_url)

    def test_in_memory_mode(self, settings):
        """测试内存存储模式"""
        app = create_app(settings, use_database=False)
        assert app.state.db is None
        with TestClient(app) as http:
            response = http.post("/oauth2/token", data={"grant_type": "password"})
        assert response.json()["error"] == "unsupported_grant_type"
