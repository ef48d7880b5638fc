"""授权类型处理器测试"""

from concurrent.futures import ThreadPoolExecutor
import base64
import threading

import pytest

from yoauth.exceptions import ErrorCode
from yoauth.oauth2 import (
    AccessToken,
    AuthorizationCodeGrant,
    AuthorizationCodeLedger,
    ClientCredentialsGrant,
    GrantDispatcher,
    InMemoryCodeStore,
    OpaqueTokenIssuer,
    TokenRequest,
    create_code_challenge,
    extract_client_credentials,
    parse_basic_authorization,
)


def _basic(username: str, password: str) -> str:
    return "Basic " + base64.b64encode(f"{username}:{password}".encode()).decode()


@pytest.fixture
def issuer(clock):
    return OpaqueTokenIssuer(clock=clock)


@pytest.fixture
def cc_grant(directory, issuer):
    return ClientCredentialsGrant(directory, issuer)


@pytest.fixture
def code_grant(directory, ledger, issuer):
    return AuthorizationCodeGrant(directory, ledger, issuer)


@pytest.fixture
def dispatcher(cc_grant, code_grant):
    return GrantDispatcher([cc_grant, code_grant])


class TestClientCredentialExtraction:
    """客户端凭证提取测试"""

    def test_parse_basic(self):
        """测试解析 Basic 认证头"""
        assert parse_basic_authorization(_basic("c1", "s1")) == ("c1", "s1")

    def test_parse_basic_colon_in_secret(self):
        """测试密钥中包含冒号"""
        assert parse_basic_authorization(_basic("c1", "s:1")) == ("c1", "s:1")

    def test_parse_basic_invalid(self):
        """测试非法的认证头"""
        assert parse_basic_authorization(None) is None
        assert parse_basic_authorization("Bearer abc") is None
        assert parse_basic_authorization("Basic !!!") is None
        assert parse_basic_authorization("Basic " + base64.b64encode(b"nocolon").decode()) is None

    def test_body_credentials_preferred(self):
        """测试请求体同时带 id 和 secret 时优先使用"""
        assert extract_client_credentials("c1", "s1", _basic("c2", "s2")) == ("c1", "s1")

    def test_fallback_to_basic(self):
        """测试请求体不完整时使用 Basic 认证头"""
        assert extract_client_credentials(None, None, _basic("c2", "s2")) == ("c2", "s2")
        assert extract_client_credentials("c1", None, _basic("c2", "s2")) == ("c2", "s2")

    def test_partial_body_without_header(self):
        """测试只有 client_id"""
        assert extract_client_credentials("c1", None, None) == ("c1", None)


class TestClientCredentialsGrant:
    """客户端凭证模式测试"""

    def test_success(self, cc_grant, make_client, issuer, clock):
        """测试签发令牌"""
        make_client("c1", "s1", grant_types={"client_credentials"}, principal="42",
                    access_token_lifetime=600)
        ok, token = cc_grant.handle(TokenRequest(client_id="c1", client_secret="s1"))

        assert ok is True
        assert token.expires_in(clock()) == 600
        assert issuer.lookup(token.token).principal == "42"

    def test_missing_credentials(self, cc_grant):
        """测试缺少凭证"""
        ok, error = cc_grant.handle(TokenRequest(client_id="c1"))
        assert ok is False
        assert error.error == ErrorCode.INVALID_REQUEST

    def test_wrong_secret(self, cc_grant, make_client):
        """测试密钥错误"""
        make_client("c1", "s1", grant_types={"client_credentials"}, principal="42")
        ok, error = cc_grant.handle(TokenRequest(client_id="c1", client_secret="bad"))
        assert error.error == ErrorCode.INVALID_CLIENT
        assert error.status_code == 401

    def test_grant_not_allowed(self, cc_grant, make_client):
        """测试客户端不支持客户端凭证模式"""
        make_client("c1", "s1", grant_types={"authorization_code"}, principal="42")
        ok, error = cc_grant.handle(TokenRequest(client_id="c1", client_secret="s1"))
        assert error.error == ErrorCode.UNAUTHORIZED_CLIENT

    def test_invalid_scope(self, cc_grant, make_client):
        """测试越权的权限范围"""
        make_client("c1", "s1", grant_types={"client_credentials"}, scopes={"read"}, principal="42")
        ok, error = cc_grant.handle(TokenRequest(client_id="c1", client_secret="s1", scope="read admin"))
        assert error.error == ErrorCode.INVALID_SCOPE
        assert "admin" in error.description

    def test_client_without_principal(self, cc_grant, make_client):
        """测试客户端没有所属用户"""
        make_client("c1", "s1", grant_types={"client_credentials"})
        ok, error = cc_grant.handle(TokenRequest(client_id="c1", client_secret="s1"))
        assert error.error == ErrorCode.INVALID_CLIENT

    def test_public_client_secret_not_checked(self, cc_grant, make_client, issuer):
        """测试公开客户端携带任意密钥即可签发令牌"""
        make_client("pub", confidential=False, grant_types={"client_credentials"}, principal="42")
        ok, token = cc_grant.handle(TokenRequest(client_id="pub", client_secret="anything"))

        assert ok is True
        assert issuer.lookup(token.token).principal == "42"

    def test_public_client_still_needs_secret_parameter(self, cc_grant, make_client):
        """测试公开客户端缺少 client_secret 参数"""
        make_client("pub", confidential=False, grant_types={"client_credentials"}, principal="42")
        ok, error = cc_grant.handle(TokenRequest(client_id="pub"))
        assert error.error == ErrorCode.INVALID_REQUEST


class TestAuthorizationCodeGrant:
    """授权码模式测试"""

    def _request(self, code, /, **overrides):
        params = {
            "code": code,
            "client_id": "c1",
            "client_secret": "s1",
            "redirect_uri": "https://a/cb",
        }
        params.update(overrides)
        return TokenRequest(grant_type="authorization_code", **params)

    def test_exchange(self, code_grant, ledger, make_client, issuer):
        """测试授权码换取令牌"""
        client = make_client("c1", "s1")
        auth_code = ledger.issue(client, "42", "https://a/cb")

        ok, token = code_grant.handle(self._request(auth_code.code))
        assert ok is True
        assert issuer.lookup(token.token).principal == "42"

    def test_second_exchange_fails(self, code_grant, ledger, make_client):
        """测试同一授权码不能使用两次"""
        client = make_client("c1", "s1")
        auth_code = ledger.issue(client, "42", "https://a/cb")

        assert code_grant.handle(self._request(auth_code.code))[0] is True
        ok, error = code_grant.handle(self._request(auth_code.code))
        assert ok is False
        assert error.error == ErrorCode.INVALID_GRANT

    def test_missing_parameters(self, code_grant):
        """测试缺少必需参数"""
        for field in ("code", "redirect_uri", "client_id"):
            ok, error = code_grant.handle(self._request("x", **{field: None}))
            assert error.error == ErrorCode.INVALID_REQUEST

    def test_unknown_code(self, code_grant, make_client):
        """测试未知授权码"""
        make_client("c1", "s1")
        ok, error = code_grant.handle(self._request("unknown"))
        assert error.error == ErrorCode.INVALID_GRANT

    def test_expired_code(self, code_grant, ledger, make_client, clock):
        """测试过期授权码"""
        client = make_client("c1", "s1")
        auth_code = ledger.issue(client, "42", "https://a/cb")
        clock.advance(minutes=11)

        ok, error = code_grant.handle(self._request(auth_code.code))
        assert error.error == ErrorCode.INVALID_GRANT

    def test_client_mismatch(self, code_grant, ledger, make_client):
        """测试授权码属于其他客户端"""
        client = make_client("c1", "s1")
        make_client("c2", "s2")
        auth_code = ledger.issue(client, "42", "https://a/cb")

        ok, error = code_grant.handle(self._request(auth_code.code, client_id="c2", client_secret="s2"))
        assert error.error == ErrorCode.INVALID_CLIENT

    def test_wrong_secret_does_not_consume(self, code_grant, ledger, make_client):
        """测试认证失败时授权码仍然有效"""
        client = make_client("c1", "s1")
        auth_code = ledger.issue(client, "42", "https://a/cb")

        ok, error = code_grant.handle(self._request(auth_code.code, client_secret="bad"))
        assert error.error == ErrorCode.INVALID_CLIENT
        assert ledger.find_valid(auth_code.code) is not None

    def test_redirect_uri_must_match_exactly(self, code_grant, ledger, make_client):
        """测试 Token 端点要求回调地址完全一致"""
        client = make_client("c1", "s1")
        auth_code = ledger.issue(client, "42", "https://a/cb")

        ok, error = code_grant.handle(self._request(auth_code.code, redirect_uri="https://a/cb/extra"))
        assert error.error == ErrorCode.INVALID_GRANT

    def test_public_client_without_secret(self, code_grant, ledger, make_client):
        """测试公开客户端无需密钥"""
        client = make_client("p1", confidential=False)
        auth_code = ledger.issue(client, "42", "https://a/cb")

        ok, token = code_grant.handle(self._request(auth_code.code, client_id="p1", client_secret=None))
        assert ok is True

    def test_confidential_client_without_secret(self, code_grant, ledger, make_client):
        """测试机密客户端缺少密钥时认证失败，不按缺少参数处理"""
        client = make_client("c1", "s1")
        auth_code = ledger.issue(client, "42", "https://a/cb")

        ok, error = code_grant.handle(self._request(auth_code.code, client_secret=None))
        assert error.error == ErrorCode.INVALID_CLIENT
        assert ledger.find_valid(auth_code.code) is not None

    def test_parallel_exchanges_single_winner(self, directory, make_client, issuer):
        """测试并发兑换同一授权码：一个成功，其余 invalid_grant"""
        ledger = AuthorizationCodeLedger(InMemoryCodeStore())
        grant = AuthorizationCodeGrant(directory, ledger, issuer)
        client = make_client("c1", "s1")
        auth_code = ledger.issue(client, "42", "https://a/cb")

        workers = 16
        barrier = threading.Barrier(workers)

        def exchange(_):
            barrier.wait()
            return grant.handle(self._request(auth_code.code))

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(exchange, range(workers)))

        winners = [result for ok, result in results if ok]
        losers = [result for ok, result in results if not ok]
        assert len(winners) == 1
        assert isinstance(winners[0], AccessToken)
        assert len(losers) == workers - 1
        assert all(error.error == ErrorCode.INVALID_GRANT for error in losers)

    def test_pkce_s256(self, code_grant, ledger, make_client):
        """测试 PKCE S256"""
        client = make_client("c1", "s1")
        verifier = "a" * 43
        auth_code = ledger.issue(
            client, "42", "https://a/cb",
            code_challenge=create_code_challenge(verifier, "S256"),
            code_challenge_method="S256",
        )

        ok, error = code_grant.handle(self._request(auth_code.code, code_verifier="b" * 43))
        assert error.error == ErrorCode.INVALID_GRANT
        assert error.description == "Invalid code verifier"

        ok, token = code_grant.handle(self._request(auth_code.code, code_verifier=verifier))
        assert ok is True

    def test_pkce_missing_verifier(self, code_grant, ledger, make_client):
        """测试记录了挑战值但未提供 verifier"""
        client = make_client("c1", "s1")
        auth_code = ledger.issue(client, "42", "https://a/cb", code_challenge="plain-value")

        ok, error = code_grant.handle(self._request(auth_code.code))
        assert error.error == ErrorCode.INVALID_GRANT


class TestGrantDispatcher:
    """授权类型分派测试"""

    def test_supported_grant_types(self, dispatcher):
        """测试支持的授权类型"""
        assert dispatcher.supported_grant_types == ["authorization_code", "client_credentials"]

    def test_missing_grant_type(self, dispatcher):
        """测试缺少 grant_type"""
        ok, error = dispatcher.handle(None, {})
        assert error.error == ErrorCode.INVALID_REQUEST

    def test_unsupported_grant_type(self, dispatcher):
        """测试不支持的授权类型"""
        for grant_type in ("password", "refresh_token", "implicit"):
            ok, error = dispatcher.handle(grant_type, {"client_id": "c1", "client_secret": "s1"})
            assert ok is False
            assert error.error == ErrorCode.UNSUPPORTED_GRANT_TYPE

    def test_dispatch_with_basic_auth(self, dispatcher, make_client):
        """测试通过 Basic 认证头分派客户端凭证请求"""
        make_client("c1", "s1", grant_types={"client_credentials"}, principal="42")
        ok, token = dispatcher.handle(
            "client_credentials",
            {"grant_type": "client_credentials"},
            authorization=_basic("c1", "s1"),
        )
        assert ok is True
        assert token.token_type == "Bearer"
