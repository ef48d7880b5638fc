"""权限范围与 PKCE 测试"""

import pytest

from yoauth.exceptions import ErrorCode, InvalidScopeError
from yoauth.oauth2 import Client, PkceVerifier, ScopeValidator, create_code_challenge, parse_scope


# RFC 7636 附录 B 的示例
RFC_VERIFIER = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
RFC_CHALLENGE = "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"


def _public_client(scopes=None):
    return Client(client_id="p1", confidential=False, scopes=scopes)


class TestParseScope:
    """scope 参数解析测试"""

    def test_split_by_space(self):
        """测试按空格拆分"""
        assert parse_scope("read write") == ["read", "write"]

    def test_extra_spaces_ignored(self):
        """测试忽略多余空格"""
        assert parse_scope("  read   write ") == ["read", "write"]

    def test_empty_is_none(self):
        """测试空参数"""
        assert parse_scope(None) is None
        assert parse_scope("") is None
        assert parse_scope("   ") is None


class TestScopeValidator:
    """权限范围校验测试"""

    def setup_method(self):
        self.validator = ScopeValidator()

    def test_no_request(self):
        """测试未请求权限"""
        ok, result = self.validator.validate(_public_client({"read"}), None)
        assert ok is True
        assert result is None

    def test_unrestricted_client_passes_through(self):
        """测试未限制权限的客户端原样放行"""
        ok, result = self.validator.validate(_public_client(None), ["anything", "admin"])
        assert ok is True
        assert result == ["anything", "admin"]

    def test_subset_allowed(self):
        """测试请求权限为允许范围子集"""
        ok, result = self.validator.validate(_public_client({"read", "write"}), ["read"])
        assert ok is True
        assert result == ["read"]

    def test_out_of_range_rejected(self):
        """测试越权请求"""
        ok, error = self.validator.validate(_public_client({"read", "write"}), ["read", "admin"])
        assert ok is False
        assert isinstance(error, InvalidScopeError)
        assert error.error == ErrorCode.INVALID_SCOPE
        assert error.status_code == 400

    def test_all_offending_scopes_listed(self):
        """测试错误描述列出全部越权权限"""
        ok, error = self.validator.validate(_public_client({"read"}), ["admin", "read", "root"])
        assert ok is False
        assert error.description == "Invalid scope: admin, root"

    def test_empty_allowed_set(self):
        """测试允许范围为空集时任何请求都越权"""
        ok, error = self.validator.validate(_public_client(set()), ["read"])
        assert ok is False


class TestPkceVerifier:
    """PKCE 校验测试"""

    def setup_method(self):
        self.verifier = PkceVerifier()

    def test_rfc_s256_vector(self):
        """测试 RFC 7636 示例向量"""
        assert create_code_challenge(RFC_VERIFIER, "S256") == RFC_CHALLENGE
        assert self.verifier.verify(RFC_CHALLENGE, "S256", RFC_VERIFIER) is True

    def test_s256_wrong_verifier(self):
        """测试 S256 错误的 verifier"""
        assert self.verifier.verify(RFC_CHALLENGE, "S256", "wrong-verifier") is False

    def test_plain(self):
        """测试 plain 方法"""
        assert self.verifier.verify("abc123", "plain", "abc123") is True
        assert self.verifier.verify("abc123", "plain", "abc124") is False

    def test_method_defaults_to_plain(self):
        """测试未指定方法时按 plain 处理"""
        assert self.verifier.verify("abc123", None, "abc123") is True
        assert self.verifier.verify(RFC_CHALLENGE, None, RFC_VERIFIER) is False

    def test_no_challenge_passes(self):
        """测试未使用 PKCE 时直接通过"""
        assert self.verifier.verify(None, None, "") is True
        assert self.verifier.verify(None, "S256", "anything") is True

    def test_unknown_method_fails(self):
        """测试未知方法一律失败"""
        assert self.verifier.verify("abc123", "S512", "abc123") is False

    def test_missing_verifier_fails(self):
        """测试记录了挑战值但未提供 verifier"""
        assert self.verifier.verify(RFC_CHALLENGE, "S256", "") is False
        assert self.verifier.verify("abc123", "plain", None) is False

    def test_non_ascii_verifier_s256_fails(self):
        """测试 S256 下非 ASCII verifier 失败且不抛异常"""
        assert self.verifier.verify(RFC_CHALLENGE, "S256", "校验码") is False

    def test_non_ascii_verifier_plain_byte_equal(self):
        """测试 plain 下非 ASCII verifier 按字节比较"""
        assert self.verifier.verify("café", "plain", "café") is True
        assert self.verifier.verify("校验码", "plain", "校验码") is True
        assert self.verifier.verify("café", "plain", "cafe") is False

    def test_create_challenge_unknown_method(self):
        """测试计算挑战值时不支持的方法"""
        with pytest.raises(ValueError):
            create_code_challenge("abc", "md5")
