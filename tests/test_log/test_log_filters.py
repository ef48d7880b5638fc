"""日志模块测试

测试日志器命名、日志配置和敏感数据过滤
"""

import logging

import pytest

from yoauth.config import LoggingSettings
from yoauth.log import (
    FILTERED_VALUE,
    AccessLogFormatter,
    LogFilterHook,
    LogFilterHookManager,
    SensitiveDataFilterHook,
    get_logger,
    log_filter_hook_manager,
    setup_logger,
)


class TestGetLogger:
    """get_logger 测试"""

    def test_infer_module_name(self):
        """测试自动推断模块名"""
        assert get_logger().name == __name__

    def test_short_name_prefixed(self):
        """测试简写自动添加前缀"""
        assert get_logger("access").name == "yoauth.access"
        assert get_logger("yoauth.access").name == "yoauth.access"
        assert get_logger("sqlalchemy.engine").name == "sqlalchemy.engine"


class TestSetupLogger:
    """setup_logger 测试"""

    def test_file_handler(self, tmp_path):
        """测试写入日志文件"""
        log_file = tmp_path / "logs" / "oauth2.log"
        logger = setup_logger("yoauth.test_file", level="DEBUG", log_file=str(log_file),
                              console=False, propagate=False)
        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()

        assert log_file.exists()
        assert "hello" in log_file.read_text(encoding="utf-8")
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

    def test_level(self):
        """测试日志级别"""
        logger = setup_logger("yoauth.test_level", level="warning", console=False)
        assert logger.level == logging.WARNING

    def test_from_config(self, tmp_path):
        """测试从 LoggingSettings 读取配置，重复调用不叠加处理器"""
        config = LoggingSettings(level="ERROR", file_path=str(tmp_path / "app.log"), enable_console=False)
        setup_logger("yoauth.test_config", config=config)
        logger = setup_logger("yoauth.test_config", config=config)
        assert logger.level == logging.ERROR
        assert len(logger.handlers) == 1
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


class TestAccessLogFormatter:
    """访问日志格式化器测试"""

    def _record(self, **extra):
        record = logging.LogRecord("yoauth.access", logging.INFO, __file__, 1, "POST /oauth2/token", None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_appends_access_fields(self):
        """测试追加访问日志字段并跳过空值"""
        formatter = AccessLogFormatter("%(message)s")
        line = formatter.format(self._record(access_log={
            "endpoint": "/oauth2/token", "status": "error", "client_id": "c1",
            "user_id": None, "error_code": "invalid_grant",
        }))
        assert line == "POST /oauth2/token | endpoint=/oauth2/token status=error client_id=c1 error_code=invalid_grant"

    def test_plain_record(self):
        """测试普通记录不受影响"""
        assert AccessLogFormatter("%(message)s").format(self._record()) == "POST /oauth2/token"

    def test_microsecond_timestamp(self):
        """测试时间戳包含微秒"""
        stamp = AccessLogFormatter("%(asctime)s").format(self._record())
        assert len(stamp.rsplit(".", 1)[1]) == 6


class TestSensitiveDataFilterHook:
    """敏感数据过滤测试"""

    def test_default_patterns(self):
        """测试默认敏感字段"""
        hook = SensitiveDataFilterHook()
        for key in ("client_secret", "code", "code_verifier", "password", "access_token",
                    "refresh_token", "Authorization"):
            assert hook.is_sensitive(key) is True
        for key in ("client_id", "redirect_uri", "grant_type", "code_challenge", "scope"):
            assert hook.is_sensitive(key) is False

    def test_nested_filtering(self):
        """测试嵌套字典和列表"""
        hook = SensitiveDataFilterHook()
        result = hook.filter({
            "client_id": "c1",
            "headers": {"authorization": "Basic xxx"},
            "items": [{"password": "p"}, "plain"],
        })
        assert result["client_id"] == "c1"
        assert result["headers"]["authorization"] == FILTERED_VALUE
        assert result["items"][0]["password"] == FILTERED_VALUE
        assert result["items"][1] == "plain"

    def test_original_not_modified(self):
        """测试原字典不被修改"""
        data = {"client_secret": "s1"}
        log_filter_hook_manager.apply_filters(data)
        assert data["client_secret"] == "s1"

    def test_custom_hook(self):
        """测试注册自定义钩子"""
        hook = SensitiveDataFilterHook(sensitive_patterns=[r"^id_card$"])
        manager = LogFilterHookManager()
        manager.register_hook(hook)
        try:
            assert manager.apply_filters({"id_card": "123"})["id_card"] == FILTERED_VALUE
        finally:
            manager.unregister_hook(hook)
        assert hook not in manager.get_hooks()

    def test_abstract_hook(self):
        """测试抽象类不能直接实例化"""
        with pytest.raises(TypeError):
            LogFilterHook()
