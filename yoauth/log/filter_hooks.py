"""日志过滤钩子模块

在请求参数写入日志或访问日志之前过滤敏感数据，
例如客户端密钥、PKCE 校验码、授权码和令牌。

使用示例:
    from yoauth.log import log_filter_hook_manager, SensitiveDataFilterHook

    safe_params = log_filter_hook_manager.apply_filters(params)

    log_filter_hook_manager.register_hook(
        SensitiveDataFilterHook(sensitive_patterns=[r'^id_card$'])
    )
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping

FILTERED_VALUE = "[FILTERED]"

# 按完整字段名匹配，client_id / redirect_uri / code_challenge 不受影响
DEFAULT_SENSITIVE_PATTERNS = [
    r'^client_secret$',
    r'^code$',
    r'^code_verifier$',
    r'^(password|pwd|passwd)$',
    r'^(access_token|refresh_token|token)$',
    r'^authorization$',
]


class LogFilterHook(ABC):
    """日志过滤钩子

    子类实现 filter，返回新字典；需要按内容跳过时覆盖 applies_to。

    使用示例:
        class DropUserAgentHook(LogFilterHook):
            def applies_to(self, log_data):
                return "user_agent" in log_data

            def filter(self, log_data):
                return {k: v for k, v in log_data.items() if k != "user_agent"}
    """

    def applies_to(self, log_data: Dict[str, Any]) -> bool:
        return True

    @abstractmethod
    def filter(self, log_data: Dict[str, Any]) -> Dict[str, Any]:
        """过滤日志数据，不得修改传入的字典"""


class SensitiveDataFilterHook(LogFilterHook):
    """敏感数据过滤器

    字段名命中任一模式（忽略大小写）时整个值被替换为占位符，
    嵌套的字典、列表和元组逐层处理。

    Args:
        sensitive_patterns: 字段名正则列表，默认 DEFAULT_SENSITIVE_PATTERNS
        placeholder: 替换值
    """

    def __init__(self, sensitive_patterns: List[str] = None, placeholder: str = FILTERED_VALUE):
        patterns = DEFAULT_SENSITIVE_PATTERNS if sensitive_patterns is None else sensitive_patterns
        self.sensitive_patterns = list(patterns)
        self.placeholder = placeholder
        self._matcher = re.compile("|".join(f"(?:{p})" for p in patterns), re.IGNORECASE) if patterns else None

    def is_sensitive(self, key: str) -> bool:
        return bool(self._matcher and self._matcher.search(key))

    def filter(self, log_data: Dict[str, Any]) -> Dict[str, Any]:
        return self._redact(log_data)

    def _redact(self, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {
                key: self.placeholder if self.is_sensitive(str(key)) else self._redact(item)
                for key, item in value.items()
            }
        if isinstance(value, (list, tuple)):
            return type(value)(self._redact(item) for item in value)
        return value


class LogFilterHookManager:
    """按注册顺序依次应用过滤钩子"""

    def __init__(self, hooks: List[LogFilterHook] = None):
        self._hooks: List[LogFilterHook] = list(hooks or [])

    def register_hook(self, hook: LogFilterHook) -> LogFilterHook:
        self._hooks.append(hook)
        return hook

    def unregister_hook(self, hook: LogFilterHook):
        if hook in self._hooks:
            self._hooks.remove(hook)

    def get_hooks(self) -> List[LogFilterHook]:
        return list(self._hooks)

    def apply_filters(self, log_data: Dict[str, Any]) -> Dict[str, Any]:
        """应用所有钩子，返回过滤后的新字典（原字典不变）"""
        result = dict(log_data)
        for hook in self._hooks:
            if hook.applies_to(result):
                result = hook.filter(result)
        return result


log_filter_hook_manager = LogFilterHookManager([SensitiveDataFilterHook()])
