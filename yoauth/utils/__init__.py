"""工具模块

使用示例:
    from yoauth.utils import get_client_ip, ip_in_list
"""

from .ip import get_client_ip, ip_in_list

__all__ = [
    "get_client_ip",
    "ip_in_list",
]
