"""IP 地址工具模块

为访问日志提取客户端真实 IP。

使用示例:
    from yoauth.utils.ip import get_client_ip

    client_ip = get_client_ip(request, trusted_proxies=["127.0.0.1", "10.0.0.0/8"])
"""

from ipaddress import ip_address, ip_network
from typing import Iterable, List, Optional

from starlette.requests import Request

UNKNOWN_IP = "unknown"

# 受信任代理转发的头，按优先级排列；X-Forwarded-For 取第一个地址
FORWARDED_HEADERS = ("X-Forwarded-For", "X-Real-IP")


def _parse_ip(value: str):
    try:
        return ip_address(value.strip())
    except ValueError:
        return None


def _parse_networks(items: Iterable[str]) -> list:
    networks = []
    for item in items:
        try:
            networks.append(ip_network(item.strip(), strict=False))
        except ValueError:
            continue
    return networks


def ip_in_list(ip: str, ip_list: List[str]) -> bool:
    """检查 IP 是否匹配列表中的任意一项

    列表项支持单 IP、CIDR 网段和通配符 "*"，无法解析的项被忽略。
    """
    if any(item.strip() == "*" for item in ip_list or []):
        return True
    addr = _parse_ip(ip)
    if addr is None:
        return False
    return any(addr in network for network in _parse_networks(ip_list or []))


def get_client_ip(request: Request, trusted_proxies: Optional[List[str]] = None) -> str:
    """从请求中提取客户端真实 IP

    只有直连地址属于受信任代理时才采信转发头，否则使用连接地址。

    Args:
        request: Starlette/FastAPI Request 对象
        trusted_proxies: 受信任的代理 IP 列表（支持 CIDR）

    Returns:
        客户端 IP 地址字符串，无法获取时为 "unknown"
    """
    if request.client is None:
        return UNKNOWN_IP
    peer = request.client.host
    if not trusted_proxies or not ip_in_list(peer, trusted_proxies):
        return peer

    for header in FORWARDED_HEADERS:
        value = request.headers.get(header)
        if not value:
            continue
        candidate = value.split(",")[0].strip()
        if _parse_ip(candidate) is not None:
            return candidate
    return peer
