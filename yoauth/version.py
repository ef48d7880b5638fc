"""版本信息"""

__version__ = "0.1.0"
__author__ = "yoauth"
__description__ = "OAuth 2.0 授权服务器核心（授权码 + PKCE、客户端凭证）"
