"""OAuth2 ORM 模型

模型说明:
    - OAuth2ClientModel: 客户端表
    - AuthorizationCodeModel: 授权码表
    - OAuth2AccessLogModel: 端点访问日志表

时间字段统一存储为不带时区的 UTC 时间，读取时由存储层还原为带时区的时间。
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import Boolean, DateTime, Index, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

# 声明基类
Base = declarative_base()


class OAuth2ClientModel(Base):
    """OAuth2 客户端"""
    __tablename__ = "oauth2_client"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[str] = mapped_column(String(100), unique=True, index=True, comment="客户端ID")
    client_secret_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, comment="密钥哈希")
    confidential: Mapped[bool] = mapped_column(Boolean, default=True, comment="是否为机密客户端")
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, comment="是否启用")

    # ===== 授权配置 =====
    redirect_uris: Mapped[List[str]] = mapped_column(JSON, default=list, comment="回调地址列表")
    grant_types: Mapped[List[str]] = mapped_column(JSON, default=list, comment="允许的授权类型")
    scopes: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True, comment="允许的权限范围，为空不限制")
    pkce_methods: Mapped[List[str]] = mapped_column(JSON, default=list, comment="支持的PKCE方法")
    access_token_lifetime: Mapped[int] = mapped_column(Integer, default=3600, comment="访问令牌有效期（秒）")
    refresh_token_lifetime: Mapped[int] = mapped_column(Integer, default=1209600, comment="刷新令牌有效期（秒）")

    # ===== 归属与展示 =====
    principal: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True, comment="所属用户标识")
    name: Mapped[str] = mapped_column(String(200), default="", comment="客户端名称")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True, comment="客户端描述")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), comment="创建时间")
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), nullable=True, comment="更新时间")


class AuthorizationCodeModel(Base):
    """授权码"""
    __tablename__ = "oauth2_authorization_code"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(128), unique=True, index=True, comment="授权码")
    client_id: Mapped[str] = mapped_column(String(100), index=True, comment="客户端ID")
    principal: Mapped[str] = mapped_column(String(100), comment="授权用户标识")
    redirect_uri: Mapped[str] = mapped_column(String(2000), comment="签发时的回调地址")
    scopes: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True, comment="授权的权限范围")
    state: Mapped[Optional[str]] = mapped_column(String(500), nullable=True, comment="state 参数")
    code_challenge: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, comment="PKCE 挑战值")
    code_challenge_method: Mapped[Optional[str]] = mapped_column(String(20), nullable=True, comment="PKCE 方法")
    used: Mapped[bool] = mapped_column(Boolean, default=False, comment="是否已使用")
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), index=True, comment="过期时间")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), comment="创建时间")


class OAuth2AccessLogModel(Base):
    """端点访问日志"""
    __tablename__ = "oauth2_access_log"
    __table_args__ = (
        Index("ix_oauth2_access_log_endpoint_created", "endpoint", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    endpoint: Mapped[str] = mapped_column(String(50), comment="端点: authorize|token")
    method: Mapped[str] = mapped_column(String(10), comment="HTTP 方法")
    status: Mapped[str] = mapped_column(String(20), comment="结果: success|error")
    client_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True, comment="客户端ID")
    user_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, comment="用户标识")
    ip_address: Mapped[str] = mapped_column(String(45), comment="客户端IP")
    user_agent: Mapped[Optional[str]] = mapped_column(String(500), nullable=True, comment="User-Agent")
    request_params: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict, comment="请求参数（已脱敏）")
    error_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, comment="错误码")
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True, comment="错误描述")
    response_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, comment="响应耗时（毫秒）")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), index=True, comment="记录时间")
