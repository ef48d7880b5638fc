"""ORM 模块

提供授权服务器的数据库持久化：
- DatabaseManager: 引擎和会话管理
- 模型: OAuth2ClientModel, AuthorizationCodeModel, OAuth2AccessLogModel
- 存储: SqlClientStore, SqlCodeStore, SqlAccessLogSink
"""

from .db_session import DatabaseManager
from .models import (
    Base,
    OAuth2ClientModel,
    AuthorizationCodeModel,
    OAuth2AccessLogModel,
)
from .stores import (
    SqlClientStore,
    SqlCodeStore,
    SqlAccessLogSink,
    to_db_time,
    from_db_time,
)

__all__ = [
    "DatabaseManager",
    "Base",
    "OAuth2ClientModel",
    "AuthorizationCodeModel",
    "OAuth2AccessLogModel",
    "SqlClientStore",
    "SqlCodeStore",
    "SqlAccessLogSink",
    "to_db_time",
    "from_db_time",
]
