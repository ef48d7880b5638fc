"""基于 SQLAlchemy 的存储实现

- SqlClientStore: 客户端存储
- SqlCodeStore: 授权码存储，``consume`` 使用条件 UPDATE 保证至多消费一次
- SqlAccessLogSink: 访问日志写入数据库

使用示例:
    db = DatabaseManager()
    db.init(config=settings.database)
    db.create_all()

    server = OAuth2Server(
        client_store=SqlClientStore(db),
        code_store=SqlCodeStore(db),
        access_log_sink=SqlAccessLogSink(db),
    )
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import delete, func, select, update

from yoauth.log import get_logger
from yoauth.oauth2.access_log import AccessLogRecord, AccessLogSink, AccessLogStatus
from yoauth.oauth2.client import Client
from yoauth.oauth2.code import AuthorizationCode, utcnow
from yoauth.oauth2.stores import ClientStore, CodeStore
from .db_session import DatabaseManager
from .models import AuthorizationCodeModel, OAuth2AccessLogModel, OAuth2ClientModel

logger = get_logger()


def to_db_time(value: Optional[datetime]) -> Optional[datetime]:
    """转换为不带时区的 UTC 时间"""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def from_db_time(value: Optional[datetime]) -> Optional[datetime]:
    """数据库中的 UTC 时间还原为带时区的时间"""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


class SqlClientStore(ClientStore):
    """数据库客户端存储"""

    def __init__(self, db: DatabaseManager):
        self.db = db

    def get(self, client_id: str) -> Optional[Client]:
        with self.db.session_scope() as session:
            model = session.scalar(
                select(OAuth2ClientModel).where(OAuth2ClientModel.client_id == client_id)
            )
            return self._to_client(model) if model else None

    def save(self, client: Client) -> None:
        with self.db.session_scope() as session:
            model = session.scalar(
                select(OAuth2ClientModel).where(OAuth2ClientModel.client_id == client.client_id)
            )
            if model is None:
                model = OAuth2ClientModel(client_id=client.client_id)
                session.add(model)

            model.client_secret_hash = client.client_secret_hash
            model.confidential = client.confidential
            model.enabled = client.enabled
            model.redirect_uris = list(client.redirect_uris)
            model.grant_types = sorted(client.grant_types)
            model.scopes = sorted(client.scopes) if client.scopes is not None else None
            model.pkce_methods = sorted(client.pkce_methods)
            model.access_token_lifetime = client.access_token_lifetime
            model.refresh_token_lifetime = client.refresh_token_lifetime
            model.principal = client.principal
            model.name = client.name
            model.description = client.description
            model.created_at = to_db_time(client.created_at)
            model.updated_at = to_db_time(client.updated_at)

    def list_by_principal(self, principal: str) -> List[Client]:
        with self.db.session_scope() as session:
            models = session.scalars(
                select(OAuth2ClientModel)
                .where(OAuth2ClientModel.principal == principal)
                .order_by(OAuth2ClientModel.id)
            ).all()
            return [self._to_client(m) for m in models]

    @staticmethod
    def _to_client(model: OAuth2ClientModel) -> Client:
        return Client(
            client_id=model.client_id,
            client_secret_hash=model.client_secret_hash,
            confidential=model.confidential,
            enabled=model.enabled,
            redirect_uris=list(model.redirect_uris or []),
            grant_types=set(model.grant_types or []),
            scopes=set(model.scopes) if model.scopes is not None else None,
            pkce_methods=set(model.pkce_methods or []),
            access_token_lifetime=model.access_token_lifetime,
            refresh_token_lifetime=model.refresh_token_lifetime,
            principal=model.principal,
            name=model.name or "",
            description=model.description,
            created_at=from_db_time(model.created_at),
            updated_at=from_db_time(model.updated_at),
        )


class SqlCodeStore(CodeStore):
    """数据库授权码存储"""

    def __init__(self, db: DatabaseManager):
        self.db = db

    def add(self, auth_code: AuthorizationCode) -> None:
        with self.db.session_scope() as session:
            session.add(AuthorizationCodeModel(
                code=auth_code.code,
                client_id=auth_code.client_id,
                principal=auth_code.principal,
                redirect_uri=auth_code.redirect_uri,
                scopes=list(auth_code.scopes) if auth_code.scopes is not None else None,
                state=auth_code.state,
                code_challenge=auth_code.code_challenge,
                code_challenge_method=auth_code.code_challenge_method,
                used=auth_code.used,
                expires_at=to_db_time(auth_code.expires_at),
                created_at=to_db_time(auth_code.created_at),
            ))

    def get(self, code: str) -> Optional[AuthorizationCode]:
        with self.db.session_scope() as session:
            model = session.scalar(
                select(AuthorizationCodeModel).where(AuthorizationCodeModel.code == code)
            )
            if model is None:
                return None
            return AuthorizationCode(
                code=model.code,
                client_id=model.client_id,
                principal=model.principal,
                redirect_uri=model.redirect_uri,
                expires_at=from_db_time(model.expires_at),
                scopes=list(model.scopes) if model.scopes is not None else None,
                state=model.state,
                used=model.used,
                code_challenge=model.code_challenge,
                code_challenge_method=model.code_challenge_method,
                created_at=from_db_time(model.created_at),
            )

    def consume(self, code: str, now: datetime) -> bool:
        with self.db.session_scope() as session:
            result = session.execute(
                update(AuthorizationCodeModel)
                .where(
                    AuthorizationCodeModel.code == code,
                    AuthorizationCodeModel.used.is_(False),
                    AuthorizationCodeModel.expires_at > to_db_time(now),
                )
                .values(used=True)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    def delete_expired(self, now: datetime) -> int:
        with self.db.session_scope() as session:
            result = session.execute(
                delete(AuthorizationCodeModel)
                .where(AuthorizationCodeModel.expires_at <= to_db_time(now))
                .execution_options(synchronize_session=False)
            )
            return result.rowcount


class SqlAccessLogSink(AccessLogSink):
    """访问日志数据库接收器

    使用示例:
        sink = SqlAccessLogSink(db)
        sink.cleanup_old_logs(days_to_keep=90)
    """

    def __init__(self, db: DatabaseManager):
        self.db = db

    def record(self, entry: AccessLogRecord) -> None:
        status = entry.status.value if isinstance(entry.status, AccessLogStatus) else entry.status
        with self.db.session_scope() as session:
            session.add(OAuth2AccessLogModel(
                endpoint=entry.endpoint,
                method=entry.method,
                status=status,
                client_id=entry.client_id,
                user_id=entry.user_id,
                ip_address=entry.ip_address,
                user_agent=(entry.user_agent or "")[:500] or None,
                request_params=entry.request_params,
                error_code=entry.error_code,
                error_message=entry.error_message,
                response_time=entry.response_time,
                created_at=to_db_time(entry.created_at),
            ))

    def count(self) -> int:
        """访问日志条数"""
        with self.db.session_scope() as session:
            return session.scalar(select(func.count()).select_from(OAuth2AccessLogModel))

    def cleanup_old_logs(self, days_to_keep: int = 90, now: Optional[datetime] = None) -> int:
        """删除超过保留天数的访问日志

        Returns:
            删除数量
        """
        cutoff = (now or utcnow()) - timedelta(days=days_to_keep)
        with self.db.session_scope() as session:
            result = session.execute(
                delete(OAuth2AccessLogModel)
                .where(OAuth2AccessLogModel.created_at < to_db_time(cutoff))
                .execution_options(synchronize_session=False)
            )
            count = result.rowcount
        if count:
            logger.info(f"已清理访问日志: {count} 条（保留 {days_to_keep} 天）")
        return count
