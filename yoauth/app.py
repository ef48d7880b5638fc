"""应用工厂

按配置组装日志、数据库、存储、授权服务器核心和路由。

使用示例:
    from yoauth.app import create_app
    from yoauth.config import load_yaml_config, AppSettings

    settings = load_yaml_config("config/settings.yaml", AppSettings)
    app = create_app(settings, get_current_user=current_user_from_session)

    # 客户端管理
    server = app.state.oauth2_server
    client, secret = server.clients.create_client(name="Web App", redirect_uris=["https://a/cb"])
"""

from typing import Any, Callable, List

from fastapi import FastAPI, Request

from yoauth.api import create_oauth2_router
from yoauth.config import AppSettings
from yoauth.exceptions import register_exception_handlers
from yoauth.log import get_logger, setup_root_logger
from yoauth.oauth2.access_log import AccessLogSink, CompositeAccessLogSink, LoggingAccessLogSink, NullAccessLogSink
from yoauth.oauth2.issuer import TokenIssuer
from yoauth.oauth2.server import OAuth2Server
from yoauth.oauth2.stores import InMemoryClientStore, InMemoryCodeStore
from yoauth.orm import DatabaseManager, SqlAccessLogSink, SqlClientStore, SqlCodeStore

logger = get_logger()


def session_user(request: Request) -> Any:
    """默认的当前用户获取方式：读取 request.state.user（由认证中间件设置）"""
    return getattr(request.state, "user", None)


def _build_access_log_sink(settings: AppSettings, db: DatabaseManager = None) -> AccessLogSink:
    if not settings.access_log.enabled:
        return NullAccessLogSink()

    sinks: List[AccessLogSink] = [LoggingAccessLogSink(settings.logging.access_logger_name)]
    if settings.access_log.persist and db is not None:
        sinks.append(SqlAccessLogSink(db))
    return CompositeAccessLogSink(sinks)


def create_app(
    settings: AppSettings = None,
    get_current_user: Callable[[Request], Any] = session_user,
    consent_renderer: Callable = None,
    error_renderer: Callable = None,
    token_issuer: TokenIssuer = None,
    use_database: bool = True,
) -> FastAPI:
    """创建授权服务器应用

    Args:
        settings: 应用配置，默认读取环境变量
        get_current_user: 接收 Request，返回当前登录用户或 None
        consent_renderer: 同意页面渲染函数
        error_renderer: 错误页面渲染函数
        token_issuer: 令牌签发器，默认内存不透明令牌
        use_database: 为 False 时使用内存存储（不初始化数据库）

    Returns:
        FastAPI 应用，``app.state.oauth2_server`` 为授权服务器核心
    """
    settings = settings or AppSettings()
    setup_root_logger(config=settings.logging)

    db = None
    if use_database:
        db = DatabaseManager()
        db.init(config=settings.database)
        if settings.database.create_tables:
            db.create_all()
        client_store, code_store = SqlClientStore(db), SqlCodeStore(db)
    else:
        client_store, code_store = InMemoryClientStore(), InMemoryCodeStore()

    server = OAuth2Server(
        client_store=client_store,
        code_store=code_store,
        settings=settings.oauth2,
        token_issuer=token_issuer,
        access_log_sink=_build_access_log_sink(settings, db),
    )

    app = FastAPI(title=settings.app_name, debug=settings.debug)
    register_exception_handlers(app)
    app.include_router(create_oauth2_router(
        server,
        get_current_user=get_current_user,
        login_url=settings.oauth2.login_url,
        consent_renderer=consent_renderer,
        error_renderer=error_renderer,
        trusted_proxies=settings.access_log.trusted_proxies,
        prefix=settings.oauth2.route_prefix,
    ))

    app.state.settings = settings
    app.state.oauth2_server = server
    app.state.db = db
    logger.info(f"{settings.app_name} 已启动，OAuth2 路由前缀: {settings.oauth2.route_prefix}")
    return app
