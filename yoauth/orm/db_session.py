"""
数据库会话管理模块

公开 API:
- DatabaseManager: 引擎和会话工厂，每个授权服务器实例持有一个
- DatabaseManager.session_scope(): 自动提交/回滚的上下文管理器
"""

from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from yoauth.log import get_logger

logger = get_logger("yoauth.orm.session")

# DatabaseSettings 中会传给引擎的连接池字段
POOL_OPTIONS = ("pool_size", "max_overflow", "pool_timeout", "pool_recycle", "pool_pre_ping")


def _is_memory_sqlite(url: URL) -> bool:
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def _engine_options(url: URL, echo: bool, pool: Dict[str, Any]) -> Dict[str, Any]:
    """按数据库类型生成 create_engine 参数

    - SQLite 内存库: StaticPool，所有会话共用一个连接，否则每个连接看到的是不同的库
    - SQLite 文件库: QueuePool，允许跨线程使用连接
    - 其他数据库: 直接使用连接池配置
    """
    options: Dict[str, Any] = {"echo": echo}
    if url.get_backend_name() != "sqlite":
        options.update(pool)
        return options

    options["connect_args"] = {"check_same_thread": False}
    if _is_memory_sqlite(url):
        options["poolclass"] = StaticPool
    else:
        options["poolclass"] = QueuePool
        options["connect_args"]["timeout"] = pool.get("pool_timeout", 30)
        options.update(pool)
    return options


class DatabaseManager:
    """数据库管理器

    存储实现通过 ``session_scope()`` 获取会话，每个操作一个事务。

    使用示例:
        db = DatabaseManager()
        db.init(config=settings.database)
        db.create_all()

        with db.session_scope() as session:
            session.add(model)
    """

    def __init__(self):
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        """数据库引擎

        Raises:
            RuntimeError: 尚未调用 init()
        """
        if self._engine is None:
            raise RuntimeError("数据库未初始化，请先调用 init()")
        return self._engine

    @property
    def is_initialized(self) -> bool:
        return self._session_factory is not None

    def init(self, database_url: str = None, config: Any = None, echo: bool = False, **pool_options) -> Engine:
        """创建引擎和会话工厂

        Args:
            database_url: 数据库连接 URL
            config: DatabaseSettings，提供后 URL、echo 和连接池参数取自配置
            echo: 是否输出 SQL
            **pool_options: pool_size / max_overflow / pool_timeout / pool_recycle / pool_pre_ping

        Returns:
            engine

        Raises:
            ValueError: 未提供数据库 URL

        使用示例:
            db.init("sqlite:///./oauth2.db", pool_size=10)
            db.init(config=settings.database)
        """
        if config is not None:
            database_url = config.url
            echo = config.echo
            pool_options = {name: getattr(config, name) for name in POOL_OPTIONS}

        if not database_url:
            raise ValueError("database_url 是必需的，请通过参数或 config 提供")

        url = make_url(database_url)
        try:
            self._engine = create_engine(url, **_engine_options(url, echo, pool_options))
        except Exception as e:
            logger.error(f"创建数据库引擎失败 ({url.get_backend_name()}): {e}")
            raise

        self._session_factory = sessionmaker(bind=self._engine, autoflush=True, expire_on_commit=False)
        logger.info(
            f"数据库引擎创建成功: {url.render_as_string(hide_password=True)} "
            f"({type(self._engine.pool).__name__})"
        )
        return self._engine

    def create_all(self) -> None:
        """创建 OAuth2 相关的表，已存在的表跳过"""
        from .models import Base

        Base.metadata.create_all(self.engine)
        logger.info("OAuth2 数据表已就绪")

    def get_session(self) -> Session:
        """获取新会话，调用方负责提交和关闭"""
        if self._session_factory is None:
            raise RuntimeError("数据库未初始化，请先调用 init()")
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """事务上下文: 正常退出提交，异常回滚后继续抛出"""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        """释放连接池"""
        if self._engine is not None:
            self._engine.dispose()
            logger.debug("数据库连接池已释放")
