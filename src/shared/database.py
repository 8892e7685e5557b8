"""Database engine, session factory and the unit of work.

The unit of work is the atomic scope of the order engine: a session is
opened, a transaction begun, and every exit path either commits (clean exit)
or rolls back (any exception) before the session is released.

SQLite is used for development and tests. pysqlite's own transaction
handling is switched off and every transaction starts with ``BEGIN
IMMEDIATE``, which takes the database write lock up front. Writers therefore
serialize the way ``SELECT ... FOR UPDATE`` serializes them on PostgreSQL.
"""

from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from shared.config import Settings
from shared.errors import InternalError, MarketplaceError

logger = structlog.get_logger(__name__)


class Base(DeclarativeBase):
    pass


def is_in_memory_sqlite(uri: str | URL) -> bool:
    """True for SQLite URIs whose database lives in process memory.

    Such a database is reachable through a single shared connection only, so
    it suits single-threaded scripts and tests, never a served application.
    """
    url = make_url(uri)
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def _configure_sqlite(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # noqa: ARG001
        # Hand transaction control to SQLAlchemy; see the "begin" hook.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine_for(settings: Settings) -> Engine:
    """Create the engine for ``settings.database_uri``."""
    uri = settings.database_uri
    if uri.startswith("sqlite"):
        kwargs = {
            "echo": settings.echo_sql,
            "connect_args": {"check_same_thread": False, "timeout": settings.sqlite_busy_timeout_s},
        }
        if is_in_memory_sqlite(uri):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(uri, **kwargs)
        _configure_sqlite(engine)
        return engine

    return create_engine(uri, echo=settings.echo_sql, pool_pre_ping=True)


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    # Objects returned from a committed unit of work stay readable.
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def unit_of_work(session_factory: sessionmaker[Session], lock_timeout_ms: int | None = None) -> Iterator[Session]:
    """Run the enclosed block as one atomic transaction.

    Domain errors roll back and propagate unchanged. Storage errors roll back,
    get logged with their traceback, and surface as ``InternalError``.
    """
    session = session_factory()
    try:
        session.begin()
        if lock_timeout_ms and session.get_bind().dialect.name == "postgresql":
            session.execute(text(f"SET LOCAL lock_timeout = {int(lock_timeout_ms)}"))
        yield session
        session.commit()
    except MarketplaceError:
        session.rollback()
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("unit_of_work_failed", error_type=type(exc).__name__)
        raise InternalError() from exc
    except BaseException:
        session.rollback()
        raise
    finally:
        session.close()


def _load_models() -> None:
    """Import every model module so its table is registered on ``Base``."""
    import inventory.product  # noqa: F401
    import ordering.order.order  # noqa: F401
    import payments.transaction  # noqa: F401


def setup_db(engine: Engine) -> None:
    """Create all tables."""
    _load_models()
    Base.metadata.create_all(engine)


def drop_db(engine: Engine) -> None:
    """Drop all tables."""
    _load_models()
    Base.metadata.drop_all(engine)
