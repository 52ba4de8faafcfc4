"""SQLAlchemy engine, session factory and declarative base."""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from sfa.config import get_settings

settings = get_settings()

Base = declarative_base()


def _enable_sqlite_savepoints(engine: Engine) -> None:
    """Let pysqlite honour SAVEPOINT / ROLLBACK TO by emitting BEGIN ourselves."""

    @event.listens_for(engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_db_engine(url: str) -> Engine:
    """Build an engine for the given URL.

    SQLite (local runs and tests) shares one connection so in-memory databases
    survive across sessions; every other backend gets a bounded pool wait.
    """
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        _enable_sqlite_savepoints(engine)
        return engine

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_timeout=settings.DB_POOL_TIMEOUT_SECONDS,
    )


engine = create_db_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
