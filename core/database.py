from __future__ import annotations
from typing import Any, Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from core.config_loader import settings


class Base(DeclarativeBase):
    pass


@event.listens_for(Engine, "connect")
def _sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def make_engine(url: str, **kwargs: Any) -> Engine:
    """Engine for the application database.

    SQLite has no row locks, so every transaction opens with BEGIN IMMEDIATE
    and holds the write lock from its first read. That serializes the
    capacity read and the insert of concurrent assigns.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, future=True, **kwargs)

    connect_args = {"check_same_thread": False, "timeout": settings.SQLITE_BUSY_TIMEOUT}
    connect_args.update(kwargs.pop("connect_args", {}))
    sqlite_engine = create_engine(url, future=True, connect_args=connect_args, **kwargs)

    @event.listens_for(sqlite_engine, "connect")
    def _manual_transactions(dbapi_connection, connection_record):
        # stop pysqlite from issuing its own deferred BEGIN
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return sqlite_engine


engine = make_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
