# ledger_bank/db/session.py
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from ..config import get_settings

Base = declarative_base()


def _install_sqlite_locking(engine: AsyncEngine) -> None:
    """
    SQLite has no row locks and ignores FOR UPDATE. Take the database write
    lock when each transaction begins so concurrent transfers still serialize.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # disable the driver's own deferred BEGIN
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        # seconds to wait for the write lock before raising "database is locked"
        connect_args["timeout"] = 30
    engine = create_async_engine(database_url, echo=echo, future=True, connect_args=connect_args)
    if engine.dialect.name == "sqlite":
        _install_sqlite_locking(engine)
    return engine


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


async def init_models(engine: AsyncEngine) -> None:
    """
    Create any missing tables.
    """
    from . import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


_settings = get_settings()
DATABASE_URL = _settings.database_url

engine = build_engine(DATABASE_URL, echo=_settings.db_echo)
AsyncSessionLocal = build_sessionmaker(engine)
