from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker

from photoshare.config import config
from photoshare.db import Base

DATABASE_URL = config.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")


def configure_sqlite(engine: AsyncEngine) -> None:
    # SQLAlchemy owns BEGIN so SAVEPOINTs nest properly
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, _connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(connection):
        connection.exec_driver_sql("BEGIN")


engine = create_async_engine(DATABASE_URL, future=True)
if engine.dialect.name == "sqlite":
    configure_sqlite(engine)

SessionLocal = async_sessionmaker(
    bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, class_=AsyncSession
)


async def init_db(bind: AsyncEngine = engine) -> None:
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        yield session
