import argparse
import asyncio

from sqlalchemy import event, inspect, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from memory_timeline import models  # noqa: F401
from memory_timeline.config import settings
from memory_timeline.models.base import Base
from memory_timeline.utils.logger import setup_logger

logger = setup_logger("db")

IS_SQLITE = settings.database_url.startswith("sqlite")

if not IS_SQLITE and not settings.database_url.startswith("postgresql+asyncpg://"):
    raise ValueError(f"Unsupported database URL prefix: {settings.database_url}")

logger.debug(f"Event store URL: {settings.database_url}")

if IS_SQLITE:
    app_engine = create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        connect_args={"timeout": 30},
    )

    @event.listens_for(app_engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        # Embedding and cross-reference rows rely on ON DELETE CASCADE
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

else:
    app_engine = create_async_engine(
        settings.database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        pool_timeout=60,
        pool_recycle=300,
        echo=settings.database_echo,
        connect_args={"timeout": 30},
    )

AppAsyncSessionLocal = async_sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=app_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db():
    """Create all tables that do not exist yet."""
    if not Base.metadata.tables:
        logger.warning("Base.metadata.tables is EMPTY! No tables will be created.")
    else:
        logger.debug(
            f"Tables registered in Base.metadata: {list(Base.metadata.tables.keys())}"
        )

    async with app_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database schema initialized.")


async def reset_db():
    """Drop and recreate every table. Destroys all data."""
    logger.warning("Resetting the event store. THIS IS A DESTRUCTIVE OPERATION.")
    async with app_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Event store has been reset and re-initialized.")


async def close_db():
    """Closes database connections."""
    logger.info("Closing database connections.")
    await app_engine.dispose()
    logger.info("Database connections closed.")


async def list_tables() -> list[str]:
    async with app_engine.connect() as conn:
        table_names = await conn.run_sync(
            lambda sync_conn: inspect(sync_conn).get_table_names()
        )
    logger.debug(f"Tables in event store: {table_names}")
    return table_names


async def check_db_connection() -> bool:
    """Performs a simple query to check actual DB connectivity."""
    async with AppAsyncSessionLocal() as session:
        try:
            result = await session.execute(text("SELECT 1"))
            if result.scalar_one() == 1:
                logger.info("Successfully connected to the event store.")
                return True
            raise RuntimeError("Test query to the event store returned an unexpected result.")
        except Exception as e:
            logger.error(f"Failed to execute test query: {e}", exc_info=True)
            raise RuntimeError("Database connectivity check failed.") from e


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Event store initialization utility")
    parser.add_argument(
        "action",
        choices=["init", "reset", "list-tables"],
        help="'init' to create missing tables, 'reset' to drop and recreate all tables, "
        "'list-tables' to show the tables present in the event store.",
    )
    args = parser.parse_args()

    if args.action == "init":
        asyncio.run(init_db())
    elif args.action == "reset":
        confirm = input(
            "WARNING: This will delete all data in the event store. Are you sure? (yes/no): "
        )
        if confirm.lower() == "yes":
            asyncio.run(reset_db())
        else:
            logger.info("Event store reset cancelled by user.")
    elif args.action == "list-tables":
        for name in asyncio.run(list_tables()):
            print(name)
    logger.info("Event store utility script finished.")
