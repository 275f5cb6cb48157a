# answerly/database.py
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from .config import AUTO_CREATE_TABLES, DATABASE_URL, SQL_ECHO

logger = logging.getLogger(__name__)

logger.debug("Using DATABASE_URL: %s", DATABASE_URL)

# echo=True gibt alle SQL-Statements aus; nur fürs Debugging einschalten.
engine = create_async_engine(DATABASE_URL, echo=SQL_ECHO)

AsyncSessionFactory = async_sessionmaker(
    bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False
)

Base = declarative_base()


async def get_db_session() -> AsyncSession:
    async with AsyncSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_db_and_tables():
    """
    Tables are owned by Alembic. For a throwaway local SQLite database the
    schema can be created directly by setting AUTO_CREATE_TABLES.
    """
    if not AUTO_CREATE_TABLES:
        logger.info("Skipping table creation, schema is managed by Alembic.")
        return

    from . import models  # noqa: F401  (registriert die Tabellen an Base.metadata)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created.")
