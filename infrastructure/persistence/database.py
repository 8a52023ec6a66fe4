import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from infrastructure.persistence.models.currency import Base

logger = logging.getLogger(__name__)


class Database:
    """Async engine for the durable rate store.

    SQLite (the default) runs on the aiosqlite driver with its own pooling; server
    databases get a small pre-pinged connection pool.
    """

    def __init__(self, db_url: str, pool_size: int = 5, max_overflow: int = 10):
        url = make_url(db_url)
        engine_options: dict[str, Any] = {}
        if url.get_backend_name() != 'sqlite':
            engine_options.update(pool_pre_ping=True, pool_size=pool_size, max_overflow=max_overflow)

        self.engine = create_async_engine(url, **engine_options)
        self.session_factory = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    async def create_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """One unit of work: committed when the block exits, rolled back if it raises."""
        async with self.session_factory() as session, session.begin():
            yield session

    async def health_check(self) -> dict[str, Any]:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text('SELECT 1'))
            return {'status': 'healthy', 'dialect': self.dialect}
        except SQLAlchemyError as e:
            logger.error(f'Database health check failed: {e}')
            return {'status': 'unhealthy', 'error': str(e)}
