import logging

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

log = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """Engine + session factory owned by the running process.

    Opened once at startup (FastAPI lifespan) and disposed at shutdown.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        kwargs = {"echo": echo, "future": True}
        if url.startswith("postgresql"):
            kwargs.update(
                pool_pre_ping=True,  # drops dead connections automatically
                pool_size=5,
                max_overflow=10,
            )
        self.engine = create_async_engine(url, **kwargs)
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
            class_=AsyncSession,
        )

    async def create_all(self):
        # DEV ONLY – no migrations yet
        import jewel_ledger.models  # noqa: F401  ensure models are registered

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self):
        log.info("Disposing database engine")
        await self.engine.dispose()


async def get_db(request: Request):
    database: Database = request.app.state.database
    async with database.session_factory() as db:
        yield db
