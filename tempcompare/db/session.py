from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tempcompare.config import Settings, get_settings


def build_engine(settings: Settings) -> AsyncEngine:
    kwargs = {}
    if not settings.database_url.startswith("sqlite"):
        # SQLite uses a static/null pool; sizing only applies to server databases
        kwargs.update(pool_size=10, max_overflow=20)
    return create_async_engine(
        settings.database_url,
        pool_pre_ping=True,   # Reconnects dropped connections automatically
        echo=settings.debug,  # Log SQL in debug mode
        **kwargs,
    )


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(get_settings())

AsyncSessionLocal = build_sessionmaker(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields a database session per request."""
    async with AsyncSessionLocal() as session:
        yield session
