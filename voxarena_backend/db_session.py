"""
SQLAlchemy async session setup for VoxArena.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from voxarena_backend.config import DATABASE_URL as _CONFIGURED_URL


def normalize_database_url(url: str) -> str:
    """Point plain postgres URLs at the asyncpg driver."""
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


DATABASE_URL = normalize_database_url(_CONFIGURED_URL)

# SQLite needs check_same_thread disabled once sessions hop between tasks
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# Create async engine
async_engine = create_async_engine(
    DATABASE_URL,
    echo=False,  # Set to True for SQL query logging
    future=True,
    connect_args=connect_args,
)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_async_session():
    """Request-scoped session for the routers; commits when the handler returns cleanly."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def get_async_session_context():
    """Bare session for ``seed.py``, which commits on its own."""
    return AsyncSessionLocal()
