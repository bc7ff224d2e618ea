from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
import logging

from watchtracker.core.config import settings

logger = logging.getLogger(__name__)

# pool_recycle: recycle connections after N seconds to prevent stale connections
# pool_pre_ping: verify connections before using them
async_engine = create_async_engine(
    settings.database_url,
    pool_size=10,
    max_overflow=20,
    pool_timeout=30,
    pool_recycle=3600,
    pool_pre_ping=True
)
AsyncSessionLocal = async_sessionmaker(async_engine, expire_on_commit=False, class_=AsyncSession)

async def init_db(engine=None):
    """Create missing tables. Idempotent."""
    from watchtracker.models import Base
    engine = engine or async_engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")

async def dispose_engine():
    """Drop pooled connections before the event loop that opened them closes."""
    await async_engine.dispose()
