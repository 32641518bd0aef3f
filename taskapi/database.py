from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine, AsyncSession
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool
from taskapi.config import settings
import logging

logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url


def build_engine(url: str, echo: bool = False):
    """Create an async engine with pool settings suited to the backend."""
    if url.startswith("sqlite"):
        engine_kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url:
            # A single shared connection keeps the in-memory database alive
            engine_kwargs["poolclass"] = StaticPool
        return create_async_engine(url, echo=echo, **engine_kwargs)

    # Environment-based configurations
    if settings.environment == "production":
        return create_async_engine(
            url,
            pool_size=20,
            max_overflow=50,
            pool_timeout=60,
            pool_recycle=1800,
        )
    return create_async_engine(
        url,
        echo=echo,
        pool_size=10,
        max_overflow=20,
        pool_timeout=30,
    )


engine = build_engine(DATABASE_URL, echo=settings.debug)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)

Base = declarative_base()


async def init_db() -> None:
    """Create all tables that do not exist yet."""
    # Import models so they register on Base.metadata
    from taskapi.models import task  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created (if not existing).")


async def get_db():
    logger.debug("Opening database session...")
    async with AsyncSessionLocal() as db:
        try:
            yield db
        except Exception as e:
            logger.error(f"Database session error: {e}")
            raise
        finally:
            try:
                await db.close()
                logger.debug("Database session closed.")
            except Exception as close_error:
                logger.warning(f"Error closing database session: {close_error}")
