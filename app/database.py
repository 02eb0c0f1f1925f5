# app/database.py
from typing import AsyncGenerator
from sqlalchemy import exc as sa_exc
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from app.config import settings

engine = create_async_engine(settings.effective_database_url, echo=settings.SQL_ECHO)

AsyncSessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


async def init_models(logger=None) -> None:
    """Create missing tables. Development only; deployments run the Alembic migrations."""
    # Register every table on Base.metadata
    from app.models import user, leaderboard, communication, calendar, training, onboarding  # noqa: F401

    async with engine.begin() as conn:
        try:
            await conn.run_sync(Base.metadata.create_all)
        except sa_exc.IntegrityError as e:
            # duplicate-object errors from a previous partial run
            msg = str(getattr(e, "orig", e))
            if "duplicate key value violates unique constraint" in msg or "already exists" in msg:
                if logger:
                    logger.warning("Ignored duplicate DDL error during create_all: %s", msg)
            else:
                raise
