import asyncio
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from channel_intake.core.config import settings
from channel_intake.db.models import Base
from channel_intake.db.session import create_engine

logger = logging.getLogger(__name__)


async def init_models(db_engine: AsyncEngine) -> None:
    """Create database tables."""

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def check_database(db_engine: AsyncEngine) -> bool:
    """Ping the database once; failures are logged, not raised."""

    logger.info("Attempting to connect to the database...")
    try:
        async with db_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception:  # noqa: BLE001 - the server keeps starting without a database
        logger.exception("Database connection error")
        return False
    logger.info("Connected to the database successfully")
    return True


async def _main() -> None:
    engine = create_engine(settings.database_url)
    try:
        await init_models(engine)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(_main())
