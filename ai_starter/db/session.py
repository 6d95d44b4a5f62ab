from sqlalchemy import text
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool
from ai_starter.core.config import Settings, settings
from ai_starter.core.errors import DownstreamUnavailableError
from ai_starter.core.logging import get_logger
from ai_starter.db.base import Base
from ai_starter.db import models  # noqa: F401

log = get_logger("db.session")

def needs_url_warning(s: Settings) -> bool:
    return not s.DATABASE_URL and s.app_env not in ("development", "test")

def engine_options(s: Settings) -> dict:
    # test clients run each app instance on its own event loop, so connections are not pooled there
    return {"poolclass": NullPool} if s.app_env == "test" else {}

if needs_url_warning(settings):
    log.warning("DATABASE_URL environment variable is not set. Falling back to a local SQLite file.")

engine = create_async_engine(settings.database_url, echo=False, future=True, **engine_options(settings))
SessionLocal = async_sessionmaker(engine, expire_on_commit=False)

async def init_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

async def ping() -> None:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (OSError, OperationalError, InterfaceError) as e:
        raise DownstreamUnavailableError("Database connection failed", service="database") from e
