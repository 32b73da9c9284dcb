"""
Engine + session cho Postgres (asyncpg). Worker chạy lâu dài nên bật pool_pre_ping;
SQL log đi qua logger sqlalchemy.engine (xem logging_config), không dùng echo.
"""
from collections.abc import AsyncGenerator
from typing import Any, Dict

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from autoblog.config import Settings, get_settings


def engine_options(settings: Settings) -> Dict[str, Any]:
    """Pool cấu hình qua env cho Postgres; SQLite (test) dùng pool mặc định của dialect."""
    opts: Dict[str, Any] = {"echo": False}
    if make_url(settings.database_url).get_backend_name() != "sqlite":
        opts.update(
            pool_pre_ping=True,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )
    return opts


settings = get_settings()
engine = create_async_engine(settings.database_url, **engine_options(settings))

async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    """Base cho campaigns, wordpress_sites, content_jobs, campaign_logs."""


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Session cho dashboard route (chỉ đọc); rollback khi lỗi."""
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
