"""
Test config: SQLite in-memory (aiosqlite) thay cho Postgres; env phải set trước khi import autoblog.
QUEUE_ENABLED=false để lifespan không chạy worker thật.
"""
import os

from cryptography.fernet import Fernet

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["APP_ENV"] = "test"
os.environ["QUEUE_ENABLED"] = "false"
os.environ.setdefault("CREDENTIALS_KEY", Fernet.generate_key().decode("ascii"))

import uuid
from datetime import datetime, timezone
from typing import Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from autoblog.db import Base
from autoblog.models import Campaign, WordPressSite
from autoblog.schemas.campaign import CampaignCreate
from autoblog.utils.credentials import encrypt_secret

T0 = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def session_factory():
    """Engine riêng cho mỗi test; StaticPool để mọi session dùng chung một DB in-memory."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def make_site(session_factory):
    async def _make(*, is_active: bool = True, password: str = "app-password") -> WordPressSite:
        async with session_factory() as db:
            site = WordPressSite(
                user_id=uuid.uuid4(),
                site_name="Test Blog",
                site_url="https://blog.example.com",
                username="editor",
                password_encrypted=encrypt_secret(password),
                api_endpoint="https://blog.example.com/wp-json/wp/v2",
                is_active=is_active,
            )
            db.add(site)
            await db.commit()
            return site

    return _make


@pytest.fixture
def make_campaign(session_factory):
    """Tạo campaign qua CampaignCreate (cùng validator với ranh giới ghi)."""

    async def _make(
        site: Optional[WordPressSite],
        *,
        next_publish_at: Optional[datetime] = T0,
        schedule_hours: str = "24.00",
        status: str = "active",
        topic: str = "home espresso",
        content_types: Optional[list] = None,
    ) -> Campaign:
        data = CampaignCreate(
            wordpress_site_id=site.id if site is not None else None,
            topic=topic,
            context="coffee enthusiasts",
            schedule_hours=schedule_hours,
            content_types=content_types or [],
        )
        async with session_factory() as db:
            campaign = Campaign(
                user_id=uuid.uuid4(),
                status=status,
                next_publish_at=next_publish_at,
                **data.model_values(),
            )
            db.add(campaign)
            await db.commit()
            return campaign

    return _make
