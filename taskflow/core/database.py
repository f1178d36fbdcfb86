"""
비동기 DB 엔진 / 세션 관리

엔진과 세션 팩토리는 create_app()에서 설정값으로 만들어 app.state 에 둔다.
"""
import logging
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import BigInteger, Integer
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from taskflow.core.config import Settings

logger = logging.getLogger(__name__)

Base = declarative_base()

# SQLite only autoincrements INTEGER PRIMARY KEY columns
IdType = BigInteger().with_variant(Integer, "sqlite")


def build_engine(app_settings: Settings) -> AsyncEngine:
    return create_async_engine(
        app_settings.DATABASE_URL,
        echo=app_settings.DATABASE_ECHO,
        pool_pre_ping=not app_settings.DATABASE_URL.startswith("sqlite"),
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=bind, expire_on_commit=False, autoflush=False)


async def init_models(bind: AsyncEngine) -> None:
    """모든 테이블 생성 (존재하지 않는 경우만)"""
    # models 패키지를 import 해야 metadata에 테이블이 등록됨
    import taskflow.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("✅ Database tables ready")


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with request.app.state.session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
