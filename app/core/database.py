"""데이터베이스 엔진/세션 관리

프로필 저장소가 ``database``로 설정된 경우에만 엔진이 생성됩니다.
엔진은 데이터베이스 URL별로 한 번 만들어 재사용합니다.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import Settings, settings

_engines: dict[str, AsyncEngine] = {}
_session_makers: dict[str, async_sessionmaker[AsyncSession]] = {}


class Base(DeclarativeBase):
    """SQLAlchemy 모델 베이스 클래스"""

    pass


def get_engine(app_settings: Optional[Settings] = None) -> AsyncEngine:
    """비동기 엔진 반환 (URL별 최초 호출 시 생성)

    Args:
        app_settings: 애플리케이션 설정 (없으면 전역 설정)
    """
    app_settings = app_settings or settings
    url = app_settings.database_url
    if url not in _engines:
        _engines[url] = create_async_engine(
            url,
            echo=app_settings.database_echo,
            pool_pre_ping=True,
            pool_size=10,
            max_overflow=20,
        )
    return _engines[url]


def get_session_maker(
    app_settings: Optional[Settings] = None,
) -> async_sessionmaker[AsyncSession]:
    """비동기 세션 팩토리 반환"""
    app_settings = app_settings or settings
    url = app_settings.database_url
    if url not in _session_makers:
        _session_makers[url] = async_sessionmaker(
            get_engine(app_settings),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_makers[url]


@asynccontextmanager
async def session_scope(
    app_settings: Optional[Settings] = None,
) -> AsyncIterator[AsyncSession]:
    """세션 컨텍스트 (정상 종료 시 커밋, 예외 시 롤백)"""
    async with get_session_maker(app_settings)() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def close_db() -> None:
    """생성된 모든 엔진의 연결 종료"""
    for engine in _engines.values():
        await engine.dispose()
    _engines.clear()
    _session_makers.clear()
