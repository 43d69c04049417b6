"""테스트 설정"""

import json
import os
from datetime import datetime
from typing import Generator

import pytest
import pytest_asyncio
from docker import from_env
from docker.errors import DockerException
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from testcontainers.postgres import PostgresContainer

from app.core.config import Settings
from app.core.database import Base
from app.core.utils.datetime import UTC
from app.domains.personalization.scorer import RecommendationScorer, ScoringConfig
from app.domains.personalization.types import Product
from app.main import create_app

# 2026-01-14 (수) 10:00 UTC → morning / winter / 평일
FIXED_NOW = datetime(2026, 1, 14, 10, 0, tzinfo=UTC)

CATALOG = [
    {
        "id": "p-coat",
        "name": "Black Wool Winter Coat",
        "description": "Warm classic coat",
        "category": "outerwear",
        "brand": "nordic",
        "price": 12000,
        "tags": ["winter", "classic"],
    },
    {
        "id": "p-sneaker",
        "name": "White Running Sneakers",
        "description": "Light everyday sneakers",
        "category": "shoes",
        "brand": "stride",
        "price": 4500,
        "tags": ["sport", "running"],
    },
    {
        "id": "p-shirt",
        "name": "Blue Office Shirt",
        "description": "Professional cotton shirt",
        "category": "clothing",
        "brand": "formalist",
        "price": 2500,
        "tags": ["work", "formal"],
    },
    {
        "id": "p-tee",
        "name": "Casual Summer Tee",
        "description": "Everyday comfort tee",
        "category": "clothing",
        "brand": "stride",
        "price": 800,
        "tags": ["casual", "summer"],
    },
    {
        "id": "p-bag",
        "name": "Brown Leather Bag",
        "description": "Vintage shoulder bag",
        "category": "accessories",
        "brand": "nordic",
        "price": 7000,
        "tags": ["vintage"],
    },
]


def _is_docker_available() -> bool:
    """로컬 환경에서 Docker 접근 가능 여부 확인"""
    if os.getenv("FORCE_DOCKER_TESTS", "").lower() in {"1", "true"}:
        return True
    if os.getenv("SKIP_DOCKER_TESTS", "").lower() in {"1", "true"}:
        return False

    try:
        client = from_env()
        client.ping()
        return True
    except DockerException:
        return False


DOCKER_AVAILABLE = _is_docker_available()


@pytest.fixture
def fixed_now() -> datetime:
    """고정 시각"""
    return FIXED_NOW


@pytest.fixture
def fixed_clock():
    """고정 시각 시계"""
    return lambda: FIXED_NOW


@pytest.fixture
def scorer(fixed_clock) -> RecommendationScorer:
    """고정 시각 기준 스코어러 (UTC 컨텍스트)"""
    return RecommendationScorer(ScoringConfig(), clock=fixed_clock)


@pytest.fixture
def catalog_products() -> list[Product]:
    """테스트 카탈로그 상품"""
    return [Product.model_validate(item) for item in CATALOG]


@pytest.fixture
def catalog_file(tmp_path) -> str:
    """테스트 카탈로그 JSON 파일"""
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(CATALOG), encoding="utf-8")
    return str(path)


@pytest.fixture
def test_settings(catalog_file: str) -> Settings:
    """메모리 저장소를 사용하는 테스트 설정"""
    return Settings(
        app_env="test",
        profile_store="memory",
        catalog_path=catalog_file,
        context_timezone="UTC",
        min_similar_users=5,
        experiments={"checkout_flow": ["one_click"]},
    )


# NOTE:
# ASGITransport는 lifespan을 실행하지 않으므로
# 엔진 상태는 create_app 시점에 구성됨
@pytest_asyncio.fixture
async def client(test_settings: Settings):
    """비동기 테스트 클라이언트 (메모리 프로필 저장소 사용)"""
    app = create_app(test_settings)

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport, base_url="http://test"
    ) as client:
        yield client


@pytest.fixture
def api_key_header(test_settings: Settings):
    """Internal API Key 헤더"""
    return {"X-Internal-Api-Key": test_settings.internal_api_key}


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """PostgreSQL 테스트 컨테이너"""
    if not DOCKER_AVAILABLE:
        pytest.skip("Docker is not available; skipping container-based tests.")

    with PostgresContainer("postgres:16-alpine") as postgres:
        yield postgres


@pytest.fixture(scope="session")
def test_database_url(postgres_container: PostgresContainer) -> str:
    """테스트 데이터베이스 URL (asyncpg)"""
    return str(
        postgres_container.get_connection_url().replace(
            "postgresql+psycopg2://", "postgresql+asyncpg://"
        )
    )


# NOTE:
# pytest-asyncio는 테스트마다 독립적인 event loop를 생성하므로
# async fixture는 모두 function 스코프로 유지
@pytest_asyncio.fixture
async def db_session(test_database_url: str):
    """테스트 데이터베이스 세션 (테스트마다 스키마 재생성)"""
    engine = create_async_engine(test_database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async_session: async_sessionmaker[AsyncSession] = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()

    await engine.dispose()


def pytest_configure(config):
    """pytest marker 등록"""
    config.addinivalue_line(
        "markers", "docker: PostgreSQL 테스트 컨테이너가 필요한 테스트"
    )
