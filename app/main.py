from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import api_router as api_v1_router
from app.core.config import Settings, settings
from app.core.database import close_db
from app.core.exceptions import (
    BaseAPIException,
    base_exception_handler,
    generic_exception_handler,
    http_exception_handler,
)
from app.core.logging import get_logger, setup_logging
from app.core.middlewares import LoggingMiddleware
from app.core.migration import run_migrations_on_startup
from app.core.schemas import APIResponse
from app.domains.personalization.state import build_state

# 로깅 설정 초기화
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 생명주기 관리"""
    app_settings: Settings = app.state.settings

    # Startup
    logger.info(f"🚀 Starting {app_settings.app_name}...")

    # 프로필을 DB에 저장하는 경우에만 마이그레이션 확인
    if app_settings.uses_database:
        run_migrations_on_startup(app_settings)

    yield
    # Shutdown
    logger.info(f"👋 Shutting down {app_settings.app_name}...")
    await close_db()


def create_app(app_settings: Settings = settings) -> FastAPI:
    """FastAPI 애플리케이션 팩토리

    Args:
        app_settings: 애플리케이션 설정 (테스트에서 교체 가능)
    """
    app = FastAPI(
        title=app_settings.app_name,
        description="Storefront personalization and recommendation API",
        version="0.1.0",
        docs_url="/docs" if app_settings.is_development else None,
        redoc_url="/redoc" if app_settings.is_development else None,
        openapi_url="/openapi.json" if app_settings.is_development else None,
        lifespan=lifespan,
    )

    # 요청 의존성과 lifespan이 참조하는 설정
    app.state.settings = app_settings

    # 개인화 엔진 상태 (카탈로그 로드 포함)
    app.state.personalization = build_state(app_settings)

    # 미들웨어 설정 (순서 중요: 아래에서 위로 실행됨)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    # 예외 핸들러 등록
    app.add_exception_handler(BaseAPIException, base_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # API 라우터 등록 (버저닝)
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get(
        "/health", tags=["Health"], response_model=APIResponse[dict[str, Any]]
    )
    async def health_check():
        """헬스 체크 엔드포인트"""
        return APIResponse(
            success=True,
            message="OK",
            data={
                "status": "healthy",
                "app_name": app_settings.app_name,
                "environment": app_settings.app_env,
                "profile_store": app_settings.profile_store,
            },
        )

    return app


app = create_app()
