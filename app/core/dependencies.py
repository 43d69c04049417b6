"""공통 의존성 함수 정의

이 모듈은 FastAPI 엔드포인트에서 사용되는 공통 의존성 함수들을 정의합니다.
"""

from fastapi import Depends, Header, Request

from app.core.config import Settings, settings
from app.core.exceptions import ErrorCode, UnauthorizedException


def get_app_settings(request: Request) -> Settings:
    """앱 생성 시 등록된 설정 (없으면 전역 설정)"""
    return getattr(request.app.state, "settings", settings)


async def verify_internal_api_key(
    x_internal_api_key: str = Header(..., alias="X-Internal-Api-Key"),
    app_settings: Settings = Depends(get_app_settings),
) -> None:
    """내부 API Key 검증 (스토어프론트 서버 통신용)

    Args:
        x_internal_api_key: 요청 헤더의 X-Internal-Api-Key 값
        app_settings: 앱 설정

    Raises:
        UnauthorizedException: API Key가 유효하지 않은 경우

    Example:
        @router.get("/status", dependencies=[Depends(verify_internal_api_key)])
        async def get_status():
            ...
    """
    if x_internal_api_key != app_settings.internal_api_key:
        raise UnauthorizedException(
            message="유효하지 않은 API 키입니다.",
            error_code=ErrorCode.INVALID_API_KEY,
        )
