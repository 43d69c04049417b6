"""개인화 도메인 라우터

스토어프론트 서버가 호출하는 상호작용 기록/추천 API 엔드포인트입니다.
"""

from typing import Any, AsyncGenerator, Optional

from fastapi import APIRouter, Depends, Query, Request

from app.core.config import Settings
from app.core.database import session_scope
from app.core.dependencies import get_app_settings, verify_internal_api_key
from app.core.schemas import APIResponse, ErrorResponse, create_response
from app.domains.personalization.repository import ProfileRepository
from app.domains.personalization.schemas import (
    EngineStatus,
    ExperimentAssignment,
    ExperimentResultCreate,
    MaintenanceResult,
    ProfileSummary,
    RecommendationItem,
    RecommendationResponse,
    SimilarUserItem,
    UserInsights,
)
from app.domains.personalization.service import PersonalizationService
from app.domains.personalization.state import PersonalizationState
from app.domains.personalization.store import ProfileStore
from app.domains.personalization.types import Interaction

router = APIRouter(
    dependencies=[Depends(verify_internal_api_key)],
    responses={401: {"model": ErrorResponse, "description": "API Key 오류"}},
)


def get_personalization_state(request: Request) -> PersonalizationState:
    """앱에 등록된 개인화 엔진 상태"""
    return request.app.state.personalization


async def get_profile_store(
    state: PersonalizationState = Depends(get_personalization_state),
    app_settings: Settings = Depends(get_app_settings),
) -> AsyncGenerator[ProfileStore, None]:
    """프로필 저장소 의존성

    database 모드에서는 요청 단위 세션으로 리포지토리를 만들고,
    memory 모드에서는 앱 전역 메모리 저장소를 사용합니다.
    """
    if state.store_kind != "database":
        yield state.memory_store
        return

    async with session_scope(app_settings) as session:
        yield ProfileRepository(session)


def get_personalization_service(
    store: ProfileStore = Depends(get_profile_store),
    state: PersonalizationState = Depends(get_personalization_state),
) -> PersonalizationService:
    """PersonalizationService 의존성"""
    return PersonalizationService(store, state)


@router.post(
    "/users/{user_id}/interactions",
    response_model=APIResponse[ProfileSummary],
    status_code=201,
)
async def track_interaction(
    user_id: str,
    interaction: Interaction,
    service: PersonalizationService = Depends(get_personalization_service),
):
    """사용자 상호작용 기록"""
    profile = await service.track_interaction(user_id, interaction)
    return create_response(
        data=ProfileSummary.from_profile(profile),
        message="상호작용이 기록되었습니다.",
    )


@router.get(
    "/users/{user_id}/recommendations",
    response_model=APIResponse[RecommendationResponse],
    responses={400: {"model": ErrorResponse}},
)
async def get_recommendations(
    user_id: str,
    limit: Optional[int] = Query(None, ge=1, le=100),
    category: Optional[str] = None,
    price_tier: Optional[str] = None,
    style: Optional[str] = None,
    occasion: Optional[str] = None,
    include_contextual: bool = True,
    service: PersonalizationService = Depends(get_personalization_service),
):
    """개인화 추천 조회"""
    recommendations = await service.get_recommendations(
        user_id,
        limit=limit,
        category=category,
        price_tier=price_tier,
        style=style,
        occasion=occasion,
        include_contextual=include_contextual,
    )
    return create_response(
        data=RecommendationResponse(
            user_id=user_id,
            items=[RecommendationItem.from_scored(r) for r in recommendations],
            contextual=include_contextual,
        ),
        message="추천 목록을 조회했습니다.",
    )


@router.get(
    "/users/{user_id}/similar",
    response_model=APIResponse[list[SimilarUserItem]],
)
async def get_similar_users(
    user_id: str,
    limit: int = Query(10, ge=1, le=100),
    service: PersonalizationService = Depends(get_personalization_service),
):
    """유사 사용자 조회"""
    similar = await service.find_similar_users(user_id, limit=limit)
    return create_response(
        data=[SimilarUserItem(**s) for s in similar],
        message="유사 사용자를 조회했습니다.",
    )


@router.get(
    "/users/{user_id}/insights",
    response_model=APIResponse[UserInsights],
)
async def get_user_insights(
    user_id: str,
    service: PersonalizationService = Depends(get_personalization_service),
):
    """사용자 인사이트 조회"""
    insights = await service.get_insights(user_id)
    return create_response(data=insights, message="사용자 인사이트를 조회했습니다.")


@router.get(
    "/experiments/{name}/variant",
    response_model=APIResponse[ExperimentAssignment],
)
async def get_experiment_variant(
    name: str,
    user_id: str = Query(..., min_length=1),
    service: PersonalizationService = Depends(get_personalization_service),
):
    """실험 변형 배정 조회"""
    return create_response(data=service.get_experiment_variant(name, user_id))


@router.post(
    "/experiments/{name}/results",
    response_model=APIResponse[dict[str, Any]],
    status_code=201,
    responses={404: {"model": ErrorResponse}},
)
async def record_experiment_result(
    name: str,
    result: ExperimentResultCreate,
    service: PersonalizationService = Depends(get_personalization_service),
):
    """실험 지표 기록"""
    recorded = service.record_experiment_result(
        name, result.user_id, result.metric, result.value
    )
    return create_response(
        data={"experiment": name, "recorded": recorded},
        message="실험 지표가 기록되었습니다."
        if recorded
        else "실험에 배정되지 않은 사용자입니다.",
    )


@router.post(
    "/maintenance/similarities",
    response_model=APIResponse[MaintenanceResult],
)
async def recompute_similarities(
    service: PersonalizationService = Depends(get_personalization_service),
):
    """사용자 유사도 배치 재계산"""
    result = await service.recompute_similarities()
    return create_response(data=result, message="유사도를 재계산했습니다.")


@router.post(
    "/maintenance/trending",
    response_model=APIResponse[MaintenanceResult],
)
async def recompute_trending(
    service: PersonalizationService = Depends(get_personalization_service),
):
    """트렌딩 점수 배치 재계산"""
    result = await service.recompute_trending()
    return create_response(data=result, message="트렌딩 점수를 재계산했습니다.")


@router.post(
    "/maintenance/decay",
    response_model=APIResponse[MaintenanceResult],
)
async def apply_affinity_decay(
    factor: Optional[float] = Query(None, ge=0.0, le=1.0),
    service: PersonalizationService = Depends(get_personalization_service),
):
    """affinity 감쇠 적용"""
    result = await service.apply_affinity_decay(factor)
    return create_response(data=result, message="affinity 감쇠를 적용했습니다.")


@router.get("/status", response_model=APIResponse[EngineStatus])
async def get_engine_status(
    service: PersonalizationService = Depends(get_personalization_service),
):
    """개인화 엔진 상태 조회"""
    return create_response(data=await service.get_status())
