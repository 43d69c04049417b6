"""Personalization 도메인 모듈

스토어프론트 사용자 상호작용을 기반으로 개인화 추천을 제공하는 도메인입니다.

구조:
    - types.py: 도메인 모델 (Interaction, UserProfile, Product, ContextSnapshot)
    - scorer.py: 추천 스코어러 (프로필 갱신, 유사도, 협업/콘텐츠/하이브리드 추천)
    - context.py: 시간대/계절 컨텍스트
    - catalog.py: 상품 카탈로그 및 특징 추출
    - experiments.py: A/B 실험 배정
    - store.py, repository.py, models.py: 프로필 저장소 (메모리/PostgreSQL)
    - state.py: 엔진 상태 구성
    - schemas.py: API 스키마
    - service.py: 비즈니스 로직
    - router.py: API 엔드포인트 (API Key 인증 포함)
    - exceptions.py: 도메인 예외
"""

from app.domains.personalization.exceptions import (
    ExperimentNotFoundException,
    PersonalizationErrorCode,
    ProfileStoreException,
)
from app.domains.personalization.models import UserProfileRecord
from app.domains.personalization.router import router
from app.domains.personalization.scorer import RecommendationScorer, ScoringConfig
from app.domains.personalization.service import PersonalizationService
from app.domains.personalization.state import PersonalizationState, build_state
from app.domains.personalization.types import (
    Interaction,
    InteractionType,
    Product,
    UserProfile,
)

__all__ = [
    "Interaction",
    "InteractionType",
    "Product",
    "UserProfile",
    "UserProfileRecord",
    "RecommendationScorer",
    "ScoringConfig",
    "PersonalizationService",
    "PersonalizationState",
    "build_state",
    "router",
    "PersonalizationErrorCode",
    "ExperimentNotFoundException",
    "ProfileStoreException",
]
