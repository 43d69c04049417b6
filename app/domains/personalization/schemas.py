"""개인화 도메인 스키마 정의

API 요청/응답용 Pydantic 스키마입니다.
상호작용 요청 본문은 도메인 모델 Interaction을 그대로 사용합니다.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.domains.personalization.types import (
    ContextSnapshot,
    PriceRange,
    Product,
    ScoredProduct,
    UserProfile,
)


class ProfileSummary(BaseModel):
    """프로필 요약 응답 스키마"""

    user_id: str
    total_interactions: int
    conversion_rate: float
    average_order_value: float
    lifetime_value: float
    category_affinities: dict[str, float]
    brand_affinities: dict[str, float]
    preferred_price_range: Optional[PriceRange] = None
    last_updated: Optional[datetime] = None

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "ProfileSummary":
        return cls(
            user_id=profile.user_id,
            total_interactions=profile.total_interactions,
            conversion_rate=profile.conversion_rate,
            average_order_value=profile.average_order_value,
            lifetime_value=profile.lifetime_value,
            category_affinities=profile.category_affinities,
            brand_affinities=profile.brand_affinities,
            preferred_price_range=profile.effective_price_range,
            last_updated=profile.last_updated,
        )


class RecommendationItem(BaseModel):
    """추천 상품"""

    product: Product
    score: float

    @classmethod
    def from_scored(cls, item: ScoredProduct) -> "RecommendationItem":
        return cls(product=item["product"], score=item["score"])


class RecommendationResponse(BaseModel):
    """추천 목록 응답 스키마"""

    user_id: str
    items: list[RecommendationItem] = Field(default_factory=list)
    contextual: bool = Field(..., description="컨텍스트 부스트 적용 여부")


class SimilarUserItem(BaseModel):
    """유사 사용자"""

    user_id: str
    similarity: float = Field(..., ge=0.0, le=1.0)


class AffinityScore(BaseModel):
    """affinity 항목"""

    name: str
    score: float


class UserInsights(BaseModel):
    """사용자 인사이트 응답 스키마"""

    profile: ProfileSummary
    top_categories: list[AffinityScore]
    top_brands: list[AffinityScore]
    style_profile: dict[str, int]
    similar_users: list[SimilarUserItem]
    context: ContextSnapshot
    recommendations: list[RecommendationItem]


class ExperimentAssignment(BaseModel):
    """실험 배정 응답 스키마"""

    experiment: str
    user_id: str
    variant: str


class ExperimentResultCreate(BaseModel):
    """실험 지표 기록 요청 스키마"""

    user_id: str = Field(..., min_length=1)
    metric: str = Field(..., min_length=1, max_length=100)
    value: float = 1.0


class MaintenanceResult(BaseModel):
    """유지보수 작업 결과"""

    task: str
    affected: int = Field(..., description="처리된 항목 수")
    elapsed_ms: float


class EngineStatus(BaseModel):
    """개인화 엔진 상태"""

    profile_store: str
    user_profiles: int
    catalog_products: int
    similarity_pairs: int
    experiments: int
    context: ContextSnapshot
