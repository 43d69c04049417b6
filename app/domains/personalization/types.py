"""개인화 도메인 타입 정의

상호작용 입력, 사용자 프로필, 상품, 컨텍스트 스냅샷을 정의합니다.
입력 검증은 모델 생성 시점(경계)에서만 일어나며,
스코어러는 검증된 모델만 받습니다.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, TypedDict

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class InteractionType(str, Enum):
    """상호작용 유형"""

    VIEW = "view"
    CLICK = "click"
    ADD_TO_CART = "add_to_cart"
    PURCHASE = "purchase"
    WISHLIST = "wishlist"
    SHARE = "share"


class RecommendationStrategy(str, Enum):
    """협업 필터링 결과를 만든 전략"""

    COLLABORATIVE = "collaborative"
    CONTENT_FALLBACK = "content_fallback"


def _coerce_id(v):
    # 카탈로그/스토어프론트에서 숫자 ID가 들어오는 경우가 있음
    if isinstance(v, int) and not isinstance(v, bool):
        return str(v)
    return v


class Interaction(BaseModel):
    """사용자 상호작용 (프로필 업데이트 입력)

    Attributes:
        type: 상호작용 유형
        product_id: 상품 ID (모든 유형에서 필수)
        category: 상품 카테고리
        brand: 브랜드
        price: 가격 (purchase는 필수)
        style: 스타일 토큰
        tags: 태그 목록
        season: 상호작용이 속한 계절 (컨텍스트 가중치용)
        time_of_day: 상호작용이 속한 시간대 (컨텍스트 가중치용)
        timestamp: 발생 시각 (없으면 기록 시각)
        experiment_name: A/B 실험 이름
        value: 실험 지표 값
    """

    model_config = ConfigDict(frozen=True)

    type: InteractionType
    product_id: str = Field(..., min_length=1)
    category: Optional[str] = None
    brand: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    style: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    season: Optional[str] = None
    time_of_day: Optional[str] = None
    timestamp: Optional[datetime] = None
    experiment_name: Optional[str] = None
    value: float = 1.0

    @field_validator("product_id", mode="before")
    @classmethod
    def normalize_product_id(cls, v):
        return _coerce_id(v)

    @model_validator(mode="after")
    def validate_required_fields(self) -> "Interaction":
        """유형별 필수 필드 검증"""
        if self.type == InteractionType.PURCHASE and self.price is None:
            raise ValueError("purchase interactions require a price")
        return self


class BehaviorRecord(Interaction):
    """행동 이력 항목 (기록 시점에 계산된 가중치 포함)"""

    timestamp: datetime
    weight: float = Field(..., ge=0)


class PurchaseRecord(BaseModel):
    """구매 이력 항목"""

    product_id: str
    price: Optional[float] = None
    category: Optional[str] = None
    timestamp: datetime


class PriceRange(BaseModel):
    """가격 구간 (양 끝 포함)"""

    min: float
    max: float

    @property
    def span(self) -> float:
        return self.max - self.min

    def contains(self, price: float) -> bool:
        return self.min <= price <= self.max

    def widen(self, price: float) -> "PriceRange":
        return PriceRange(min=min(self.min, price), max=max(self.max, price))


class UserProfile(BaseModel):
    """사용자 프로필

    affinity 값은 음수가 되지 않으며, 상호작용 기록으로만 증가합니다.
    (감소는 명시적인 decay 배치에서만 발생)
    """

    user_id: str
    category_affinities: dict[str, float] = Field(default_factory=dict)
    brand_affinities: dict[str, float] = Field(default_factory=dict)
    price_range: Optional[PriceRange] = None
    preferred_price_range: Optional[PriceRange] = None
    style_profile: dict[str, int] = Field(default_factory=dict)
    behavior_history: list[BehaviorRecord] = Field(default_factory=list)
    purchase_history: list[PurchaseRecord] = Field(default_factory=list)
    total_interactions: int = 0
    total_views: int = 0
    conversion_rate: float = 0.0
    average_order_value: float = 0.0
    lifetime_value: float = 0.0
    last_updated: Optional[datetime] = None

    @property
    def effective_price_range(self) -> Optional[PriceRange]:
        """선호 가격 구간 (구매 이력이 부족하면 관측 가격 구간)"""
        return self.preferred_price_range or self.price_range


class Product(BaseModel):
    """카탈로그 상품 (읽기 전용)

    style, colors, price_tier, season, occasion은
    카탈로그 로드 시 이름/설명/태그에서 추출됩니다.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    description: str = ""
    category: Optional[str] = None
    brand: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    tags: list[str] = Field(default_factory=list)
    season: Optional[str] = None
    occasion: Optional[str] = None
    style: Optional[str] = None
    colors: list[str] = Field(default_factory=list)
    price_tier: Optional[str] = None
    trending_score: float = 0.0

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, v):
        return _coerce_id(v)


class ContextSnapshot(BaseModel):
    """현재 컨텍스트 (시간대/요일/계절)"""

    model_config = ConfigDict(frozen=True)

    time_of_day: str
    day_of_week: int  # 월요일 = 0
    season: str
    month: int
    hour: int
    is_weekend: bool
    timestamp: datetime


class ScoredProduct(TypedDict):
    """점수가 매겨진 상품

    Attributes:
        product: 상품
        score: 점수 (높을수록 우선)
    """

    product: Product
    score: float


class SimilarUser(TypedDict):
    """유사 사용자

    Attributes:
        user_id: 사용자 ID
        similarity: 유사도 (0.0~1.0)
    """

    user_id: str
    similarity: float


@dataclass
class RankedProducts:
    """협업 필터링 결과

    Attributes:
        items: 점수 내림차순 상품 목록
        strategy: 결과를 만든 전략 (유사 사용자가 없으면 CONTENT_FALLBACK)
    """

    items: list[ScoredProduct] = field(default_factory=list)
    strategy: RecommendationStrategy = RecommendationStrategy.COLLABORATIVE

    @property
    def is_fallback(self) -> bool:
        return self.strategy == RecommendationStrategy.CONTENT_FALLBACK
