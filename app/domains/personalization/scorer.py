"""추천 스코어러

사용자 상호작용으로 프로필을 갱신하고, 후보 상품을 점수화하여
순위가 매겨진 추천 목록을 만듭니다.

파이프라인:
    프로필 갱신 → affinity 점수 → 유사도 순위 → 다양성 필터

모든 연산은 동기식이며 입력을 변경하지 않습니다.
(프로필 갱신은 새 프로필을 반환)
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

import numpy as np

from app.core.config import Settings
from app.core.logging import get_logger
from app.core.utils.datetime import Clock, elapsed, ensure_utc, now_utc
from app.domains.personalization.context import (
    EVENING,
    MORNING,
    SUMMER,
    WINTER,
    build_context,
)
from app.domains.personalization.types import (
    BehaviorRecord,
    ContextSnapshot,
    Interaction,
    InteractionType,
    PriceRange,
    Product,
    PurchaseRecord,
    RankedProducts,
    RecommendationStrategy,
    ScoredProduct,
    SimilarUser,
    UserProfile,
)

logger = get_logger(__name__)

DEFAULT_INTERACTION_WEIGHTS: dict[InteractionType, float] = {
    InteractionType.VIEW: 1.0,
    InteractionType.CLICK: 2.0,
    InteractionType.ADD_TO_CART: 5.0,
    InteractionType.PURCHASE: 10.0,
    InteractionType.WISHLIST: 3.0,
    InteractionType.SHARE: 2.5,
}

DEFAULT_TIME_WEIGHTS: dict[str, float] = {
    "recent": 1.0,  # 24시간 이내
    "week": 0.8,  # 7일 이내
    "month": 0.6,  # 30일 이내
    "older": 0.3,
}

SEASON_MATCH_WEIGHT = 1.2
TIME_OF_DAY_MATCH_WEIGHT = 1.1

# 사용자 유사도 가중치
CATEGORY_SIMILARITY_WEIGHT = 0.4
BRAND_SIMILARITY_WEIGHT = 0.3
PRICE_SIMILARITY_WEIGHT = 0.2
STYLE_SIMILARITY_WEIGHT = 0.1

# 콘텐츠 기반 점수 가중치
CATEGORY_AFFINITY_WEIGHT = 0.4
BRAND_AFFINITY_WEIGHT = 0.3
PRICE_MATCH_SCORE = 0.2
TAG_AFFINITY_WEIGHT = 0.1

# 선호 가격 구간 계산에 필요한 최소 구매 수
MIN_PURCHASES_FOR_PREFERRED_RANGE = 5

# 협업 필터링에 반영하는 상호작용 유형
COLLABORATIVE_SIGNALS = frozenset(
    {InteractionType.PURCHASE, InteractionType.ADD_TO_CART}
)

TRENDING_WINDOW = timedelta(days=7)


@dataclass
class ScoringConfig:
    """스코어러 설정

    Attributes:
        max_history_items: 행동 이력 최대 보관 수 (초과 시 오래된 것부터 제거)
        interaction_weights: 상호작용 유형별 기본 가중치
        time_weights: 경과 시간 구간별 가중치
        category_weights: 카테고리별 정적 가중치 (없으면 1.0)
        hybrid_weight: 하이브리드 추천 시 협업 필터링 비중
        min_similar_users: 협업 필터링에 사용할 유사 사용자 수
        min_similarity: 유사 사용자 최소 유사도 (초과해야 포함)
        max_recommendations: 기본 추천 개수
        diversity_factor: 카테고리당 최대 비율
        context_timezone: 시간대/계절 판단 타임존
    """

    max_history_items: int = 1000
    interaction_weights: dict[InteractionType, float] = field(
        default_factory=lambda: dict(DEFAULT_INTERACTION_WEIGHTS)
    )
    time_weights: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_TIME_WEIGHTS)
    )
    category_weights: dict[str, float] = field(default_factory=dict)
    hybrid_weight: float = 0.7
    min_similar_users: int = 5
    min_similarity: float = 0.1
    max_recommendations: int = 20
    diversity_factor: float = 0.3
    context_timezone: str = "UTC"

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScoringConfig":
        """애플리케이션 설정으로부터 생성"""
        return cls(
            max_history_items=settings.max_history_items,
            category_weights=dict(settings.category_weights),
            hybrid_weight=settings.hybrid_weight,
            min_similar_users=settings.min_similar_users,
            min_similarity=settings.min_similarity,
            max_recommendations=settings.max_recommendations,
            diversity_factor=settings.diversity_factor,
            context_timezone=settings.context_timezone,
        )


def _sort_by_score(items: list[ScoredProduct]) -> list[ScoredProduct]:
    # sort는 안정 정렬이므로 동점이면 입력 순서 유지
    return sorted(items, key=lambda item: item["score"], reverse=True)


def _unique_products(products: Iterable[Product]) -> dict[str, Product]:
    """상품 ID → 상품 (중복 ID는 처음 것만 사용)"""
    by_id: dict[str, Product] = {}
    for product in products:
        by_id.setdefault(product.id, product)
    return by_id


class RecommendationScorer:
    """추천 스코어러

    프로필 갱신, 사용자 유사도, 콘텐츠 기반/협업/하이브리드 추천,
    컨텍스트 부스트를 제공합니다. 상태를 갖지 않으며
    프로필과 상품은 모두 인자로 전달받습니다.
    """

    def __init__(
        self,
        config: Optional[ScoringConfig] = None,
        clock: Clock = now_utc,
    ):
        """
        Args:
            config: 스코어러 설정 (기본값 사용 시 None)
            clock: 현재 시각 함수 (시간 가중치/컨텍스트 계산용)
        """
        self.config = config or ScoringConfig()
        self.clock = clock

    # ==================== 프로필 갱신 ====================

    def current_context(self) -> ContextSnapshot:
        """현재 컨텍스트 스냅샷"""
        return build_context(self.clock(), self.config.context_timezone)

    def base_weight(self, interaction_type: InteractionType) -> float:
        return self.config.interaction_weights.get(interaction_type, 1.0)

    def time_weight(self, age: timedelta) -> float:
        """경과 시간에 따른 가중치

        Args:
            age: 상호작용 발생 후 경과 시간

        Returns:
            24시간 이내 1.0, 7일 이내 0.8, 30일 이내 0.6, 그 외 0.3 (기본값)
        """
        weights = self.config.time_weights
        if age < timedelta(days=1):
            return weights["recent"]
        if age < timedelta(days=7):
            return weights["week"]
        if age < timedelta(days=30):
            return weights["month"]
        return weights["older"]

    def context_weight(
        self, interaction: Interaction, context: ContextSnapshot
    ) -> float:
        """상호작용의 계절/시간대가 현재 컨텍스트와 일치하면 가중"""
        weight = 1.0
        if interaction.season and interaction.season == context.season:
            weight *= SEASON_MATCH_WEIGHT
        if (
            interaction.time_of_day
            and interaction.time_of_day == context.time_of_day
        ):
            weight *= TIME_OF_DAY_MATCH_WEIGHT
        return weight

    def interaction_weight(
        self, interaction: Interaction, now: Optional[datetime] = None
    ) -> float:
        """상호작용 가중치 = 기본 × 시간 × 컨텍스트

        가중치는 기록 시점에 한 번만 계산되며 이후 재평가하지 않습니다.
        """
        now = ensure_utc(now or self.clock())
        occurred_at = interaction.timestamp or now
        context = build_context(now, self.config.context_timezone)

        return (
            self.base_weight(interaction.type)
            * self.time_weight(elapsed(occurred_at, now))
            * self.context_weight(interaction, context)
        )

    def category_weight(self, category: str) -> float:
        return self.config.category_weights.get(category, 1.0)

    def record_interaction(
        self,
        user_id: str,
        interaction: Interaction,
        profile: Optional[UserProfile] = None,
    ) -> UserProfile:
        """상호작용을 반영한 새 프로필 반환

        프로필이 없으면 새로 만듭니다. 값이 없는 필드에 해당하는
        갱신은 건너뜁니다.

        Args:
            user_id: 사용자 ID
            interaction: 상호작용
            profile: 기존 프로필 (없으면 None)

        Returns:
            갱신된 프로필 (입력 프로필은 변경되지 않음)
        """
        now = ensure_utc(self.clock())
        updated = (
            profile.model_copy(deep=True)
            if profile is not None
            else UserProfile(user_id=user_id)
        )

        occurred_at = (
            ensure_utc(interaction.timestamp) if interaction.timestamp else now
        )
        weight = self.interaction_weight(interaction, now)

        record = BehaviorRecord(
            **{
                **interaction.model_dump(),
                "timestamp": occurred_at,
                "weight": weight,
            }
        )
        updated.behavior_history.append(record)
        overflow = len(updated.behavior_history) - self.config.max_history_items
        if overflow > 0:
            del updated.behavior_history[:overflow]

        if interaction.category:
            updated.category_affinities[interaction.category] = (
                updated.category_affinities.get(interaction.category, 0.0)
                + weight * self.category_weight(interaction.category)
            )

        if interaction.brand:
            updated.brand_affinities[interaction.brand] = (
                updated.brand_affinities.get(interaction.brand, 0.0) + weight
            )

        if interaction.type == InteractionType.VIEW:
            updated.total_views += 1

        is_purchase = interaction.type == InteractionType.PURCHASE
        if is_purchase:
            updated.purchase_history.append(
                PurchaseRecord(
                    product_id=interaction.product_id,
                    price=interaction.price,
                    category=interaction.category,
                    timestamp=occurred_at,
                )
            )

        if interaction.price is not None:
            self._update_price_preferences(updated, interaction.price)

        if interaction.style or interaction.tags:
            self._update_style_profile(
                updated, interaction.style, interaction.tags
            )

        if is_purchase:
            self._update_conversion_metrics(updated)

        updated.total_interactions += 1
        updated.last_updated = now

        logger.debug(
            f"Recorded {interaction.type.value} for user {user_id}: "
            f"product={interaction.product_id}, weight={weight:.3f}"
        )

        return updated

    def _update_price_preferences(
        self, profile: UserProfile, price: float
    ) -> None:
        """관측 가격 구간 확장 및 선호 가격 구간 재계산

        구매가 5건 이상이면 구매 가격의 10~90 백분위(nearest-rank)를
        선호 구간으로 사용합니다.
        """
        if profile.price_range is None:
            profile.price_range = PriceRange(min=price, max=price)
        else:
            profile.price_range = profile.price_range.widen(price)

        prices = sorted(
            p.price for p in profile.purchase_history if p.price is not None
        )
        if len(prices) >= MIN_PURCHASES_FOR_PREFERRED_RANGE:
            p10 = prices[math.floor(len(prices) * 0.1)]
            p90 = prices[math.floor(len(prices) * 0.9)]
            profile.preferred_price_range = PriceRange(min=p10, max=p90)

    def _update_style_profile(
        self,
        profile: UserProfile,
        style: Optional[str],
        tags: Sequence[str],
    ) -> None:
        tokens = ([style] if style else []) + [t for t in tags if t]
        for token in tokens:
            profile.style_profile[token] = (
                profile.style_profile.get(token, 0) + 1
            )

    def _update_conversion_metrics(self, profile: UserProfile) -> None:
        # 조회 수는 이력 보관 한도와 무관한 누적 카운터
        total_views = profile.total_views
        total_purchases = len(profile.purchase_history)
        total_value = sum(p.price or 0.0 for p in profile.purchase_history)

        profile.conversion_rate = (
            total_purchases / total_views if total_views > 0 else 0.0
        )
        profile.average_order_value = (
            total_value / total_purchases if total_purchases > 0 else 0.0
        )
        profile.lifetime_value = total_value

    # ==================== 사용자 유사도 ====================

    def category_similarity(self, a: UserProfile, b: UserProfile) -> float:
        """카테고리 affinity 벡터의 코사인 유사도

        차원은 두 프로필 카테고리의 합집합이며, 정렬된 순서로 구성하여
        인자 순서와 무관하게 같은 값을 보장합니다.
        """
        categories = sorted(
            set(a.category_affinities) | set(b.category_affinities)
        )
        if not categories:
            return 0.0

        vec_a = np.array([a.category_affinities.get(c, 0.0) for c in categories])
        vec_b = np.array([b.category_affinities.get(c, 0.0) for c in categories])

        norm_a = np.linalg.norm(vec_a)
        norm_b = np.linalg.norm(vec_b)
        if norm_a == 0 or norm_b == 0:
            return 0.0

        return float(min(np.dot(vec_a, vec_b) / (norm_a * norm_b), 1.0))

    def brand_similarity(self, a: UserProfile, b: UserProfile) -> float:
        """affinity가 있는 브랜드 집합의 Jaccard 지수"""
        brands_a = {k for k, v in a.brand_affinities.items() if v > 0}
        brands_b = {k for k, v in b.brand_affinities.items() if v > 0}
        union = brands_a | brands_b
        if not union:
            return 0.0
        return len(brands_a & brands_b) / len(union)

    def price_similarity(self, a: UserProfile, b: UserProfile) -> float:
        """두 가격 구간의 겹침 길이 / 합집합 구간 길이"""
        range_a = a.effective_price_range
        range_b = b.effective_price_range
        if range_a is None or range_b is None:
            return 0.0

        overlap = max(
            0.0, min(range_a.max, range_b.max) - max(range_a.min, range_b.min)
        )
        total = max(range_a.max, range_b.max) - min(range_a.min, range_b.min)
        return overlap / total if total > 0 else 0.0

    def style_similarity(self, a: UserProfile, b: UserProfile) -> float:
        """스타일 토큰별 min/max 비율의 평균"""
        tokens = sorted(set(a.style_profile) | set(b.style_profile))
        if not tokens:
            return 0.0

        total = 0.0
        for token in tokens:
            count_a = a.style_profile.get(token, 0)
            count_b = b.style_profile.get(token, 0)
            total += min(count_a, count_b) / max(count_a, count_b, 1)
        return total / len(tokens)

    def similarity(self, a: UserProfile, b: UserProfile) -> float:
        """사용자 유사도 (0.0~1.0, 대칭)

        category 0.4 + brand 0.3 + price 0.2 + style 0.1
        """
        score = (
            CATEGORY_SIMILARITY_WEIGHT * self.category_similarity(a, b)
            + BRAND_SIMILARITY_WEIGHT * self.brand_similarity(a, b)
            + PRICE_SIMILARITY_WEIGHT * self.price_similarity(a, b)
            + STYLE_SIMILARITY_WEIGHT * self.style_similarity(a, b)
        )
        return min(max(score, 0.0), 1.0)

    def _rank_similar(
        self,
        target: UserProfile,
        profiles: Iterable[UserProfile],
        min_similarity: float,
        limit: Optional[int],
    ) -> list[SimilarUser]:
        similar: list[SimilarUser] = []
        for other in profiles:
            if other.user_id == target.user_id:
                continue
            score = self.similarity(target, other)
            if score > min_similarity:
                similar.append({"user_id": other.user_id, "similarity": score})

        # 동점은 입력 순서 유지 (보조 정렬 키 없음)
        similar.sort(key=lambda s: s["similarity"], reverse=True)
        return similar if limit is None else similar[:limit]

    def find_similar_users(
        self,
        target_id: str,
        profiles: Iterable[UserProfile],
        min_similarity: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> list[SimilarUser]:
        """유사 사용자 목록 (유사도 내림차순)

        Args:
            target_id: 기준 사용자 ID (목록에 없으면 빈 프로필로 간주)
            profiles: 전체 프로필
            min_similarity: 최소 유사도 (이 값을 초과해야 포함, 기본 설정값)
            limit: 최대 반환 수 (None이면 전체)

        Returns:
            SimilarUser 목록. 동점이면 profiles의 순서를 따릅니다.
        """
        profiles = list(profiles)
        target = next(
            (p for p in profiles if p.user_id == target_id),
            UserProfile(user_id=target_id),
        )
        threshold = (
            self.config.min_similarity
            if min_similarity is None
            else min_similarity
        )
        return self._rank_similar(target, profiles, threshold, limit)

    # ==================== 콘텐츠 기반 필터링 ====================

    def content_score(self, profile: UserProfile, product: Product) -> float:
        """상품 하나의 콘텐츠 기반 점수"""
        score = 0.0

        if product.category:
            score += CATEGORY_AFFINITY_WEIGHT * profile.category_affinities.get(
                product.category, 0.0
            )

        if product.brand:
            score += BRAND_AFFINITY_WEIGHT * profile.brand_affinities.get(
                product.brand, 0.0
            )

        price_range = profile.effective_price_range
        if (
            price_range is not None
            and product.price is not None
            and price_range.contains(product.price)
        ):
            score += PRICE_MATCH_SCORE

        if product.tags:
            tag_affinity = sum(
                profile.style_profile.get(tag, 0) for tag in product.tags
            ) / len(product.tags)
            score += TAG_AFFINITY_WEIGHT * tag_affinity

        return score

    def score_content_based(
        self, profile: UserProfile, products: Iterable[Product]
    ) -> list[ScoredProduct]:
        """콘텐츠 기반 점수화

        점수 = 0.4×카테고리 affinity + 0.3×브랜드 affinity
             + 0.2×(선호 가격 구간 포함 여부) + 0.1×태그 평균 affinity

        Returns:
            점수가 0보다 큰 상품 (점수 내림차순)
        """
        scored: list[ScoredProduct] = []
        for product in products:
            score = self.content_score(profile, product)
            if score > 0:
                scored.append({"product": product, "score": score})
            logger.debug(f"Content score '{product.id}': {score:.3f}")

        return _sort_by_score(scored)

    # ==================== 협업 필터링 ====================

    def score_collaborative(
        self,
        profile: UserProfile,
        products: Iterable[Product],
        profiles: Iterable[UserProfile],
    ) -> RankedProducts:
        """협업 필터링 점수화

        유사 사용자의 purchase/add_to_cart 이력 중 후보 상품에 대해
        유사도 × 기록 가중치를 누적합니다. 유사 사용자가 없으면
        콘텐츠 기반 결과를 반환하고 strategy로 이를 알립니다.
        """
        by_id = _unique_products(products)
        profiles = list(profiles)

        similar = self._rank_similar(
            profile,
            profiles,
            self.config.min_similarity,
            self.config.min_similar_users,
        )
        if not similar:
            logger.info(
                f"No similar users for {profile.user_id}; "
                "falling back to content-based scoring"
            )
            return RankedProducts(
                items=self.score_content_based(profile, by_id.values()),
                strategy=RecommendationStrategy.CONTENT_FALLBACK,
            )

        profiles_by_id = {p.user_id: p for p in profiles}
        scores: dict[str, float] = {}

        for neighbor in similar:
            other = profiles_by_id[neighbor["user_id"]]
            for record in other.behavior_history:
                if record.type not in COLLABORATIVE_SIGNALS:
                    continue
                if record.product_id not in by_id:
                    continue
                scores[record.product_id] = (
                    scores.get(record.product_id, 0.0)
                    + neighbor["similarity"] * record.weight
                )

        items: list[ScoredProduct] = [
            {"product": by_id[product_id], "score": score}
            for product_id, score in scores.items()
        ]
        return RankedProducts(
            items=_sort_by_score(items),
            strategy=RecommendationStrategy.COLLABORATIVE,
        )

    # ==================== 하이브리드 추천 ====================

    def hybrid_recommend(
        self,
        profile: UserProfile,
        products: Iterable[Product],
        profiles: Iterable[UserProfile],
        limit: Optional[int] = None,
        hybrid_weight: Optional[float] = None,
    ) -> list[ScoredProduct]:
        """하이브리드 추천

        협업/콘텐츠 기반 순위를 각각 2×limit까지 구한 뒤
        순위 점수 (N - index) / N 을 가중 합산하고 다양성 필터를 적용합니다.

        Args:
            profile: 대상 사용자 프로필
            products: 후보 상품
            profiles: 전체 프로필 (협업 필터링용)
            limit: 최대 추천 수 (기본 설정값)
            hybrid_weight: 협업 필터링 비중 (기본 설정값)

        Returns:
            최대 limit개의 상품 (중복 없음, 결합 점수 내림차순)
        """
        limit = self.config.max_recommendations if limit is None else limit
        weight = (
            self.config.hybrid_weight if hybrid_weight is None else hybrid_weight
        )
        by_id = _unique_products(products)
        if limit <= 0 or not by_id:
            return []

        oversample = limit * 2
        collaborative = self.score_collaborative(
            profile, by_id.values(), profiles
        )
        content = self.score_content_based(profile, by_id.values())

        combined: dict[str, float] = {}
        for ranked, part_weight in (
            (collaborative.items[:oversample], weight),
            (content[:oversample], 1.0 - weight),
        ):
            total = len(ranked)
            for index, item in enumerate(ranked):
                product_id = item["product"].id
                rank_score = (total - index) / total
                combined[product_id] = (
                    combined.get(product_id, 0.0) + part_weight * rank_score
                )

        ordered = _sort_by_score(
            [
                {"product": by_id[product_id], "score": score}
                for product_id, score in combined.items()
            ]
        )

        logger.info(
            f"Hybrid recommendations for {profile.user_id}: "
            f"{len(ordered)} candidates ({collaborative.strategy.value}) "
            f"→ limit {limit}"
        )

        return self.apply_diversity_filter(ordered, limit)

    def apply_diversity_filter(
        self,
        ranked: Sequence[ScoredProduct],
        limit: int,
        diversity_factor: Optional[float] = None,
    ) -> list[ScoredProduct]:
        """카테고리 다양성 필터

        1차: 카테고리별 선택 수가 ceil(limit × diversity_factor) 미만일 때만 선택
        2차: 남은 자리를 카테고리 제한 없이 순위대로 채움
        결과는 원래 순위 순서를 유지합니다.
        """
        if limit <= 0:
            return []
        if len(ranked) <= limit:
            return list(ranked)

        factor = (
            self.config.diversity_factor
            if diversity_factor is None
            else diversity_factor
        )
        max_per_category = math.ceil(limit * factor)

        selected: set[int] = set()
        category_counts: Counter = Counter()

        for index, item in enumerate(ranked):
            if len(selected) >= limit:
                break
            category = item["product"].category
            if category_counts[category] < max_per_category:
                selected.add(index)
                category_counts[category] += 1

        for index in range(len(ranked)):
            if len(selected) >= limit:
                break
            selected.add(index)

        return [ranked[index] for index in sorted(selected)]

    # ==================== 컨텍스트 부스트 ====================

    def contextual_multiplier(
        self, product: Product, context: ContextSnapshot
    ) -> float:
        """상품의 컨텍스트 배수 (독립적인 배수의 곱)"""
        boost = 1.0
        tags = {tag.lower() for tag in product.tags}

        if context.time_of_day == MORNING and "work" in tags:
            boost *= 1.2
        if context.time_of_day == EVENING and "casual" in tags:
            boost *= 1.2
        if context.is_weekend and "leisure" in tags:
            boost *= 1.1

        if product.season and product.season == context.season:
            boost *= 1.3

        if product.category == "outerwear" and context.season == WINTER:
            boost *= 1.4
        if product.category == "swimwear" and context.season == SUMMER:
            boost *= 1.4

        return boost

    def apply_contextual_boost(
        self,
        recommendations: Iterable[ScoredProduct],
        context: Optional[ContextSnapshot] = None,
    ) -> list[ScoredProduct]:
        """컨텍스트 배수를 곱해 다시 정렬

        Args:
            recommendations: 점수가 매겨진 추천 목록
            context: 컨텍스트 스냅샷 (없으면 현재 시각 기준)

        Returns:
            부스트된 점수 내림차순 목록
        """
        context = context or self.current_context()
        boosted: list[ScoredProduct] = [
            {
                "product": item["product"],
                "score": item["score"]
                * self.contextual_multiplier(item["product"], context),
            }
            for item in recommendations
        ]
        return _sort_by_score(boosted)

    # ==================== 배치 재계산 ====================

    def compute_similarity_matrix(
        self, profiles: Iterable[UserProfile]
    ) -> dict[tuple[str, str], float]:
        """모든 사용자 쌍의 유사도 (i < j 순서의 쌍만 포함)"""
        profiles = list(profiles)
        matrix: dict[tuple[str, str], float] = {}
        for i, first in enumerate(profiles):
            for second in profiles[i + 1 :]:
                matrix[(first.user_id, second.user_id)] = self.similarity(
                    first, second
                )
        return matrix

    def compute_trending_scores(
        self,
        profiles: Iterable[UserProfile],
        products: Iterable[Product],
        window: timedelta = TRENDING_WINDOW,
    ) -> dict[str, float]:
        """최근 window 기간의 상호작용 가중치 합으로 트렌딩 점수 계산

        점수 = 상품별 가중치 합 / 상호작용이 발생한 상품 수
        """
        now = ensure_utc(self.clock())
        weights: dict[str, float] = {}

        for profile in profiles:
            for record in profile.behavior_history:
                if elapsed(record.timestamp, now) < window:
                    weights[record.product_id] = (
                        weights.get(record.product_id, 0.0) + record.weight
                    )

        divisor = max(1, len(weights))
        return {
            product.id: weights.get(product.id, 0.0) / divisor
            for product in products
        }

    def decay_affinities(
        self, profile: UserProfile, factor: float
    ) -> UserProfile:
        """저장된 카테고리/브랜드 affinity를 factor배로 감쇠한 새 프로필

        상호작용 기록 경로에서는 호출되지 않으며,
        호스트가 명시적으로 실행하는 유지보수 작업에서만 사용합니다.
        """
        factor = min(max(factor, 0.0), 1.0)
        decayed = profile.model_copy(deep=True)
        decayed.category_affinities = {
            k: v * factor for k, v in profile.category_affinities.items()
        }
        decayed.brand_affinities = {
            k: v * factor for k, v in profile.brand_affinities.items()
        }
        return decayed

    @staticmethod
    def top_affinities(
        affinities: dict[str, float], limit: int = 5
    ) -> list[tuple[str, float]]:
        """affinity 상위 항목"""
        return sorted(affinities.items(), key=lambda kv: kv[1], reverse=True)[
            :limit
        ]
