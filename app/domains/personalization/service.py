"""개인화 서비스

프로필 저장소, 카탈로그, 실험 레지스트리를 스코어러와 연결합니다.
스코어러는 순수 계산만 담당하고, 저장/로드는 이 계층에서 수행합니다.
"""

from typing import Optional

from app.core.logging import get_logger
from app.core.middlewares.context import get_request_id
from app.core.utils.time import measure_time
from app.domains.personalization.catalog import PRICE_TIERS, filter_products
from app.domains.personalization.exceptions import (
    ExperimentNotFoundException,
    InvalidFilterException,
)
from app.domains.personalization.schemas import (
    AffinityScore,
    EngineStatus,
    ExperimentAssignment,
    MaintenanceResult,
    ProfileSummary,
    RecommendationItem,
    SimilarUserItem,
    UserInsights,
)
from app.domains.personalization.state import PersonalizationState
from app.domains.personalization.store import ProfileStore
from app.domains.personalization.types import (
    Interaction,
    ScoredProduct,
    SimilarUser,
    UserProfile,
)

logger = get_logger(__name__)

INSIGHTS_TOP_N = 5


class PersonalizationService:
    """개인화 서비스"""

    def __init__(self, store: ProfileStore, state: PersonalizationState):
        """
        Args:
            store: 프로필 저장소
            state: 개인화 엔진 상태 (스코어러, 카탈로그, 실험)
        """
        self.store = store
        self.state = state
        self.scorer = state.scorer

    async def get_profile(self, user_id: str) -> UserProfile:
        """프로필 조회 (없으면 빈 프로필)"""
        profile = await self.store.get(user_id)
        return profile or UserProfile(user_id=user_id)

    async def track_interaction(
        self, user_id: str, interaction: Interaction
    ) -> UserProfile:
        """상호작용 기록

        프로필을 갱신해 즉시 저장하고, 실험 이름이 있으면
        실험 지표로도 기록합니다.

        Args:
            user_id: 사용자 ID
            interaction: 상호작용

        Returns:
            갱신된 프로필
        """
        async with self.state.user_lock(user_id):
            existing = await self.store.get_for_update(user_id)
            profile = self.scorer.record_interaction(
                user_id, interaction, existing
            )
            await self.store.put(user_id, profile)

        if interaction.experiment_name:
            tracked = self.state.experiments.track_result(
                interaction.experiment_name,
                user_id,
                interaction.type.value,
                interaction.value,
            )
            if not tracked:
                logger.debug(
                    f"Experiment result skipped for {user_id}: "
                    f"'{interaction.experiment_name}' not assigned"
                )

        logger.info(
            "Interaction recorded",
            extra={
                "request_id": get_request_id(),
                "user_id": user_id,
                "type": interaction.type.value,
                "profile_created": existing is None,
            },
        )
        return profile

    async def get_recommendations(
        self,
        user_id: str,
        limit: Optional[int] = None,
        category: Optional[str] = None,
        price_tier: Optional[str] = None,
        style: Optional[str] = None,
        occasion: Optional[str] = None,
        include_contextual: bool = True,
    ) -> list[ScoredProduct]:
        """개인화 추천

        카탈로그에 필터를 적용한 뒤 하이브리드 추천을 계산하고,
        필요하면 컨텍스트 부스트를 적용합니다.

        Args:
            user_id: 사용자 ID
            limit: 최대 추천 수 (기본 설정값)
            category: 카테고리 필터
            price_tier: 가격대 필터 (budget/mid-range/premium/luxury)
            style: 스타일 필터
            occasion: 용도 필터
            include_contextual: 컨텍스트 부스트 적용 여부

        Returns:
            점수 내림차순 추천 목록

        Raises:
            InvalidFilterException: 알 수 없는 가격대인 경우
        """
        if price_tier is not None and price_tier not in PRICE_TIERS:
            raise InvalidFilterException("price_tier", price_tier, PRICE_TIERS)

        limit = limit or self.scorer.config.max_recommendations
        candidates = filter_products(
            self.state.catalog.list(),
            category=category,
            tier=price_tier,
            style=style,
            occasion=occasion,
        )
        if not candidates:
            return []

        profile = await self.get_profile(user_id)
        profiles = await self.store.list_all()

        with measure_time() as timer:
            recommendations = self.scorer.hybrid_recommend(
                profile, candidates, profiles, limit=limit
            )
            if include_contextual:
                recommendations = self.scorer.apply_contextual_boost(
                    recommendations
                )

        logger.info(
            f"Recommendations for {user_id}: {len(recommendations)} items "
            f"from {len(candidates)} candidates, {len(profiles)} profiles "
            f"({timer['elapsed_ms']:.2f}ms)"
        )
        return recommendations[:limit]

    async def find_similar_users(
        self, user_id: str, limit: int = 10
    ) -> list[SimilarUser]:
        """유사 사용자 조회"""
        profiles = await self.store.list_all()
        return self.scorer.find_similar_users(user_id, profiles, limit=limit)

    async def get_insights(self, user_id: str) -> UserInsights:
        """사용자 인사이트

        프로필 지표, 상위 카테고리/브랜드, 유사 사용자,
        현재 컨텍스트와 상위 추천을 묶어 반환합니다.
        """
        profile = await self.get_profile(user_id)
        similar = await self.find_similar_users(user_id, limit=INSIGHTS_TOP_N)
        recommendations = await self.get_recommendations(
            user_id, limit=INSIGHTS_TOP_N
        )

        return UserInsights(
            profile=ProfileSummary.from_profile(profile),
            top_categories=[
                AffinityScore(name=name, score=score)
                for name, score in self.scorer.top_affinities(
                    profile.category_affinities, INSIGHTS_TOP_N
                )
            ],
            top_brands=[
                AffinityScore(name=name, score=score)
                for name, score in self.scorer.top_affinities(
                    profile.brand_affinities, INSIGHTS_TOP_N
                )
            ],
            style_profile=profile.style_profile,
            similar_users=[SimilarUserItem(**s) for s in similar],
            context=self.scorer.current_context(),
            recommendations=[
                RecommendationItem.from_scored(item) for item in recommendations
            ],
        )

    def get_experiment_variant(
        self, experiment: str, user_id: str
    ) -> ExperimentAssignment:
        """실험 변형 배정 조회"""
        variant = self.state.experiments.variant_for(experiment, user_id)
        return ExperimentAssignment(
            experiment=experiment, user_id=user_id, variant=variant
        )

    def record_experiment_result(
        self, experiment: str, user_id: str, metric: str, value: float
    ) -> bool:
        """실험 지표 기록

        Raises:
            ExperimentNotFoundException: 등록되지 않은 실험인 경우

        Returns:
            기록 여부 (배정되지 않은 사용자면 False)
        """
        if experiment not in self.state.experiments:
            raise ExperimentNotFoundException(experiment)
        return self.state.experiments.track_result(
            experiment, user_id, metric, value
        )

    async def recompute_similarities(self) -> MaintenanceResult:
        """전체 사용자 쌍 유사도 재계산 (캐시 교체)"""
        profiles = await self.store.list_all()
        with measure_time() as timer:
            matrix = self.scorer.compute_similarity_matrix(profiles)
        self.state.similarity_cache = matrix

        logger.info(
            f"Recomputed {len(matrix)} similarity pairs "
            f"for {len(profiles)} profiles"
        )
        return MaintenanceResult(
            task="similarities",
            affected=len(matrix),
            elapsed_ms=timer["elapsed_ms"],
        )

    async def recompute_trending(self) -> MaintenanceResult:
        """카탈로그 트렌딩 점수 재계산"""
        profiles = await self.store.list_all()
        with measure_time() as timer:
            scores = self.scorer.compute_trending_scores(
                profiles, self.state.catalog.list()
            )
            self.state.catalog.update_trending(scores)

        logger.info(f"Recomputed trending scores for {len(scores)} products")
        return MaintenanceResult(
            task="trending", affected=len(scores), elapsed_ms=timer["elapsed_ms"]
        )

    async def apply_affinity_decay(
        self, factor: Optional[float] = None
    ) -> MaintenanceResult:
        """저장된 모든 프로필의 affinity 감쇠

        사용자마다 잠금을 잡고 최신 프로필을 다시 읽어 감쇠합니다.
        """
        factor = self.state.decay_factor if factor is None else factor
        user_ids = [p.user_id for p in await self.store.list_all()]
        affected = 0

        with measure_time() as timer:
            for user_id in user_ids:
                async with self.state.user_lock(user_id):
                    profile = await self.store.get_for_update(user_id)
                    if profile is None:
                        continue
                    decayed = self.scorer.decay_affinities(profile, factor)
                    await self.store.put(user_id, decayed)
                    affected += 1

        logger.info(f"Applied affinity decay ×{factor} to {affected} profiles")
        return MaintenanceResult(
            task="decay", affected=affected, elapsed_ms=timer["elapsed_ms"]
        )

    async def get_status(self) -> EngineStatus:
        """엔진 상태"""
        return EngineStatus(
            profile_store=self.state.store_kind,
            user_profiles=await self.store.count(),
            catalog_products=len(self.state.catalog),
            similarity_pairs=len(self.state.similarity_cache),
            experiments=len(self.state.experiments),
            context=self.scorer.current_context(),
        )
