"""개인화 엔진 상태

애플리케이션 생성 시 한 번 만들어 app.state에 보관합니다.
요청마다 만들어지는 서비스는 이 객체를 통해 카탈로그, 실험,
유사도 캐시에 접근합니다.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator
from weakref import WeakValueDictionary

from app.core.config import Settings
from app.core.utils.datetime import Clock, now_utc
from app.domains.personalization.catalog import ProductCatalog, load_catalog
from app.domains.personalization.experiments import ExperimentRegistry
from app.domains.personalization.scorer import RecommendationScorer, ScoringConfig
from app.domains.personalization.store import InMemoryProfileStore


@dataclass
class PersonalizationState:
    """개인화 엔진 구성 요소

    Attributes:
        scorer: 추천 스코어러
        catalog: 상품 카탈로그
        experiments: A/B 실험 레지스트리
        memory_store: 메모리 프로필 저장소 (profile_store=memory일 때 사용)
        decay_factor: affinity 감쇠 배수
        store_kind: 프로필 저장소 종류
        similarity_cache: 마지막 배치 재계산 결과
        user_locks: 사용자별 갱신 잠금 (사용 중인 잠금만 유지)
    """

    scorer: RecommendationScorer
    catalog: ProductCatalog
    experiments: ExperimentRegistry
    memory_store: InMemoryProfileStore = field(
        default_factory=InMemoryProfileStore
    )
    decay_factor: float = 0.95
    store_kind: str = "memory"
    similarity_cache: dict[tuple[str, str], float] = field(default_factory=dict)
    user_locks: WeakValueDictionary[str, asyncio.Lock] = field(
        default_factory=WeakValueDictionary
    )

    @asynccontextmanager
    async def user_lock(self, user_id: str) -> AsyncIterator[None]:
        """같은 사용자의 프로필 갱신을 프로세스 안에서 직렬화"""
        lock = self.user_locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self.user_locks[user_id] = lock
        async with lock:
            yield


def build_state(settings: Settings, clock: Clock = now_utc) -> PersonalizationState:
    """설정으로부터 엔진 상태 생성 (카탈로그 로드 포함)"""
    return PersonalizationState(
        scorer=RecommendationScorer(ScoringConfig.from_settings(settings), clock),
        catalog=load_catalog(settings.catalog_path),
        experiments=ExperimentRegistry(
            settings.experiments,
            default_variant=settings.default_variant,
            clock=clock,
        ),
        decay_factor=settings.decay_factor,
        store_kind=settings.profile_store,
    )
