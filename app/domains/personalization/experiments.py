"""A/B 실험

사용자를 실험 변형(variant)에 결정적으로 배정하고 지표 결과를 기록합니다.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from app.core.logging import get_logger
from app.core.utils.datetime import Clock, now_utc

logger = get_logger(__name__)

CONTROL = "control"


def hash_user_id(value: str) -> int:
    """32비트 문자열 해시 (h = h * 31 + code)의 절댓값"""
    h = 0
    for char in value:
        h = (h * 31 + ord(char)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


@dataclass
class ExperimentResult:
    """실험 지표 기록"""

    user_id: str
    metric: str
    value: float
    timestamp: datetime


@dataclass
class Experiment:
    """실험 정의 및 상태

    Attributes:
        name: 실험 이름
        variants: control을 제외한 변형 목록
        participants: 사용자 ID → 배정된 변형
        results: 변형 → 지표 기록
    """

    name: str
    variants: list[str] = field(default_factory=list)
    participants: dict[str, str] = field(default_factory=dict)
    results: dict[str, list[ExperimentResult]] = field(default_factory=dict)

    @property
    def arms(self) -> list[str]:
        return [CONTROL] + [v for v in self.variants if v != CONTROL]


class ExperimentRegistry:
    """실험 레지스트리"""

    def __init__(
        self,
        experiments: Optional[dict[str, Iterable[str]]] = None,
        default_variant: str = CONTROL,
        clock: Clock = now_utc,
    ):
        self.default_variant = default_variant
        self.clock = clock
        self._experiments: dict[str, Experiment] = {
            name: Experiment(name=name, variants=list(variants))
            for name, variants in (experiments or {}).items()
        }

    def __len__(self) -> int:
        return len(self._experiments)

    def __contains__(self, name: str) -> bool:
        return name in self._experiments

    def get(self, name: str) -> Optional[Experiment]:
        return self._experiments.get(name)

    def variant_for(self, name: str, user_id: str) -> str:
        """사용자에게 배정된 변형

        처음 요청 시 hash(user_id + name) % 변형 수로 배정하고 기억합니다.
        알 수 없는 실험이면 기본 변형을 반환합니다.
        """
        experiment = self._experiments.get(name)
        if experiment is None:
            return self.default_variant

        if user_id not in experiment.participants:
            arms = experiment.arms
            variant = arms[hash_user_id(user_id + name) % len(arms)]
            experiment.participants[user_id] = variant
            logger.debug(f"Assigned {user_id} to '{variant}' in '{name}'")

        return experiment.participants[user_id]

    def track_result(
        self, name: str, user_id: str, metric: str, value: float = 1.0
    ) -> bool:
        """배정된 사용자의 지표 기록

        Returns:
            기록 여부 (실험이 없거나 배정되지 않은 사용자면 False)
        """
        experiment = self._experiments.get(name)
        if experiment is None:
            return False

        variant = experiment.participants.get(user_id)
        if variant is None:
            return False

        experiment.results.setdefault(variant, []).append(
            ExperimentResult(
                user_id=user_id,
                metric=metric,
                value=value,
                timestamp=self.clock(),
            )
        )
        return True
