"""시간 측정 유틸리티"""

import time
from contextlib import contextmanager
from typing import Generator


@contextmanager
def measure_time() -> Generator[dict[str, float], None, None]:
    """처리 시간을 측정하는 컨텍스트 매니저

    Usage:
        with measure_time() as timer:
            recommendations = scorer.hybrid_recommend(...)
        elapsed_ms = timer["elapsed_ms"]

    Yields:
        dict: elapsed_ms 키를 포함하는 딕셔너리
    """
    timer = {"elapsed_ms": 0.0}
    start = time.perf_counter()
    try:
        yield timer
    finally:
        timer["elapsed_ms"] = (time.perf_counter() - start) * 1000
