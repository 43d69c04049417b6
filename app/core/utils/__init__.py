"""유틸리티 모듈"""

from app.core.utils.datetime import (
    UTC,
    Clock,
    elapsed,
    ensure_utc,
    now_utc,
    to_timezone,
)
from app.core.utils.time import measure_time

__all__ = [
    # datetime
    "UTC",
    "Clock",
    "now_utc",
    "ensure_utc",
    "to_timezone",
    "elapsed",
    # time measurement
    "measure_time",
]
