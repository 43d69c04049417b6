"""날짜/시간 유틸리티"""

from datetime import datetime, timedelta, timezone
from typing import Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

UTC = timezone.utc

# 현재 시각을 반환하는 시계 (테스트에서 고정 시각 주입용)
Clock = Callable[[], datetime]


def now_utc() -> datetime:
    """현재 UTC 시간 반환"""
    return datetime.now(UTC)


def ensure_utc(dt: datetime) -> datetime:
    """naive datetime은 UTC로 간주하여 timezone 정보 부여"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_timezone(dt: datetime, tz_name: str) -> datetime:
    """지정한 타임존으로 변환 (알 수 없는 타임존이면 UTC)"""
    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        tz = ZoneInfo("UTC")
    return ensure_utc(dt).astimezone(tz)


def elapsed(since: datetime, now: datetime) -> timedelta:
    """두 시각 사이의 경과 시간 (음수면 0)"""
    delta = ensure_utc(now) - ensure_utc(since)
    return max(delta, timedelta(0))
