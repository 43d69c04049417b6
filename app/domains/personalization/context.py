"""컨텍스트 스냅샷

시각으로부터 시간대(morning/afternoon/evening/night)와
계절(spring/summer/fall/winter)을 판단합니다.
"""

from datetime import datetime

from app.core.utils.datetime import ensure_utc, to_timezone
from app.domains.personalization.types import ContextSnapshot

MORNING = "morning"
AFTERNOON = "afternoon"
EVENING = "evening"
NIGHT = "night"

SPRING = "spring"
SUMMER = "summer"
FALL = "fall"
WINTER = "winter"


def time_of_day_for_hour(hour: int) -> str:
    """시(0~23)에 해당하는 시간대"""
    if 6 <= hour < 12:
        return MORNING
    if 12 <= hour < 17:
        return AFTERNOON
    if 17 <= hour < 21:
        return EVENING
    return NIGHT


def season_for_month(month: int) -> str:
    """월(1~12)에 해당하는 계절 (북반구 기준)"""
    if 3 <= month <= 5:
        return SPRING
    if 6 <= month <= 8:
        return SUMMER
    if 9 <= month <= 11:
        return FALL
    return WINTER


def build_context(now: datetime, tz_name: str = "UTC") -> ContextSnapshot:
    """현재 시각으로 컨텍스트 스냅샷 생성

    Args:
        now: 기준 시각
        tz_name: 시간대/계절 판단에 사용할 타임존

    Returns:
        ContextSnapshot
    """
    local = to_timezone(now, tz_name)
    weekday = local.weekday()

    return ContextSnapshot(
        time_of_day=time_of_day_for_hour(local.hour),
        day_of_week=weekday,
        season=season_for_month(local.month),
        month=local.month,
        hour=local.hour,
        is_weekend=weekday >= 5,
        timestamp=ensure_utc(now),
    )
