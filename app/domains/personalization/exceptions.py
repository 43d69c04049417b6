"""개인화 도메인 예외 정의"""

from enum import Enum

from app.core.exceptions import (
    BadRequestException,
    NotFoundException,
    StorageException,
)


class PersonalizationErrorCode(str, Enum):
    """개인화 도메인 에러 코드"""

    EXPERIMENT_NOT_FOUND = "EXPERIMENT_NOT_FOUND"
    INVALID_FILTER = "INVALID_FILTER"
    PROFILE_DECODE_FAILED = "PROFILE_DECODE_FAILED"


class ExperimentNotFoundException(NotFoundException):
    """등록되지 않은 실험인 경우"""

    def __init__(self, experiment: str):
        super().__init__(
            message="실험을 찾을 수 없습니다.",
            error_code=PersonalizationErrorCode.EXPERIMENT_NOT_FOUND,
            detail={"experiment": experiment},
        )


class InvalidFilterException(BadRequestException):
    """추천 필터 값이 허용 범위를 벗어난 경우"""

    def __init__(self, field: str, value: str, allowed: tuple[str, ...]):
        super().__init__(
            message="지원하지 않는 필터 값입니다.",
            error_code=PersonalizationErrorCode.INVALID_FILTER,
            detail={"field": field, "value": value, "allowed": list(allowed)},
        )


class ProfileStoreException(StorageException):
    """저장된 프로필을 읽을 수 없는 경우"""

    def __init__(self, user_id: str, reason: str = ""):
        detail = {"user_id": user_id}
        if reason:
            detail["reason"] = reason
        super().__init__(
            message="사용자 프로필을 읽을 수 없습니다.",
            error_code=PersonalizationErrorCode.PROFILE_DECODE_FAILED,
            detail=detail,
        )
