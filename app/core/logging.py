"""전역 로깅 설정"""

import logging
import sys

from app.core.config import settings


class ColoredFormatter(logging.Formatter):
    """컬러 로그 포맷터 (개발 환경용)"""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        # 같은 레코드를 여러 핸들러가 포맷할 때 색상 코드가 중첩되지 않도록 복사
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def _build_formatter() -> logging.Formatter:
    """환경별 로그 포맷터 생성"""
    if settings.is_development:
        # 개발 환경: 컬러 + 상세 정보
        log_fmt = (
            "%(asctime)s | %(levelname)-8s | "
            "%(name)s:%(lineno)d | %(message)s"
        )
        return ColoredFormatter(fmt=log_fmt, datefmt="%Y-%m-%d %H:%M:%S")

    # 프로덕션 환경: JSON 형식 (로그 수집 시스템 연동 용이)
    json_fmt = (
        '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
        '"logger": "%(name)s", "message": "%(message)s"}'
    )
    return logging.Formatter(fmt=json_fmt, datefmt="%Y-%m-%dT%H:%M:%S%z")


def setup_logging() -> None:
    """애플리케이션 로깅 설정"""

    log_level = logging.DEBUG if settings.debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_build_formatter())
    handler.setLevel(log_level)

    # 루트 로거 설정
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # 외부 라이브러리 로그 레벨 조정
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database_echo else logging.WARNING
    )
    logging.getLogger("alembic").setLevel(logging.INFO)
    # 추천 점수 디버그 로그는 개발 환경에서만 노출
    logging.getLogger("app.domains.personalization.scorer").setLevel(
        log_level if settings.is_development else logging.INFO
    )


def get_logger(name: str) -> logging.Logger:
    """로거 인스턴스 반환

    Args:
        name: 로거 이름 (보통 __name__ 사용)

    Returns:
        logging.Logger: 설정된 로거 인스턴스

    Example::

        from app.core.logging import get_logger
        logger = get_logger(__name__)
        logger.info("Recommendations ready")
    """
    return logging.getLogger(name)
