"""프로필 테이블 마이그레이션 유틸리티

profile_store=database로 실행할 때 서버 시작 시 Alembic 리비전을 확인하고
필요하면 head까지 업그레이드합니다.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import Settings, settings
from app.core.logging import get_logger

logger = get_logger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


@dataclass
class MigrationStatus:
    """마이그레이션 상태"""

    current: Optional[str]
    head: Optional[str]

    @property
    def is_up_to_date(self) -> bool:
        return self.current is not None and self.current == self.head


def sync_database_url(url: str) -> str:
    """asyncpg URL을 Alembic용 동기(psycopg2) URL로 변환"""
    return url.replace("postgresql+asyncpg", "postgresql+psycopg2")


def get_alembic_config(database_url: Optional[str] = None) -> Config:
    """Alembic 설정 객체 반환

    Args:
        database_url: 대상 데이터베이스 URL (없으면 전역 설정)
    """
    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    url = database_url or settings.database_url
    config.set_main_option("sqlalchemy.url", sync_database_url(url))
    config.attributes["skip_logging_config"] = True
    return config


def get_current_revision(database_url: Optional[str] = None) -> Optional[str]:
    """데이터베이스에 적용된 리비전 (기록이 없으면 None)"""
    url = database_url or settings.database_url
    engine = create_engine(sync_database_url(url))
    try:
        with engine.connect() as conn:
            rev = MigrationContext.configure(conn).get_current_revision()
            return str(rev) if rev else None
    finally:
        engine.dispose()


def get_head_revision() -> Optional[str]:
    """최신 마이그레이션 리비전"""
    head = ScriptDirectory.from_config(get_alembic_config()).get_current_head()
    return str(head) if head else None


def check_migration_status(database_url: Optional[str] = None) -> MigrationStatus:
    return MigrationStatus(
        current=get_current_revision(database_url), head=get_head_revision()
    )


def run_migrations_on_startup(app_settings: Optional[Settings] = None) -> None:
    """서버 시작 시 마이그레이션 확인 및 실행

    Args:
        app_settings: 애플리케이션 설정 (없으면 전역 설정).
            auto_migrate가 True면 head까지 업그레이드, False면 상태만 로깅

    Raises:
        RuntimeError: 프로덕션 환경에서 상태 확인/업그레이드에 실패한 경우
    """
    app_settings = app_settings or settings
    try:
        status = check_migration_status(app_settings.database_url)
        if status.is_up_to_date:
            logger.info(f"✅ 마이그레이션 상태: 최신 (revision: {status.current})")
            return

        logger.warning(
            f"⚠️ user_profiles 마이그레이션 필요 "
            f"(현재: {status.current}, 최신: {status.head})"
        )
        if not app_settings.auto_migrate:
            return

        command.upgrade(get_alembic_config(app_settings.database_url), "head")
        logger.info(f"✅ 마이그레이션 완료 (revision: {status.head})")

    except SQLAlchemyError as e:
        logger.error(f"❌ 마이그레이션 실패: {e}")
        # 개발 환경에서는 DB 없이도 서버 시작
        if app_settings.is_production:
            raise RuntimeError("프로덕션 환경에서 마이그레이션 실패") from e
        logger.warning("⚠️ 개발 환경이므로 서버를 계속 시작합니다.")
