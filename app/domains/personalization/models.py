"""개인화 도메인 모델 정의

사용자 프로필은 JSONB 문서로 저장하고, 조회/정렬에 쓰는 값만
별도 컬럼으로 둡니다.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class UserProfileRecord(Base):
    """사용자 프로필 저장 모델"""

    __tablename__ = "user_profiles"

    user_id: Mapped[str] = mapped_column(
        String(128), primary_key=True, comment="스토어프론트 사용자 ID"
    )
    profile: Mapped[dict[str, Any]] = mapped_column(
        JSONB, nullable=False, comment="UserProfile 직렬화 문서"
    )
    total_interactions: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="누적 상호작용 수"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="생성 일시",
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        onupdate=func.now(),
        nullable=True,
        comment="수정 일시",
    )

    def __repr__(self) -> str:
        return (
            f"<UserProfileRecord(user_id={self.user_id}, "
            f"total_interactions={self.total_interactions})>"
        )
