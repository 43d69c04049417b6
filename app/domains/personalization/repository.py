"""개인화 리포지토리

PostgreSQL에 사용자 프로필을 저장/조회합니다.
"""

from typing import Optional, cast

from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.domains.personalization.exceptions import ProfileStoreException
from app.domains.personalization.models import UserProfileRecord
from app.domains.personalization.types import UserProfile

logger = get_logger(__name__)


class ProfileRepository:
    """프로필 리포지토리 (ProfileStore 구현)"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _decode(self, record: UserProfileRecord) -> UserProfile:
        try:
            return UserProfile.model_validate(record.profile)
        except ValidationError as e:
            logger.error(f"Failed to decode profile '{record.user_id}': {e}")
            raise ProfileStoreException(
                user_id=record.user_id, reason=str(e)
            ) from e

    async def get(self, user_id: str) -> Optional[UserProfile]:
        """사용자 프로필 조회

        Args:
            user_id: 사용자 ID

        Returns:
            프로필 또는 None

        Raises:
            ProfileStoreException: 저장된 문서를 해석할 수 없는 경우
        """
        query = select(UserProfileRecord).where(
            UserProfileRecord.user_id == user_id
        )
        result = await self.session.execute(query)
        record = cast(Optional[UserProfileRecord], result.scalar_one_or_none())
        return self._decode(record) if record else None

    async def get_for_update(self, user_id: str) -> Optional[UserProfile]:
        """갱신용 프로필 조회 (트랜잭션 잠금)

        사용자별 advisory lock을 잡은 뒤 행을 FOR UPDATE로 읽습니다.
        아직 행이 없는 사용자도 잠기므로 첫 상호작용의 동시 삽입도
        직렬화됩니다. 잠금은 세션 트랜잭션이 끝날 때 풀립니다.

        Raises:
            ProfileStoreException: 저장된 문서를 해석할 수 없는 경우
        """
        await self.session.execute(
            select(func.pg_advisory_xact_lock(func.hashtext(user_id)))
        )
        query = (
            select(UserProfileRecord)
            .where(UserProfileRecord.user_id == user_id)
            .with_for_update()
        )
        result = await self.session.execute(query)
        record = cast(Optional[UserProfileRecord], result.scalar_one_or_none())
        return self._decode(record) if record else None

    async def put(self, user_id: str, profile: UserProfile) -> None:
        """사용자 프로필 저장 (UPSERT)

        Args:
            user_id: 사용자 ID
            profile: 저장할 프로필
        """
        document = profile.model_dump(mode="json")
        stmt = insert(UserProfileRecord).values(
            user_id=user_id,
            profile=document,
            total_interactions=profile.total_interactions,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[UserProfileRecord.user_id],
            set_={
                "profile": stmt.excluded.profile,
                "total_interactions": stmt.excluded.total_interactions,
                "updated_at": func.now(),
            },
        )
        await self.session.execute(stmt)
        await self.session.flush()

    async def list_all(self) -> list[UserProfile]:
        """전체 프로필 조회 (user_id 순)"""
        query = select(UserProfileRecord).order_by(UserProfileRecord.user_id)
        result = await self.session.execute(query)
        return [self._decode(record) for record in result.scalars().all()]

    async def count(self) -> int:
        """저장된 프로필 수"""
        result = await self.session.execute(
            select(func.count(UserProfileRecord.user_id))
        )
        return int(result.scalar_one())
