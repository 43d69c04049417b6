"""프로필 저장소 인터페이스 및 메모리 구현"""

from typing import Optional, Protocol

from app.domains.personalization.types import UserProfile


class ProfileStore(Protocol):
    """프로필 저장소 (키-값)

    get_for_update는 읽고-갱신-저장하는 경로에서 사용하며, 저장소가
    트랜잭션을 지원하면 커밋될 때까지 같은 사용자의 다른 갱신을 막습니다.
    """

    async def get(self, user_id: str) -> Optional[UserProfile]: ...

    async def get_for_update(self, user_id: str) -> Optional[UserProfile]: ...

    async def put(self, user_id: str, profile: UserProfile) -> None: ...

    async def list_all(self) -> list[UserProfile]: ...

    async def count(self) -> int: ...


class InMemoryProfileStore:
    """프로세스 메모리 프로필 저장소

    호출자가 반환된 프로필을 변경해도 저장본에 영향이 없도록
    저장/조회 시 복사본을 사용합니다.
    """

    def __init__(self) -> None:
        self._profiles: dict[str, UserProfile] = {}

    def __len__(self) -> int:
        return len(self._profiles)

    async def get(self, user_id: str) -> Optional[UserProfile]:
        profile = self._profiles.get(user_id)
        return profile.model_copy(deep=True) if profile else None

    async def get_for_update(self, user_id: str) -> Optional[UserProfile]:
        return await self.get(user_id)

    async def put(self, user_id: str, profile: UserProfile) -> None:
        self._profiles[user_id] = profile.model_copy(deep=True)

    async def list_all(self) -> list[UserProfile]:
        return [p.model_copy(deep=True) for p in self._profiles.values()]

    async def count(self) -> int:
        return len(self._profiles)
