"""ProfileRepository 통합 테스트 (PostgreSQL 테스트 컨테이너)"""

import pytest
from sqlalchemy import update

from app.domains.personalization.exceptions import ProfileStoreException
from app.domains.personalization.models import UserProfileRecord
from app.domains.personalization.repository import ProfileRepository
from app.domains.personalization.types import Interaction, InteractionType

pytestmark = pytest.mark.docker


@pytest.fixture
def repository(db_session) -> ProfileRepository:
    return ProfileRepository(db_session)


@pytest.mark.asyncio
async def test_put_and_get_profile(repository, scorer):
    """프로필 저장 후 조회"""
    # Given
    profile = scorer.record_interaction(
        "u-1",
        Interaction(
            type=InteractionType.PURCHASE,
            product_id="p-coat",
            category="outerwear",
            brand="nordic",
            price=12000,
            tags=["winter"],
        ),
    )

    # When
    await repository.put("u-1", profile)
    fetched = await repository.get("u-1")

    # Then
    assert fetched == profile
    assert fetched.purchase_history[0].price == 12000


@pytest.mark.asyncio
async def test_put_is_upsert(repository, scorer):
    """같은 사용자 ID로 다시 저장하면 갱신"""
    # Given
    view = Interaction(type=InteractionType.VIEW, product_id="p-tee")
    first = scorer.record_interaction("u-1", view)
    await repository.put("u-1", first)

    # When
    second = scorer.record_interaction("u-1", view, first)
    await repository.put("u-1", second)

    # Then
    assert await repository.count() == 1
    fetched = await repository.get("u-1")
    assert fetched.total_interactions == 2


@pytest.mark.asyncio
async def test_get_missing_profile(repository):
    assert await repository.get("missing") is None


@pytest.mark.asyncio
async def test_list_all_ordered_by_user_id(repository, scorer):
    view = Interaction(type=InteractionType.VIEW, product_id="p-tee")
    for user_id in ("u-b", "u-c", "u-a"):
        await repository.put(user_id, scorer.record_interaction(user_id, view))

    profiles = await repository.list_all()

    assert [p.user_id for p in profiles] == ["u-a", "u-b", "u-c"]


@pytest.mark.asyncio
async def test_corrupted_document_raises(repository, scorer, db_session):
    """해석할 수 없는 문서는 ProfileStoreException"""
    # Given
    view = Interaction(type=InteractionType.VIEW, product_id="p-tee")
    await repository.put("u-1", scorer.record_interaction("u-1", view))
    await db_session.execute(
        update(UserProfileRecord)
        .where(UserProfileRecord.user_id == "u-1")
        .values(profile={"total_interactions": "many"})
    )

    # When & Then
    with pytest.raises(ProfileStoreException) as exc_info:
        await repository.get("u-1")

    assert exc_info.value.detail_info["user_id"] == "u-1"


@pytest.mark.asyncio
async def test_get_for_update(repository, scorer):
    """갱신용 조회는 잠금과 함께 같은 프로필 반환"""
    # Given
    view = Interaction(type=InteractionType.VIEW, product_id="p-tee")
    profile = scorer.record_interaction("u-1", view)
    await repository.put("u-1", profile)

    # When
    locked = await repository.get_for_update("u-1")
    missing = await repository.get_for_update("u-2")

    # Then
    assert locked == profile
    assert missing is None
