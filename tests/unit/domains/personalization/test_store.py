"""메모리 프로필 저장소 단위 테스트"""

import pytest

from app.domains.personalization.store import InMemoryProfileStore
from app.domains.personalization.types import UserProfile


@pytest.mark.asyncio
async def test_get_missing_profile_returns_none():
    store = InMemoryProfileStore()

    assert await store.get("u-1") is None
    assert await store.count() == 0


@pytest.mark.asyncio
async def test_put_and_get_round_trip():
    """저장한 프로필 조회"""
    # Given
    store = InMemoryProfileStore()
    profile = UserProfile(user_id="u-1", category_affinities={"shoes": 1.0})

    # When
    await store.put("u-1", profile)

    # Then
    assert await store.get("u-1") == profile
    assert await store.count() == 1
    assert len(store) == 1


@pytest.mark.asyncio
async def test_returned_profiles_are_copies():
    """조회 결과를 변경해도 저장본은 유지"""
    # Given
    store = InMemoryProfileStore()
    profile = UserProfile(user_id="u-1", category_affinities={"shoes": 1.0})
    await store.put("u-1", profile)

    # When
    profile.category_affinities["shoes"] = 99.0
    fetched = await store.get("u-1")
    fetched.category_affinities["home"] = 5.0

    # Then
    stored = await store.get("u-1")
    assert stored.category_affinities == {"shoes": 1.0}


@pytest.mark.asyncio
async def test_list_all_keeps_insertion_order():
    store = InMemoryProfileStore()
    for user_id in ("b", "a", "c"):
        await store.put(user_id, UserProfile(user_id=user_id))

    profiles = await store.list_all()

    assert [p.user_id for p in profiles] == ["b", "a", "c"]


@pytest.mark.asyncio
async def test_get_for_update_returns_stored_copy():
    store = InMemoryProfileStore()
    await store.put("u-1", UserProfile(user_id="u-1", total_interactions=2))

    profile = await store.get_for_update("u-1")

    assert profile == await store.get("u-1")
    assert await store.get_for_update("missing") is None
