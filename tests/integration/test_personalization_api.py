"""Personalization API 통합 테스트 - API 엔드포인트 및 인증 검증"""

from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.config import Settings
from app.main import create_app

BASE_URL = "/api/v1/personalization"


async def post_interaction(client, headers, user_id: str, **body):
    return await client.post(
        f"{BASE_URL}/users/{user_id}/interactions", json=body, headers=headers
    )


class TestAuthenticationRequired:
    """API Key 인증 필수 테스트"""

    @pytest.mark.asyncio
    async def test_missing_api_key_returns_422(self, client):
        """API Key 없이 요청하면 422 반환"""
        response = await client.get(f"{BASE_URL}/status")
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_invalid_api_key_returns_401(self, client):
        """잘못된 API Key로 요청하면 401 반환"""
        headers = {"X-Internal-Api-Key": "invalid-key"}
        response = await client.get(f"{BASE_URL}/status", headers=headers)

        assert response.status_code == 401
        data = response.json()
        assert data["success"] is False
        assert data["error"]["code"] == "INVALID_API_KEY"


class TestHealthAPI:
    """헬스 체크 테스트"""

    @pytest.mark.asyncio
    async def test_health_check(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["data"]["status"] == "healthy"
        assert data["data"]["profile_store"] == "memory"


class TestInteractionAPI:
    """상호작용 기록 API 테스트"""

    @pytest.mark.asyncio
    async def test_track_interaction(self, client, api_key_header):
        """상호작용 기록 후 프로필 요약 반환"""
        # When
        response = await post_interaction(
            client,
            api_key_header,
            "u-1",
            type="click",
            product_id="p-shirt",
            category="clothing",
            brand="formalist",
        )

        # Then
        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["data"]["user_id"] == "u-1"
        assert data["data"]["total_interactions"] == 1
        assert data["data"]["category_affinities"]["clothing"] > 0

    @pytest.mark.asyncio
    async def test_numeric_product_id_is_accepted(self, client, api_key_header):
        """숫자 상품 ID는 문자열로 변환"""
        response = await post_interaction(
            client, api_key_header, "u-1", type="view", product_id=123
        )

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_purchase_without_price_is_rejected(
        self, client, api_key_header
    ):
        """가격 없는 구매는 검증 실패"""
        response = await post_interaction(
            client, api_key_header, "u-1", type="purchase", product_id="p-tee"
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_type_is_rejected(self, client, api_key_header):
        response = await post_interaction(
            client, api_key_header, "u-1", type="hover", product_id="p-tee"
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_negative_price_is_rejected(self, client, api_key_header):
        response = await post_interaction(
            client,
            api_key_header,
            "u-1",
            type="view",
            product_id="p-tee",
            price=-1,
        )

        assert response.status_code == 422


class TestRecommendationAPI:
    """추천 API 테스트"""

    @pytest.mark.asyncio
    async def test_recommendations_for_active_user(self, client, api_key_header):
        """상호작용 기반 추천"""
        # Given
        await post_interaction(
            client,
            api_key_header,
            "u-1",
            type="add_to_cart",
            product_id="p-shirt",
            category="clothing",
        )

        # When
        response = await client.get(
            f"{BASE_URL}/users/u-1/recommendations",
            params={"limit": 5, "include_contextual": "false"},
            headers=api_key_header,
        )

        # Then
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user_id"] == "u-1"
        assert data["contextual"] is False
        ids = {item["product"]["id"] for item in data["items"]}
        assert ids == {"p-shirt", "p-tee"}

    @pytest.mark.asyncio
    async def test_recommendations_with_filter(self, client, api_key_header):
        await post_interaction(
            client,
            api_key_header,
            "u-1",
            type="view",
            product_id="p-shirt",
            category="clothing",
        )

        response = await client.get(
            f"{BASE_URL}/users/u-1/recommendations",
            params={"price_tier": "budget"},
            headers=api_key_header,
        )

        items = response.json()["data"]["items"]
        assert [item["product"]["id"] for item in items] == ["p-tee"]
        assert items[0]["product"]["price_tier"] == "budget"

    @pytest.mark.asyncio
    async def test_unknown_price_tier_returns_400(self, client, api_key_header):
        response = await client.get(
            f"{BASE_URL}/users/u-1/recommendations",
            params={"price_tier": "cheap"},
            headers=api_key_header,
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "INVALID_FILTER"
        assert data["error"]["detail"]["field"] == "price_tier"

    @pytest.mark.asyncio
    async def test_invalid_limit_returns_422(self, client, api_key_header):
        response = await client.get(
            f"{BASE_URL}/users/u-1/recommendations",
            params={"limit": 0},
            headers=api_key_header,
        )

        assert response.status_code == 422


class TestSimilarUsersAPI:
    """유사 사용자/인사이트 API 테스트"""

    @pytest.mark.asyncio
    async def test_similar_users(self, client, api_key_header):
        # Given
        for user_id in ("u-1", "u-2"):
            await post_interaction(
                client,
                api_key_header,
                user_id,
                type="view",
                product_id="p-tee",
                category="clothing",
            )

        # When
        response = await client.get(
            f"{BASE_URL}/users/u-1/similar", headers=api_key_header
        )

        # Then
        assert response.status_code == 200
        similar = response.json()["data"]
        assert [s["user_id"] for s in similar] == ["u-2"]
        assert 0.0 < similar[0]["similarity"] <= 1.0

    @pytest.mark.asyncio
    async def test_insights_for_unknown_user(self, client, api_key_header):
        """이력이 없는 사용자는 빈 프로필 인사이트"""
        response = await client.get(
            f"{BASE_URL}/users/nobody/insights", headers=api_key_header
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["profile"]["total_interactions"] == 0
        assert data["top_categories"] == []
        assert data["recommendations"] == []


class TestExperimentAPI:
    """실험 API 테스트"""

    @pytest.mark.asyncio
    async def test_variant_assignment_is_stable(self, client, api_key_header):
        url = f"{BASE_URL}/experiments/checkout_flow/variant"

        first = await client.get(
            url, params={"user_id": "u-1"}, headers=api_key_header
        )
        second = await client.get(
            url, params={"user_id": "u-1"}, headers=api_key_header
        )

        assert first.status_code == 200
        assert first.json()["data"]["variant"] in {"control", "one_click"}
        assert first.json()["data"] == second.json()["data"]

    @pytest.mark.asyncio
    async def test_record_result_for_assigned_user(self, client, api_key_header):
        # Given
        await client.get(
            f"{BASE_URL}/experiments/checkout_flow/variant",
            params={"user_id": "u-1"},
            headers=api_key_header,
        )

        # When
        response = await client.post(
            f"{BASE_URL}/experiments/checkout_flow/results",
            json={"user_id": "u-1", "metric": "conversion", "value": 1},
            headers=api_key_header,
        )

        # Then
        assert response.status_code == 201
        assert response.json()["data"]["recorded"] is True

    @pytest.mark.asyncio
    async def test_record_result_unknown_experiment(self, client, api_key_header):
        response = await client.post(
            f"{BASE_URL}/experiments/missing/results",
            json={"user_id": "u-1", "metric": "conversion"},
            headers=api_key_header,
        )

        assert response.status_code == 404
        data = response.json()
        assert data["error"]["code"] == "EXPERIMENT_NOT_FOUND"
        assert data["error"]["detail"] == {"experiment": "missing"}


class TestMaintenanceAPI:
    """유지보수 API 테스트"""

    @pytest.mark.asyncio
    async def test_recompute_and_status(self, client, api_key_header):
        # Given
        for user_id in ("u-1", "u-2"):
            await post_interaction(
                client,
                api_key_header,
                user_id,
                type="purchase",
                product_id="p-coat",
                price=12000,
            )

        # When
        similarities = await client.post(
            f"{BASE_URL}/maintenance/similarities", headers=api_key_header
        )
        trending = await client.post(
            f"{BASE_URL}/maintenance/trending", headers=api_key_header
        )
        status = await client.get(f"{BASE_URL}/status", headers=api_key_header)

        # Then
        assert similarities.json()["data"]["affected"] == 1
        assert trending.json()["data"]["affected"] == 5
        assert "X-Request-ID" in status.headers
        assert status.headers["X-Process-Time"].endswith("ms")
        data = status.json()["data"]
        assert data["user_profiles"] == 2
        assert data["catalog_products"] == 5
        assert data["similarity_pairs"] == 1
        assert data["experiments"] == 1

    @pytest.mark.asyncio
    async def test_decay_with_explicit_factor(self, client, api_key_header):
        await post_interaction(
            client,
            api_key_header,
            "u-1",
            type="click",
            product_id="p-shirt",
            category="clothing",
        )

        response = await client.post(
            f"{BASE_URL}/maintenance/decay",
            params={"factor": 0.5},
            headers=api_key_header,
        )

        assert response.status_code == 200
        assert response.json()["data"]["affected"] == 1

    @pytest.mark.asyncio
    async def test_decay_rejects_factor_out_of_range(
        self, client, api_key_header
    ):
        response = await client.post(
            f"{BASE_URL}/maintenance/decay",
            params={"factor": 1.5},
            headers=api_key_header,
        )

        assert response.status_code == 422


class TestAppSettings:
    """앱별 설정 적용 테스트"""

    @pytest.mark.asyncio
    async def test_api_key_from_app_settings(self, catalog_file):
        """팩토리에 전달한 API Key로 인증"""
        # Given
        app_settings = Settings(
            app_env="test",
            catalog_path=catalog_file,
            internal_api_key="k" * 40,
        )
        app = create_app(app_settings)

        # When
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as client:
            accepted = await client.get(
                f"{BASE_URL}/status", headers={"X-Internal-Api-Key": "k" * 40}
            )
            rejected = await client.get(
                f"{BASE_URL}/status",
                headers={"X-Internal-Api-Key": "other-key"},
            )

        # Then
        assert accepted.status_code == 200
        assert rejected.status_code == 401

    @pytest.mark.asyncio
    async def test_lifespan_migrates_with_app_settings(self, catalog_file):
        """database 저장소 설정이면 해당 설정으로 마이그레이션"""
        # Given
        app_settings = Settings(
            app_env="test",
            catalog_path=catalog_file,
            profile_store="database",
            database_url="postgresql+asyncpg://shopr:shopr@db:5432/profiles",
        )
        app = create_app(app_settings)

        # When
        with patch("app.main.run_migrations_on_startup") as mock_migrate:
            async with app.router.lifespan_context(app):
                pass

        # Then
        mock_migrate.assert_called_once_with(app_settings)

    @pytest.mark.asyncio
    async def test_lifespan_skips_migrations_for_memory_store(
        self, test_settings
    ):
        app = create_app(test_settings)

        with patch("app.main.run_migrations_on_startup") as mock_migrate:
            async with app.router.lifespan_context(app):
                pass

        mock_migrate.assert_not_called()
