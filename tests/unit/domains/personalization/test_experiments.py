"""A/B 실험 단위 테스트"""

import pytest

from app.domains.personalization.experiments import (
    CONTROL,
    ExperimentRegistry,
    hash_user_id,
)


@pytest.fixture
def registry(fixed_clock) -> ExperimentRegistry:
    return ExperimentRegistry(
        {"checkout_flow": ["one_click", "express"]}, clock=fixed_clock
    )


class TestHashUserId:
    """문자열 해시 테스트"""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("", 0),
            ("a", 97),
            ("ab", 3105),
            # 32비트 오버플로로 최솟값이 되는 문자열
            ("polygenelubricants", 2147483648),
        ],
    )
    def test_matches_32bit_string_hash(self, value, expected):
        assert hash_user_id(value) == expected

    def test_is_never_negative(self):
        assert all(hash_user_id(f"user-{i}") >= 0 for i in range(200))


class TestExperimentRegistry:
    """실험 레지스트리 테스트"""

    def test_variant_includes_control_arm(self, registry):
        """control이 항상 첫 번째 변형"""
        assert registry.get("checkout_flow").arms == [
            CONTROL,
            "one_click",
            "express",
        ]

    def test_assignment_is_deterministic(self, registry, fixed_clock):
        """같은 사용자/실험은 같은 변형"""
        other = ExperimentRegistry(
            {"checkout_flow": ["one_click", "express"]}, clock=fixed_clock
        )

        for i in range(20):
            user_id = f"user-{i}"
            assert registry.variant_for("checkout_flow", user_id) == (
                other.variant_for("checkout_flow", user_id)
            )

    def test_assignment_uses_hash_modulo(self, registry):
        """hash(user_id + name) % 변형 수"""
        arms = registry.get("checkout_flow").arms
        expected = arms[hash_user_id("user-7checkout_flow") % len(arms)]

        assert registry.variant_for("checkout_flow", "user-7") == expected

    def test_assignment_is_remembered(self, registry):
        """배정 결과는 참가자로 기록"""
        variant = registry.variant_for("checkout_flow", "user-1")

        assert registry.get("checkout_flow").participants == {"user-1": variant}

    def test_unknown_experiment_returns_default(self, registry):
        """알 수 없는 실험은 기본 변형"""
        assert registry.variant_for("missing", "user-1") == CONTROL
        assert "missing" not in registry

    def test_custom_default_variant(self):
        registry = ExperimentRegistry(default_variant="baseline")

        assert registry.variant_for("missing", "user-1") == "baseline"
        assert len(registry) == 0

    def test_track_result_requires_assignment(self, registry, fixed_now):
        """배정된 사용자만 지표 기록"""
        # Given
        assert registry.track_result("checkout_flow", "user-1", "purchase") is False

        # When
        variant = registry.variant_for("checkout_flow", "user-1")
        tracked = registry.track_result("checkout_flow", "user-1", "purchase", 2.0)

        # Then
        assert tracked is True
        results = registry.get("checkout_flow").results[variant]
        assert len(results) == 1
        assert results[0].metric == "purchase"
        assert results[0].value == 2.0
        assert results[0].timestamp == fixed_now

    def test_track_result_unknown_experiment(self, registry):
        assert registry.track_result("missing", "user-1", "view") is False
