"""
Unit tests for component health scoring.
"""

import pytest

from src.core.types import ComponentState, HealthVerdict
from src.monitoring.health import (
    ComponentStatus,
    health_score,
    overall_status,
    score_components,
    state_of,
    verdict_for_ratio,
)


def _components(*states: str) -> dict:
    return {f"c{i}": {"status": state} for i, state in enumerate(states)}


class TestScoreComponents:
    """Test health summary reduction."""

    def test_empty_components_are_unknown(self):
        summary = score_components({})

        assert summary.total_components == 0
        assert summary.health_percentage == 0
        assert summary.status is HealthVerdict.UNKNOWN

    def test_all_healthy(self):
        summary = score_components(_components("healthy", "healthy"))

        assert summary.healthy_components == 2
        assert summary.health_percentage == 100
        assert summary.status is HealthVerdict.HEALTHY

    def test_exactly_eighty_percent_is_healthy(self):
        summary = score_components(_components("healthy", "healthy", "healthy", "healthy", "error"))

        assert summary.health_percentage == pytest.approx(80.0)
        assert summary.status is HealthVerdict.HEALTHY

    def test_exactly_half_is_warning(self):
        summary = score_components(_components("healthy", "warning"))

        assert summary.status is HealthVerdict.WARNING
        assert summary.warning_components == 1

    def test_below_half_is_critical(self):
        summary = score_components(_components("healthy", "error", "error"))

        assert summary.status is HealthVerdict.CRITICAL
        assert summary.error_components == 2

    def test_unknown_counts_toward_total_only(self):
        summary = score_components(_components("healthy", "unknown"))

        assert summary.total_components == 2
        assert summary.healthy_components == 1
        assert summary.health_percentage == 50

    def test_accepts_component_status_objects(self):
        components = {
            "database": ComponentStatus(name="database", status=ComponentState.HEALTHY),
            "disk": ComponentStatus(name="disk", status=ComponentState.ERROR),
        }

        summary = score_components(components)

        assert summary.healthy_components == 1
        assert summary.error_components == 1

    def test_scoring_is_deterministic(self):
        components = _components("healthy", "warning", "error")

        assert score_components(components) == score_components(components)

    def test_to_dict_renders_status_value(self):
        data = score_components(_components("healthy")).to_dict()

        assert data["status"] == "healthy"
        assert data["total_components"] == 1


class TestHelpers:
    """Test verdict and state helpers."""

    @pytest.mark.parametrize(
        "ratio,expected",
        [
            (1.0, HealthVerdict.HEALTHY),
            (0.8, HealthVerdict.HEALTHY),
            (0.79, HealthVerdict.WARNING),
            (0.5, HealthVerdict.WARNING),
            (0.49, HealthVerdict.CRITICAL),
            (0.0, HealthVerdict.CRITICAL),
        ],
    )
    def test_verdict_for_ratio(self, ratio, expected):
        assert verdict_for_ratio(ratio, total=10) is expected

    def test_unrecognized_state_reads_as_unknown(self):
        assert state_of({"status": "exploded"}) is ComponentState.UNKNOWN

    def test_overall_status_and_score(self):
        components = _components("healthy", "error")

        assert overall_status(components) is HealthVerdict.WARNING
        assert health_score(components) == 50
