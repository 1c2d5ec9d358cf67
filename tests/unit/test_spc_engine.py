"""Tests for the chart analysis orchestrator."""

import math
from datetime import datetime, timezone

import pytest

from spccore.core.engine.capability import SpecificationLimits, process_capability
from spccore.core.engine.control_limits import ChartType, imr_limits, xbar_r_limits
from spccore.core.engine.spc_engine import ChartAnalysis, analyze_chart, analyze_values

SCENARIO_B = [[49, 49.5, 50, 50.5, 51]] * 5
DETECTED_AT = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestAnalyzeChart:
    """End-to-end analysis of a single chart."""

    def test_individuals_chart_in_control(self):
        result = analyze_chart("i-mr", [10, 12, 11, 13, 10])

        assert isinstance(result, ChartAnalysis)
        assert result.chart_type is ChartType.I_MR
        assert result.sigma_level == 3.0
        assert result.values == [10.0, 12.0, 11.0, 13.0, 10.0]
        assert result.limits == imr_limits([10, 12, 11, 13, 10])
        assert result.summary.mean == pytest.approx(11.2)
        assert result.capability is None
        assert result.violations == []
        assert result.in_control
        assert result.processing_time_ms >= 0

    def test_xbar_chart_with_capability(self):
        spec = SpecificationLimits(usl=53, lsl=47)
        result = analyze_chart(ChartType.XBAR_R, SCENARIO_B, spec_limits=spec)

        assert result.values == [50.0] * 5
        assert result.limits == xbar_r_limits(SCENARIO_B)
        # capability is computed on the individual observations
        flat = [v for sg in SCENARIO_B for v in sg]
        assert result.capability == process_capability(flat, spec)

    def test_flat_xbar_data_with_subgroup_size(self):
        flat = [49, 49.5, 50, 50.5, 51] * 5
        result = analyze_chart("xbar-r", flat, size_metadata=5)
        assert result.limits == xbar_r_limits(SCENARIO_B)
        assert len(result.values) == 5

    def test_attributes_chart_has_no_capability(self):
        result = analyze_chart(
            "c-chart", [4, 5, 3, 4], spec_limits=SpecificationLimits(usl=10),
        )
        assert result.capability is None
        assert result.limits.cl == pytest.approx(4.0)

    def test_p_chart_plots_proportions(self):
        result = analyze_chart("p", [2, 4, 3, 1], size_metadata=100)
        assert result.values == pytest.approx([0.02, 0.04, 0.03, 0.01])
        assert result.limits.cl == pytest.approx(0.025)

    def test_zero_sample_sizes_do_not_alternate(self):
        """nan proportions from empty samples never form an alternating run."""
        result = analyze_chart("p", [0] * 14, size_metadata=[0] * 14, enabled_rules=[4])
        assert all(math.isnan(v) for v in result.values)
        assert result.violations == []
        assert result.in_control

    def test_violations_reported(self):
        values = [10, 11, 10, 12, 11, 10, 11, 10, 30]
        result = analyze_chart("i-mr", values, enabled_rules=[1], detected_at=DETECTED_AT)
        assert [v.id for v in result.violations] == ["rule1-8"]
        assert result.violations[0].timestamp == DETECTED_AT
        assert not result.in_control

    def test_sigma_level_argument(self):
        result = analyze_chart("c-chart", [4, 4, 4, 4], sigma_level=2.0)
        assert result.sigma_level == 2.0
        assert result.limits.ucl == pytest.approx(8.0)

    def test_unknown_chart_type(self):
        with pytest.raises(ValueError, match="Unknown chart type"):
            analyze_chart("pareto", [1, 2, 3])

    def test_missing_size_metadata(self):
        with pytest.raises(ValueError, match="requires sample sizes"):
            analyze_chart("u-chart", [1, 2, 3])

    def test_repeatable(self):
        values = [10, 12, 11, 13, 10, 25, 9, 11]
        assert analyze_chart("i-mr", values) == analyze_chart("i-mr", values)


class TestSettingsDefaults:
    """Defaults taken from SPCCORE_* environment variables."""

    def test_sigma_level_from_env(self, monkeypatch):
        monkeypatch.setenv("SPCCORE_DEFAULT_SIGMA_LEVEL", "2")
        result = analyze_chart("c-chart", [4, 4, 4, 4])
        assert result.sigma_level == 2.0
        assert result.limits.ucl == pytest.approx(8.0)

    def test_enabled_rules_from_env(self, monkeypatch):
        monkeypatch.setenv("SPCCORE_ENABLED_RULES", "rule5")
        values = [10, 11, 10, 12, 11, 10, 11, 10, 30]
        result = analyze_chart("i-mr", values)
        assert {v.rule_id for v in result.violations} <= {"rule5"}

    def test_explicit_rules_override_env(self, monkeypatch):
        monkeypatch.setenv("SPCCORE_ENABLED_RULES", "rule5")
        values = [10, 11, 10, 12, 11, 10, 11, 10, 30]
        result = analyze_chart("i-mr", values, enabled_rules=["rule1"])
        assert [v.rule_id for v in result.violations] == ["rule1"]


class TestAnalyzeValues:
    def test_individuals_shortcut(self):
        values = [10, 12, 11, 13, 10]
        assert analyze_values(values) == analyze_chart("i-mr", values)

    def test_with_spec_limits(self):
        result = analyze_values([4, 5, 6], spec_limits=SpecificationLimits(usl=10, lsl=0))
        assert result.capability.cp == pytest.approx(10 / 6)
