"""SPC engine orchestrator for analysing one control chart in a single call.

This module chains the individual calculations in the order the data flows:
chart points → control limits → descriptive statistics → capability → run
rule evaluation. Nothing here is cached; every call starts from the raw data.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Sequence

import numpy as np
import structlog

from spccore.core.config import get_settings
from spccore.core.engine.capability import (
    ProcessCapability,
    SpecificationLimits,
    process_capability,
)
from spccore.core.engine.control_limits import (
    ChartType,
    chart_values,
    control_limits,
    resolve_subgroups,
)
from spccore.core.engine.nelson_rules import RuleViolation, rule_violations
from spccore.utils.statistics import (
    ControlLimits,
    StatisticalSummary,
    descriptive_summary,
)

logger = structlog.get_logger(__name__)


@dataclass
class ChartAnalysis:
    """Result of analysing one control chart.

    Attributes:
        chart_type: Chart family the data was analysed as
        sigma_level: Width of the control limits in sigma units
        values: Points plotted on the chart, in sequence order
        limits: Control limits of the chart
        summary: Descriptive statistics of the plotted points
        capability: Capability indices, None without specification limits
            or for attributes charts
        violations: Run rule violations found in the plotted points
        processing_time_ms: Time taken to analyse in milliseconds
    """

    chart_type: ChartType
    sigma_level: float
    values: list[float]
    limits: ControlLimits
    summary: StatisticalSummary
    capability: ProcessCapability | None = None
    violations: list[RuleViolation] = field(default_factory=list)

    # Performance
    processing_time_ms: float = field(default=0.0, compare=False)

    @property
    def in_control(self) -> bool:
        """True if no rule fired."""
        return len(self.violations) == 0


def _individual_observations(chart: ChartType, data, size_metadata) -> list[float]:
    if chart.uses_subgroups:
        subgroups = resolve_subgroups(data, size_metadata)
        return [float(v) for sg in subgroups for v in sg]
    return np.asarray(data, dtype=np.float64).tolist()


def analyze_chart(
    chart_type: ChartType | str,
    data,
    sigma_level: float | None = None,
    size_metadata=None,
    spec_limits: SpecificationLimits | None = None,
    enabled_rules: "Iterable[int | str] | None" = None,
    detected_at: datetime | None = None,
) -> ChartAnalysis:
    """Analyse a control chart end to end.

    Args:
        chart_type: ChartType or its string value
        data: Chart data as accepted by control_limits()
        sigma_level: Width of the limits (default: SPCCORE_DEFAULT_SIGMA_LEVEL)
        size_metadata: Subgroup or sample sizes as accepted by control_limits()
        spec_limits: Specification limits; capability is computed on the
            individual observations of variables charts when given
        enabled_rules: Rule ids to evaluate (default: SPCCORE_ENABLED_RULES)
        detected_at: Timestamp for the violations (default: now, UTC)

    Returns:
        ChartAnalysis with limits, statistics, capability and violations

    Raises:
        ValueError: If the chart type is unknown or required size metadata
            is missing
    """
    start_time = time.perf_counter()
    settings = get_settings()

    chart = ChartType.parse(chart_type)
    if sigma_level is None:
        sigma_level = settings.default_sigma_level
    if enabled_rules is None:
        enabled_rules = settings.enabled_rule_list

    values = chart_values(chart, data, size_metadata)
    limits = control_limits(chart, data, sigma_level, size_metadata)

    capability = None
    if spec_limits is not None and chart.is_variables:
        capability = process_capability(
            _individual_observations(chart, data, size_metadata), spec_limits
        )

    violations = rule_violations(values, limits, enabled_rules, detected_at)

    result = ChartAnalysis(
        chart_type=chart,
        sigma_level=sigma_level,
        values=values,
        limits=limits,
        summary=descriptive_summary(values),
        capability=capability,
        violations=violations,
        processing_time_ms=(time.perf_counter() - start_time) * 1000,
    )

    logger.info(
        "chart_analyzed",
        chart_type=chart.value,
        points=len(values),
        violations=len(violations),
        in_control=result.in_control,
        processing_time_ms=round(result.processing_time_ms, 3),
    )
    return result


def analyze_values(
    values: Sequence[float],
    sigma_level: float | None = None,
    spec_limits: SpecificationLimits | None = None,
) -> ChartAnalysis:
    """Shortcut for an individuals (I-MR) chart of a flat measurement sequence."""
    return analyze_chart(ChartType.I_MR, values, sigma_level=sigma_level, spec_limits=spec_limits)
