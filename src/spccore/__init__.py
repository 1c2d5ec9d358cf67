"""spccore - Statistical Process Control computation engine.

Pure, stateless calculations over measurement sequences: descriptive
statistics, control limits for seven chart families, process capability and
Western Electric / Nelson run rules.
"""

from spccore.core.engine import (
    ChartAnalysis,
    ChartType,
    ProcessCapability,
    RuleViolation,
    Severity,
    SpecificationLimits,
    analyze_chart,
    control_limits,
    process_capability,
    rule_violations,
)
from spccore.utils import ControlLimits, StatisticalSummary, descriptive_summary

__version__ = "0.1.0"

__all__ = [
    "ChartAnalysis",
    "ChartType",
    "ControlLimits",
    "ProcessCapability",
    "RuleViolation",
    "Severity",
    "SpecificationLimits",
    "StatisticalSummary",
    "analyze_chart",
    "control_limits",
    "descriptive_summary",
    "process_capability",
    "rule_violations",
]
