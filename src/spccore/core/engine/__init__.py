"""SPC Engine - Statistical Process Control calculations."""

from .capability import (
    ProcessCapability,
    SpecificationLimits,
    calculate_ppm,
    process_capability,
    validate_specification_limits,
)
from .control_limits import (
    DEFAULT_SIGMA_LEVEL,
    ChartType,
    c_chart_limits,
    chart_values,
    control_limits,
    imr_limits,
    moving_range_chart_limits,
    np_chart_limits,
    p_chart_limits,
    range_chart_limits,
    resolve_subgroups,
    u_chart_limits,
    xbar_r_limits,
    xbar_s_limits,
)
from .nelson_rules import (
    NelsonRuleLibrary,
    Rule1BeyondLimits,
    Rule2Shift,
    Rule3Trend,
    Rule4Alternator,
    Rule5ZoneA,
    Rule6ZoneB,
    Rule7Stratification,
    Rule8Mixture,
    RuleViolation,
    Severity,
    get_rule,
    list_rules,
    normalize_rule_id,
    rule_violations,
)
from .spc_engine import ChartAnalysis, analyze_chart, analyze_values

__all__ = [
    # SPC Engine
    "ChartAnalysis",
    "analyze_chart",
    "analyze_values",
    # Control Limits
    "DEFAULT_SIGMA_LEVEL",
    "ChartType",
    "control_limits",
    "chart_values",
    "resolve_subgroups",
    "xbar_r_limits",
    "xbar_s_limits",
    "imr_limits",
    "p_chart_limits",
    "np_chart_limits",
    "c_chart_limits",
    "u_chart_limits",
    "range_chart_limits",
    "moving_range_chart_limits",
    # Capability
    "ProcessCapability",
    "SpecificationLimits",
    "calculate_ppm",
    "process_capability",
    "validate_specification_limits",
    # Nelson Rules
    "NelsonRuleLibrary",
    "Rule1BeyondLimits",
    "Rule2Shift",
    "Rule3Trend",
    "Rule4Alternator",
    "Rule5ZoneA",
    "Rule6ZoneB",
    "Rule7Stratification",
    "Rule8Mixture",
    "RuleViolation",
    "Severity",
    "get_rule",
    "list_rules",
    "normalize_rule_id",
    "rule_violations",
]
