"""Utilities for spccore statistical process control calculations."""

from .constants import (
    SpcConstants,
    get_constants,
    get_A2,
    get_A3,
    get_d2,
    get_c4,
    get_D3,
    get_D4,
)

from .statistics import (
    ControlLimits,
    Quartiles,
    StatisticalSummary,
    ZoneBoundaries,
    mean,
    median,
    mode,
    variance,
    standard_deviation,
    value_range,
    minimum,
    maximum,
    quartiles,
    iqr,
    skewness,
    kurtosis,
    moving_ranges,
    descriptive_summary,
    confidence_interval,
    erf,
    normal_cdf,
    calculate_zones,
    split_subgroups,
)

__all__ = [
    # Constants
    "SpcConstants",
    "get_constants",
    "get_A2",
    "get_A3",
    "get_d2",
    "get_c4",
    "get_D3",
    "get_D4",
    # Data classes
    "ControlLimits",
    "Quartiles",
    "StatisticalSummary",
    "ZoneBoundaries",
    # Descriptive statistics
    "mean",
    "median",
    "mode",
    "variance",
    "standard_deviation",
    "value_range",
    "minimum",
    "maximum",
    "quartiles",
    "iqr",
    "skewness",
    "kurtosis",
    "moving_ranges",
    "descriptive_summary",
    "confidence_interval",
    # Normal distribution
    "erf",
    "normal_cdf",
    # Zones and subgrouping
    "calculate_zones",
    "split_subgroups",
]
