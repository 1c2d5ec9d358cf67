"""Statistical functions for SPC calculations.

This module provides functions for:
- Descriptive statistics (mean, median, mode, dispersion, shape)
- Normal distribution helpers (erf approximation, CDF)
- Zone boundaries interpolated from control limits for rule testing
- Splitting flat measurement sequences into subgroups

Every function accepts any sequence of numbers and never reorders it; sorting
is done on a copy. Empty input yields zero-valued results instead of errors.
Floating-point degeneracy (for example the sample deviation of a single
value) is returned as nan/inf rather than raised.
"""

import math
from collections import Counter
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

# Abramowitz and Stegun formula 7.1.26
_ERF_A1 = 0.254829592
_ERF_A2 = -0.284496736
_ERF_A3 = 1.421413741
_ERF_A4 = -1.453152027
_ERF_A5 = 1.061405429
_ERF_P = 0.3275911


@dataclass(frozen=True)
class ControlLimits:
    """Control limits for a control chart.

    Attributes:
        ucl: Upper Control Limit
        lcl: Lower Control Limit
        cl: Center line of the process
        sigma: Estimated process standard deviation
    """
    ucl: float
    lcl: float
    cl: float
    sigma: float

    @classmethod
    def zero(cls) -> "ControlLimits":
        """Limits returned when there is not enough data to compute any."""
        return cls(ucl=0.0, lcl=0.0, cl=0.0, sigma=0.0)


@dataclass(frozen=True)
class Quartiles:
    q1: float
    q2: float
    q3: float


@dataclass(frozen=True)
class StatisticalSummary:
    """Descriptive statistics of a measurement sequence.

    ``std_dev`` and ``variance`` use the sample (n-1) divisor.
    """
    count: int
    mean: float
    median: float
    mode: float
    std_dev: float
    variance: float
    range: float
    min: float
    max: float
    q1: float
    q3: float
    iqr: float
    skewness: float
    kurtosis: float


@dataclass(frozen=True)
class ZoneBoundaries:
    """Zone boundaries for Western Electric / Nelson rule testing.

    Zones are defined as:
    - Zone C: Between center line and +/- 1 sigma
    - Zone B: Between +/- 1 sigma and +/- 2 sigma
    - Zone A: Between +/- 2 sigma and +/- 3 sigma (UCL/LCL)

    Attributes:
        center_line: Center line of the chart
        plus_1_sigma: Center line + 1 sigma
        plus_2_sigma: Center line + 2 sigma
        plus_3_sigma: Center line + 3 sigma (UCL)
        minus_1_sigma: Center line - 1 sigma
        minus_2_sigma: Center line - 2 sigma
        minus_3_sigma: Center line - 3 sigma (LCL)
    """
    center_line: float
    plus_1_sigma: float
    plus_2_sigma: float
    plus_3_sigma: float
    minus_1_sigma: float
    minus_2_sigma: float
    minus_3_sigma: float


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


def _sum_squared_deviations(arr: np.ndarray) -> float:
    return float(np.sum((arr - arr.mean()) ** 2))


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(_as_array(values)))


def median(values: Sequence[float]) -> float:
    """Middle value; the average of the two middle values on even length.

    Examples:
        >>> median([4, 1, 3, 2])
        2.5
    """
    if len(values) == 0:
        return 0.0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return float(ordered[mid])


def mode(values: Sequence[float]) -> float:
    """Most frequent value. Ties go to the value that occurs first."""
    if len(values) == 0:
        return 0.0
    # most_common keeps first-seen order among equal counts
    value, _ = Counter(values).most_common(1)[0]
    return float(value)


def variance(values: Sequence[float], sample: bool = True) -> float:
    """Variance with an ``n-1`` divisor when ``sample`` is True, else ``n``."""
    if len(values) == 0:
        return 0.0
    arr = _as_array(values)
    divisor = len(arr) - 1 if sample else len(arr)
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(_sum_squared_deviations(arr)) / divisor)


def standard_deviation(values: Sequence[float], sample: bool = True) -> float:
    """Standard deviation with an ``n-1`` divisor when ``sample`` is True, else ``n``.

    Examples:
        >>> round(standard_deviation([1, 2, 3, 4, 5]), 4)
        1.5811
        >>> round(standard_deviation([1, 2, 3, 4, 5], sample=False), 4)
        1.4142
    """
    if len(values) == 0:
        return 0.0
    return float(np.sqrt(variance(values, sample=sample)))


def value_range(values: Sequence[float]) -> float:
    """Spread between the largest and smallest value."""
    if len(values) == 0:
        return 0.0
    return float(np.ptp(_as_array(values)))


def minimum(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(min(values))


def maximum(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(max(values))


def quartiles(values: Sequence[float]) -> Quartiles:
    """Quartiles by the nearest-rank method.

    Q1 and Q3 are the sorted values at ``floor(n*0.25)`` and
    ``floor(n*0.75)`` with no interpolation. Q2 is not the nearest-rank
    value ``sorted[floor(n/2)]`` but the median, so on even-length input it
    is the average of the two middle values and always equals median().

    Examples:
        >>> quartiles([1, 2, 3, 4, 5, 6, 7, 8])
        Quartiles(q1=3.0, q2=4.5, q3=7.0)
    """
    if len(values) == 0:
        return Quartiles(q1=0.0, q2=0.0, q3=0.0)

    ordered = sorted(values)
    n = len(ordered)
    return Quartiles(
        q1=float(ordered[math.floor(n * 0.25)]),
        q2=median(values),
        q3=float(ordered[math.floor(n * 0.75)]),
    )


def iqr(values: Sequence[float]) -> float:
    q = quartiles(values)
    return q.q3 - q.q1


def _standardized(values: Sequence[float]) -> np.ndarray | None:
    """Deviations from the mean in units of the sample standard deviation.

    Returns None when the standard deviation is zero.
    """
    std = standard_deviation(values)
    if std == 0:
        return None
    arr = _as_array(values)
    return (arr - arr.mean()) / std


def skewness(values: Sequence[float]) -> float:
    """Third standardized moment.

    Deviations are scaled by the sample (n-1) standard deviation while the
    moment itself is averaged over n. Returns 0 for fewer than three values
    or a constant sequence.
    """
    if len(values) < 3:
        return 0.0
    z = _standardized(values)
    if z is None:
        return 0.0
    return float(np.mean(z ** 3))


def kurtosis(values: Sequence[float]) -> float:
    """Excess kurtosis (fourth standardized moment minus 3).

    Uses the same scaling as :func:`skewness`. Returns 0 for fewer than four
    values or a constant sequence.
    """
    if len(values) < 4:
        return 0.0
    z = _standardized(values)
    if z is None:
        return 0.0
    return float(np.mean(z ** 4)) - 3.0


def moving_ranges(values: Sequence[float]) -> List[float]:
    """Absolute differences between consecutive values (span 2)."""
    if len(values) < 2:
        return []
    return np.abs(np.diff(_as_array(values))).tolist()


def descriptive_summary(values: Sequence[float]) -> StatisticalSummary:
    """Compute the full descriptive summary of a measurement sequence.

    Args:
        values: Observations in sequence order

    Returns:
        StatisticalSummary; all fields are zero for an empty sequence
    """
    q = quartiles(values)
    return StatisticalSummary(
        count=len(values),
        mean=mean(values),
        median=median(values),
        mode=mode(values),
        std_dev=standard_deviation(values),
        variance=variance(values),
        range=value_range(values),
        min=minimum(values),
        max=maximum(values),
        q1=q.q1,
        q3=q.q3,
        iqr=q.q3 - q.q1,
        skewness=skewness(values),
        kurtosis=kurtosis(values),
    )


def confidence_interval(
    values: Sequence[float], confidence: float = 0.95
) -> tuple[float, float]:
    """Normal-approximation confidence interval for the mean.

    Only the 95% (z=1.96) and 99% (z=2.576) levels have their own critical
    value; any other level falls back to 1.96.

    Returns:
        Tuple of (lower, upper); (0.0, 0.0) for an empty sequence
    """
    if len(values) == 0:
        return 0.0, 0.0

    if confidence == 0.99:
        z = 2.576
    else:
        z = 1.96

    avg = mean(values)
    margin = z * (standard_deviation(values) / math.sqrt(len(values)))
    return avg - margin, avg + margin


def erf(x: float) -> float:
    """Error function, Abramowitz-Stegun approximation (|error| < 1.5e-7)."""
    sign = 1.0 if x >= 0 else -1.0
    x = abs(x)

    t = 1.0 / (1.0 + _ERF_P * x)
    y = 1.0 - (
        ((((_ERF_A5 * t + _ERF_A4) * t) + _ERF_A3) * t + _ERF_A2) * t + _ERF_A1
    ) * t * math.exp(-x * x)

    return sign * y


def normal_cdf(x: float, mean: float = 0.0, std: float = 1.0) -> float:
    """Cumulative distribution function of a normal distribution.

    Examples:
        >>> round(normal_cdf(0.0), 6)
        0.5
    """
    return 0.5 * (1.0 + erf((x - mean) / (std * math.sqrt(2.0))))


def calculate_zones(limits: ControlLimits) -> ZoneBoundaries:
    """Interpolate zone boundaries from control limits.

    The limits are assumed symmetric about the center line, so one sigma is
    a third of the distance from the center line to the UCL whatever sigma
    level the limits were drawn at.

    Examples:
        >>> zones = calculate_zones(ControlLimits(ucl=106.0, lcl=94.0, cl=100.0, sigma=2.0))
        >>> zones.plus_1_sigma
        102.0
        >>> zones.minus_2_sigma
        96.0
    """
    cl = limits.cl
    half_width = limits.ucl - cl
    return ZoneBoundaries(
        center_line=cl,
        plus_1_sigma=cl + half_width / 3,
        plus_2_sigma=cl + (2 * half_width / 3),
        plus_3_sigma=limits.ucl,
        minus_1_sigma=cl - half_width / 3,
        minus_2_sigma=cl - (2 * half_width / 3),
        minus_3_sigma=limits.lcl,
    )


def split_subgroups(values: Sequence[float], subgroup_size: int) -> List[List[float]]:
    """Split a flat measurement sequence into consecutive subgroups.

    A trailing partial subgroup is dropped.

    Raises:
        ValueError: If subgroup_size is less than 1

    Examples:
        >>> split_subgroups([1, 2, 3, 4, 5], 2)
        [[1, 2], [3, 4]]
    """
    if subgroup_size < 1:
        raise ValueError(f"Subgroup size must be at least 1, got {subgroup_size}")

    complete = len(values) - len(values) % subgroup_size
    return [
        list(values[i:i + subgroup_size])
        for i in range(0, complete, subgroup_size)
    ]
