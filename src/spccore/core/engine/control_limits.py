"""Control limit calculations for the seven supported chart families.

Variables charts:
- X-bar R: sigma = R-bar / d2, limits = X-double-bar +/- A2 * R-bar
- X-bar S: sigma = S-bar / c4, limits = X-double-bar +/- A3 * S-bar
- I-MR: sigma = MR-bar / 1.128, limits = X-bar +/- 2.66 * MR-bar

Attributes charts:
- p: proportion defective, per-sample sizes
- np: number defective, fixed sample size
- c: defects per unit, fixed opportunity
- u: defects per unit, per-sample sizes

The factors A2, A3 and E2 (2.66) are calibrated for 3 sigma limits. A
requested sigma level scales them by ``sigma_level / 3``, so 2 sigma limits
are two thirds of the standard width. Attributes charts multiply their
sigma estimate by the sigma level directly.

Every calculation returns all-zero limits when there is not enough data.
Arithmetic runs on numpy floats so a zero denominator produces inf/nan
instead of raising.
"""

from enum import Enum
from typing import Sequence

import numpy as np
import structlog

from spccore.utils.constants import (
    D2_MOVING_RANGE,
    E2,
    get_A2,
    get_A3,
    get_c4,
    get_d2,
    get_D3,
    get_D4,
)
from spccore.utils.statistics import ControlLimits, split_subgroups

logger = structlog.get_logger(__name__)

DEFAULT_SIGMA_LEVEL = 3.0


class ChartType(str, Enum):
    """Supported control chart families."""
    XBAR_R = "xbar-r"
    XBAR_S = "xbar-s"
    I_MR = "i-mr"
    P = "p-chart"
    NP = "np-chart"
    C = "c-chart"
    U = "u-chart"

    @property
    def is_variables(self) -> bool:
        """True for charts plotting measured values rather than counts."""
        return self in (ChartType.XBAR_R, ChartType.XBAR_S, ChartType.I_MR)

    @property
    def uses_subgroups(self) -> bool:
        return self in (ChartType.XBAR_R, ChartType.XBAR_S)

    @classmethod
    def parse(cls, value: "ChartType | str") -> "ChartType":
        """Resolve a chart type from its value or a short alias.

        Raises:
            ValueError: If the value names no known chart type

        Examples:
            >>> ChartType.parse("xbar-r")
            <ChartType.XBAR_R: 'xbar-r'>
            >>> ChartType.parse("NP")
            <ChartType.NP: 'np-chart'>
        """
        if isinstance(value, ChartType):
            return value
        key = str(value).strip().lower().replace("_", "-")
        key = _CHART_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown chart type: {value!r}") from None


_CHART_ALIASES = {
    "p": "p-chart",
    "np": "np-chart",
    "c": "c-chart",
    "u": "u-chart",
    "imr": "i-mr",
    "xbarr": "xbar-r",
    "xbars": "xbar-s",
}


def _limits(cl, half_width, sigma, floor_lcl: bool = False, floor_ucl: bool = False) -> ControlLimits:
    ucl = cl + half_width
    lcl = cl - half_width
    if floor_ucl:
        ucl = np.maximum(0.0, ucl)
    if floor_lcl:
        lcl = np.maximum(0.0, lcl)
    return ControlLimits(ucl=float(ucl), lcl=float(lcl), cl=float(cl), sigma=float(sigma))


def _subgroup_stats(subgroups: Sequence[Sequence[float]], statistic) -> tuple[np.float64, np.float64]:
    """Grand mean and average of a per-subgroup dispersion statistic."""
    means = [np.mean(np.asarray(sg, dtype=np.float64)) if len(sg) else 0.0 for sg in subgroups]
    spreads = [statistic(np.asarray(sg, dtype=np.float64)) if len(sg) else 0.0 for sg in subgroups]
    return np.mean(means), np.mean(spreads)


def _sample_std(arr: np.ndarray) -> np.float64:
    ss = np.sum((arr - arr.mean()) ** 2)
    return np.sqrt(ss / (len(arr) - 1))


def xbar_r_limits(
    subgroups: Sequence[Sequence[float]],
    sigma_level: float = DEFAULT_SIGMA_LEVEL,
) -> ControlLimits:
    """Calculate X-bar chart limits using the range method.

    The subgroup size is taken from the first subgroup; all subgroups are
    expected to share it.

    Args:
        subgroups: Ordered subgroups of measurements
        sigma_level: Width of the limits in sigma units (default: 3)

    Returns:
        ControlLimits for the X-bar chart; zero limits when there are no
        subgroups or the subgroups hold fewer than two values

    Examples:
        >>> limits = xbar_r_limits([[49, 50, 51]] * 5)
        >>> limits.cl
        50.0
        >>> round(limits.ucl, 3)
        52.046
    """
    if len(subgroups) == 0 or len(subgroups[0]) < 2:
        return ControlLimits.zero()

    n = len(subgroups[0])
    with np.errstate(divide="ignore", invalid="ignore"):
        grand_mean, r_bar = _subgroup_stats(subgroups, np.ptp)
        sigma = r_bar / get_d2(n)
        half_width = get_A2(n) * r_bar * sigma_level / 3
        return _limits(grand_mean, half_width, sigma)


def xbar_s_limits(
    subgroups: Sequence[Sequence[float]],
    sigma_level: float = DEFAULT_SIGMA_LEVEL,
) -> ControlLimits:
    """Calculate X-bar chart limits using the standard deviation method.

    Subgroup standard deviations use the sample (n-1) divisor.

    Args:
        subgroups: Ordered subgroups of measurements
        sigma_level: Width of the limits in sigma units (default: 3)

    Returns:
        ControlLimits for the X-bar chart; zero limits when there are no
        subgroups or the subgroups hold fewer than two values
    """
    if len(subgroups) == 0 or len(subgroups[0]) < 2:
        return ControlLimits.zero()

    n = len(subgroups[0])
    with np.errstate(divide="ignore", invalid="ignore"):
        grand_mean, s_bar = _subgroup_stats(subgroups, _sample_std)
        sigma = s_bar / get_c4(n)
        half_width = get_A3(n) * s_bar * sigma_level / 3
        return _limits(grand_mean, half_width, sigma)


def imr_limits(
    values: Sequence[float],
    sigma_level: float = DEFAULT_SIGMA_LEVEL,
) -> ControlLimits:
    """Calculate Individuals chart limits from the average moving range.

    Examples:
        >>> limits = imr_limits([10, 12, 11, 13, 10])
        >>> round(limits.cl, 2)
        11.2
        >>> round(limits.sigma, 3)
        1.773
    """
    if len(values) < 2:
        return ControlLimits.zero()

    arr = np.asarray(values, dtype=np.float64)
    mr_bar = np.mean(np.abs(np.diff(arr)))
    sigma = mr_bar / D2_MOVING_RANGE
    half_width = E2 * mr_bar * sigma_level / 3
    return _limits(np.mean(arr), half_width, sigma)


def _expand_sizes(sizes: "int | Sequence[int] | None", count: int, chart: str) -> np.ndarray:
    """Per-sample sizes as an array, broadcasting a single size."""
    if sizes is None:
        raise ValueError(f"{chart} requires sample sizes")
    if np.ndim(sizes) == 0:
        return np.full(count, sizes, dtype=np.float64)
    arr = np.asarray(sizes, dtype=np.float64)
    if len(arr) != count:
        raise ValueError(
            f"{chart} needs one sample size per point: got {len(arr)} sizes "
            f"for {count} points"
        )
    return arr


def p_chart_limits(
    defects: Sequence[float],
    sample_sizes: "int | Sequence[int]",
    sigma_level: float = DEFAULT_SIGMA_LEVEL,
) -> ControlLimits:
    """Calculate p chart (proportion defective) limits.

    The center line is the mean of the per-sample proportions and sigma uses
    the average sample size. Both limits are floored at 0.

    Args:
        defects: Defective count per sample
        sample_sizes: Size of each sample, or one size shared by all samples
        sigma_level: Width of the limits in sigma units (default: 3)

    Raises:
        ValueError: If sample sizes are missing or do not match the counts
    """
    if len(defects) == 0:
        return ControlLimits.zero()

    sizes = _expand_sizes(sample_sizes, len(defects), "p chart")
    with np.errstate(divide="ignore", invalid="ignore"):
        p_bar = np.mean(np.asarray(defects, dtype=np.float64) / sizes)
        sigma = np.sqrt((p_bar * (1 - p_bar)) / np.mean(sizes))
        return _limits(p_bar, sigma_level * sigma, sigma, floor_lcl=True, floor_ucl=True)


def np_chart_limits(
    defects: Sequence[float],
    sample_size: int,
    sigma_level: float = DEFAULT_SIGMA_LEVEL,
) -> ControlLimits:
    """Calculate np chart (number defective) limits for a fixed sample size.

    Raises:
        ValueError: If sample_size is missing or not a single number
    """
    if len(defects) == 0:
        return ControlLimits.zero()
    if sample_size is None or np.ndim(sample_size) != 0:
        raise ValueError("np chart requires a single fixed sample size")

    with np.errstate(divide="ignore", invalid="ignore"):
        n = np.float64(sample_size)
        np_bar = np.mean(np.asarray(defects, dtype=np.float64))
        proportion = np_bar / n
        sigma = np.sqrt(n * proportion * (1 - proportion))
        return _limits(np_bar, sigma_level * sigma, sigma, floor_lcl=True)


def c_chart_limits(
    defects: Sequence[float],
    sigma_level: float = DEFAULT_SIGMA_LEVEL,
) -> ControlLimits:
    """Calculate c chart (defect count) limits; sigma is the root of the mean.

    Examples:
        >>> c_chart_limits([4, 4, 4, 4])
        ControlLimits(ucl=10.0, lcl=0.0, cl=4.0, sigma=2.0)
    """
    if len(defects) == 0:
        return ControlLimits.zero()

    with np.errstate(invalid="ignore"):
        c_bar = np.mean(np.asarray(defects, dtype=np.float64))
        sigma = np.sqrt(c_bar)
        return _limits(c_bar, sigma_level * sigma, sigma, floor_lcl=True)


def u_chart_limits(
    defects: Sequence[float],
    sample_sizes: "int | Sequence[int]",
    sigma_level: float = DEFAULT_SIGMA_LEVEL,
) -> ControlLimits:
    """Calculate u chart (defects per unit) limits.

    The center line is the mean of the per-sample rates and sigma uses the
    average sample size. The lower limit is floored at 0.

    Raises:
        ValueError: If sample sizes are missing or do not match the counts
    """
    if len(defects) == 0:
        return ControlLimits.zero()

    sizes = _expand_sizes(sample_sizes, len(defects), "u chart")
    with np.errstate(divide="ignore", invalid="ignore"):
        u_bar = np.mean(np.asarray(defects, dtype=np.float64) / sizes)
        sigma = np.sqrt(u_bar / np.mean(sizes))
        return _limits(u_bar, sigma_level * sigma, sigma, floor_lcl=True)


def range_chart_limits(subgroups: Sequence[Sequence[float]]) -> ControlLimits:
    """Calculate R chart limits (D3 * R-bar, D4 * R-bar) at 3 sigma.

    Examples:
        >>> limits = range_chart_limits([[49, 50, 51]] * 4)
        >>> limits.cl, round(limits.ucl, 3), limits.lcl
        (2.0, 5.148, 0.0)
    """
    if len(subgroups) == 0 or len(subgroups[0]) < 2:
        return ControlLimits.zero()

    n = len(subgroups[0])
    r_bar = np.mean([np.ptp(np.asarray(sg, dtype=np.float64)) for sg in subgroups])
    return ControlLimits(
        ucl=float(get_D4(n) * r_bar),
        lcl=float(get_D3(n) * r_bar),
        cl=float(r_bar),
        sigma=float(r_bar / get_d2(n)),
    )


def moving_range_chart_limits(values: Sequence[float]) -> ControlLimits:
    """Calculate MR chart limits (span 2) at 3 sigma."""
    if len(values) < 2:
        return ControlLimits.zero()

    mr_bar = np.mean(np.abs(np.diff(np.asarray(values, dtype=np.float64))))
    return ControlLimits(
        ucl=float(get_D4(2) * mr_bar),
        lcl=float(get_D3(2) * mr_bar),
        cl=float(mr_bar),
        sigma=float(mr_bar / D2_MOVING_RANGE),
    )


def resolve_subgroups(data, subgroup_size: int | None = None) -> list[list[float]]:
    """Return subgroups from nested data, or split flat data by subgroup_size.

    Raises:
        ValueError: If flat data is given without a subgroup size
    """
    if len(data) == 0:
        return []
    if np.ndim(data[0]) > 0:
        return [list(sg) for sg in data]
    if subgroup_size is None or np.ndim(subgroup_size) != 0:
        raise ValueError("Flat data for a subgroup chart requires a single subgroup size")
    return split_subgroups(data, int(subgroup_size))


def chart_values(
    chart_type: ChartType | str,
    data,
    size_metadata=None,
) -> list[float]:
    """Return the sequence of points plotted on the chart.

    Subgroup means for X-bar charts, the individual values for I-MR, the
    per-sample proportions or rates for p and u charts, and the raw counts for
    np and c charts.
    """
    chart = ChartType.parse(chart_type)

    if chart.uses_subgroups:
        return [
            float(np.mean(np.asarray(sg, dtype=np.float64))) if len(sg) else 0.0
            for sg in resolve_subgroups(data, size_metadata)
        ]
    if chart in (ChartType.P, ChartType.U) and len(data) > 0:
        sizes = _expand_sizes(size_metadata, len(data), chart.value)
        with np.errstate(divide="ignore", invalid="ignore"):
            return (np.asarray(data, dtype=np.float64) / sizes).tolist()
    return [float(v) for v in data]


def control_limits(
    chart_type: ChartType | str,
    data,
    sigma_level: float = DEFAULT_SIGMA_LEVEL,
    size_metadata=None,
) -> ControlLimits:
    """Calculate control limits for any supported chart type.

    Args:
        chart_type: ChartType or its string value ("xbar-r", "p-chart", ...)
        data: Subgroups for X-bar charts (or a flat sequence together with a
            subgroup size), individual values for I-MR, counts for p/np/c/u
        sigma_level: Width of the limits in sigma units (default: 3)
        size_metadata: Subgroup size for flat X-bar data, per-sample sizes
            (or one shared size) for p and u charts, the fixed sample size for
            np charts; unused for I-MR and c charts

    Returns:
        ControlLimits for the chart

    Raises:
        ValueError: If the chart type is unknown or required size metadata
            is missing

    Example:
        >>> control_limits("c-chart", [4, 4, 4, 4]).ucl
        10.0
    """
    chart = ChartType.parse(chart_type)

    if chart is ChartType.XBAR_R:
        limits = xbar_r_limits(resolve_subgroups(data, size_metadata), sigma_level)
    elif chart is ChartType.XBAR_S:
        limits = xbar_s_limits(resolve_subgroups(data, size_metadata), sigma_level)
    elif chart is ChartType.I_MR:
        limits = imr_limits(data, sigma_level)
    elif chart is ChartType.P:
        limits = p_chart_limits(data, size_metadata, sigma_level)
    elif chart is ChartType.NP:
        limits = np_chart_limits(data, size_metadata, sigma_level)
    elif chart is ChartType.C:
        limits = c_chart_limits(data, sigma_level)
    else:
        limits = u_chart_limits(data, size_metadata, sigma_level)

    logger.debug(
        "control_limits_calculated",
        chart_type=chart.value,
        points=len(data),
        sigma_level=sigma_level,
        ucl=limits.ucl,
        cl=limits.cl,
        lcl=limits.lcl,
    )
    return limits
