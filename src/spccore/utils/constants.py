"""Statistical constants for SPC control chart calculations.

Constants from ASTM E2587 and NIST Engineering Statistics Handbook.
These constants are used for calculating control limits and estimating process sigma.

Subgroup sizes above the end of the table reuse the n=25 row. The constants
change slowly past n=25 and existing charts depend on this exact fallback, so
no extrapolation formula is applied.
"""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class SpcConstants:
    """Statistical constants for a given subgroup size.

    Attributes:
        n: Subgroup size
        A2: Factor for X-bar chart control limits from R-bar
        A3: Factor for X-bar chart control limits from S-bar
        d2: Average range factor (used for sigma estimation from R-bar)
        c4: Standard deviation correction factor (used for sigma estimation from S-bar)
        D3: Lower control limit factor for R chart
        D4: Upper control limit factor for R chart
    """
    n: int
    A2: float
    A3: float
    d2: float
    c4: float
    D3: float
    D4: float


MIN_SUBGROUP_SIZE = 2
MAX_SUBGROUP_SIZE = 25

# Statistical constants table for subgroup sizes 2-25
_CONSTANTS_TABLE: Dict[int, SpcConstants] = {
    2: SpcConstants(n=2, A2=1.880, A3=2.659, d2=1.128, c4=0.7979, D3=0.0, D4=3.267),
    3: SpcConstants(n=3, A2=1.023, A3=1.954, d2=1.693, c4=0.8862, D3=0.0, D4=2.574),
    4: SpcConstants(n=4, A2=0.729, A3=1.628, d2=2.059, c4=0.9213, D3=0.0, D4=2.282),
    5: SpcConstants(n=5, A2=0.577, A3=1.427, d2=2.326, c4=0.9400, D3=0.0, D4=2.114),
    6: SpcConstants(n=6, A2=0.483, A3=1.287, d2=2.534, c4=0.9515, D3=0.0, D4=2.004),
    7: SpcConstants(n=7, A2=0.419, A3=1.182, d2=2.704, c4=0.9594, D3=0.076, D4=1.924),
    8: SpcConstants(n=8, A2=0.373, A3=1.099, d2=2.847, c4=0.9650, D3=0.136, D4=1.864),
    9: SpcConstants(n=9, A2=0.337, A3=1.032, d2=2.970, c4=0.9693, D3=0.184, D4=1.816),
    10: SpcConstants(n=10, A2=0.308, A3=0.975, d2=3.078, c4=0.9727, D3=0.223, D4=1.777),
    11: SpcConstants(n=11, A2=0.285, A3=0.927, d2=3.173, c4=0.9754, D3=0.256, D4=1.744),
    12: SpcConstants(n=12, A2=0.266, A3=0.886, d2=3.258, c4=0.9776, D3=0.283, D4=1.717),
    13: SpcConstants(n=13, A2=0.249, A3=0.850, d2=3.336, c4=0.9794, D3=0.307, D4=1.693),
    14: SpcConstants(n=14, A2=0.235, A3=0.817, d2=3.407, c4=0.9810, D3=0.328, D4=1.672),
    15: SpcConstants(n=15, A2=0.223, A3=0.789, d2=3.472, c4=0.9823, D3=0.347, D4=1.653),
    16: SpcConstants(n=16, A2=0.212, A3=0.763, d2=3.532, c4=0.9835, D3=0.363, D4=1.637),
    17: SpcConstants(n=17, A2=0.203, A3=0.739, d2=3.588, c4=0.9845, D3=0.378, D4=1.622),
    18: SpcConstants(n=18, A2=0.194, A3=0.718, d2=3.640, c4=0.9854, D3=0.391, D4=1.608),
    19: SpcConstants(n=19, A2=0.187, A3=0.698, d2=3.689, c4=0.9862, D3=0.403, D4=1.597),
    20: SpcConstants(n=20, A2=0.180, A3=0.680, d2=3.735, c4=0.9869, D3=0.415, D4=1.585),
    21: SpcConstants(n=21, A2=0.173, A3=0.663, d2=3.778, c4=0.9876, D3=0.425, D4=1.575),
    22: SpcConstants(n=22, A2=0.167, A3=0.647, d2=3.819, c4=0.9882, D3=0.434, D4=1.566),
    23: SpcConstants(n=23, A2=0.162, A3=0.633, d2=3.858, c4=0.9887, D3=0.443, D4=1.557),
    24: SpcConstants(n=24, A2=0.157, A3=0.619, d2=3.895, c4=0.9892, D3=0.451, D4=1.548),
    25: SpcConstants(n=25, A2=0.153, A3=0.606, d2=3.931, c4=0.9896, D3=0.459, D4=1.541),
}

# Individuals chart factors (moving range of span 2)
D2_MOVING_RANGE = 1.128
E2 = 2.66


def get_constants(subgroup_size: int) -> SpcConstants:
    """Get SPC constants for a given subgroup size.

    Args:
        subgroup_size: The subgroup size (n), must be at least 2. Sizes above
            25 return the n=25 constants.

    Returns:
        SpcConstants object containing A2, A3, d2, c4, D3, D4 for the given n

    Raises:
        ValueError: If subgroup_size is less than 2

    Examples:
        >>> constants = get_constants(5)
        >>> constants.d2
        2.326
        >>> get_constants(40).n
        25
    """
    if subgroup_size < MIN_SUBGROUP_SIZE:
        raise ValueError(
            f"Subgroup size must be at least {MIN_SUBGROUP_SIZE}, got {subgroup_size}"
        )

    return _CONSTANTS_TABLE[min(subgroup_size, MAX_SUBGROUP_SIZE)]


def get_A2(subgroup_size: int) -> float:
    """Get A2 constant for a given subgroup size.

    The A2 constant is used for calculating control limits on X-bar charts
    when using the range method.

    Examples:
        >>> get_A2(5)
        0.577
    """
    return get_constants(subgroup_size).A2


def get_A3(subgroup_size: int) -> float:
    """Get A3 constant for a given subgroup size.

    The A3 constant is used for calculating control limits on X-bar charts
    when using the standard deviation method.

    Examples:
        >>> get_A3(5)
        1.427
    """
    return get_constants(subgroup_size).A3


def get_d2(subgroup_size: int) -> float:
    """Get d2 constant for a given subgroup size.

    The d2 constant is the relationship between the average range and the standard
    deviation for a normal distribution. Used for estimating sigma from R-bar.

    Examples:
        >>> get_d2(5)
        2.326
    """
    return get_constants(subgroup_size).d2


def get_c4(subgroup_size: int) -> float:
    """Get c4 constant for a given subgroup size.

    The c4 constant is the relationship between the average standard deviation
    and the population standard deviation. Used for estimating sigma from S-bar.

    Examples:
        >>> get_c4(10)
        0.9727
    """
    return get_constants(subgroup_size).c4


def get_D3(subgroup_size: int) -> float:
    """Get D3 constant (R chart lower limit factor)."""
    return get_constants(subgroup_size).D3


def get_D4(subgroup_size: int) -> float:
    """Get D4 constant (R chart upper limit factor)."""
    return get_constants(subgroup_size).D4
